from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from laundry.models.order import Order
from laundry.schemas.external import ReportResponse
from laundry.services.authorization import ActorContext, authorize
from laundry.services.pricing import round2
from laundry.utils.enums import OrderStatus, Role
from laundry.utils.timeutils import as_utc, business_tz


def _day_bounds(date_from: Optional[date], date_to: Optional[date]):
    tz = business_tz()
    start = as_utc(datetime.combine(date_from, time.min, tzinfo=tz)) if date_from else None
    end = as_utc(datetime.combine(date_to + timedelta(days=1), time.min, tzinfo=tz)) if date_to else None
    return start, end


def build_report(db: Session, actor: ActorContext, date_from: Optional[date] = None,
                 date_to: Optional[date] = None) -> ReportResponse:
    authorize(actor, Role.ADMIN)
    start, end = _day_bounds(date_from, date_to)

    def scoped(q):
        if start is not None:
            q = q.filter(Order.created_at >= start)
        if end is not None:
            q = q.filter(Order.created_at < end)
        return q

    by_status = {s.value: 0 for s in OrderStatus}
    for status, count in scoped(db.query(Order.status, func.count(Order.id))).group_by(Order.status).all():
        by_status[OrderStatus(status).value] = count

    delivered = scoped(db.query(Order)).filter(Order.status == OrderStatus.DELIVERED).all()
    revenue = sum((Decimal(o.final_price) for o in delivered), Decimal(0))
    discounts = sum((Decimal(o.price) - Decimal(o.final_price) for o in delivered), Decimal(0))

    per_driver = {}
    for o in delivered:
        if o.driver_id:
            per_driver[o.driver_id] = per_driver.get(o.driver_id, 0) + 1

    return ReportResponse(
        orders_by_status=by_status,
        total_orders=sum(by_status.values()),
        revenue=float(round2(revenue)),
        discounts_granted=float(round2(discounts)),
        deliveries_by_driver=per_driver,
    )
