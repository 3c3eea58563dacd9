"""Server-side order gateway.

Every submission is re-validated here regardless of what the client already
checked: prices come from the catalog, slots are re-derived, coupons are
hard-checked. Nothing is written unless the whole order passes.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from laundry.logging_config import redact_user_id
from laundry.models.coupon import Coupon
from laundry.models.order import Order, OrderItem, OrderHistory, OrderRejection
from laundry.models.user import Profile
from laundry.schemas.order import OrderRequest, RugDimensions
from laundry.schemas.scheduling import TimeSlot
from laundry.services import scheduling
from laundry.services.authorization import ActorContext, authorize
from laundry.services.coupon_service import CouponService
from laundry.services.events import OrderChanged, order_events
from laundry.services.pricing import D, PriceBreakdown, PriceLine, compute_total, round2, rug_price
from laundry.services.product_service import ProductService
from laundry.utils.enums import OrderStatus, PaymentMethod, PickupOption, PricingModel, Role
from laundry.utils.timeutils import as_utc, now_local

logger = logging.getLogger("laundry.orders")

POOL_STATUSES = (OrderStatus.PENDING, OrderStatus.REJECTED)
CUSTOMER_EDITABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.ACCEPTED)


@dataclass
class ValidatedLine:
    service_id: str
    name: str
    unit_price: object
    quantity: int
    rug_dimensions: Optional[RugDimensions] = None

    @property
    def total(self):
        return round2(self.unit_price * self.quantity)


@dataclass
class ValidatedOrder:
    request: OrderRequest
    lines: List[ValidatedLine]
    pricing: PriceBreakdown
    pickup_slot: TimeSlot
    return_slot: TimeSlot
    coupon: Optional[Coupon] = None


def _resolve_pickup_slot(request: OrderRequest, now: datetime) -> TimeSlot:
    if request.pickup_option == PickupOption.ASAP:
        return scheduling.asap_slot(now)
    slot = request.selected_time_slot
    if slot is None:
        raise HTTPException(status_code=400, detail="A pickup time slot is required")
    if not scheduling.is_valid_slot(slot):
        raise HTTPException(status_code=400, detail="Invalid pickup time slot")
    start = scheduling.slot_start(slot)
    if start <= now:
        raise HTTPException(status_code=400, detail="Pickup time must be in the future")
    return scheduling.slot_at(start)


def _validate_lines(db: Session, request: OrderRequest) -> List[ValidatedLine]:
    lines = []
    for item in request.cart_items:
        product = ProductService.get_active_product(db, item.service_id)
        if not product:
            raise HTTPException(status_code=400, detail=f"Invalid product: {item.service_id}")
        if product.pricing_model == PricingModel.RUG_AREA:
            if item.rug_dimensions is None:
                raise HTTPException(status_code=400, detail=f"Rug dimensions are required for {product.name}")
            unit_price = rug_price(item.rug_dimensions.length, item.rug_dimensions.width)
        else:
            unit_price = D(product.base_price)
        lines.append(ValidatedLine(
            service_id=product.product_id,
            name=product.name,
            unit_price=unit_price,
            quantity=item.quantity,
            rug_dimensions=item.rug_dimensions if product.pricing_model == PricingModel.RUG_AREA else None,
        ))
    return lines


def validate_order(db: Session, actor: ActorContext, request: OrderRequest, now: datetime = None) -> ValidatedOrder:
    authorize(actor, Role.CUSTOMER, Role.ADMIN)
    now = now or now_local()

    pickup_slot = _resolve_pickup_slot(request, now)
    return_slot = scheduling.estimate_return_slot(pickup_slot, asap=request.pickup_option == PickupOption.ASAP)
    lines = _validate_lines(db, request)

    coupon = None
    if request.coupon_code:
        coupon = CouponService.get_coupon_by_code(db, request.coupon_code)
        if not coupon:
            raise HTTPException(status_code=400, detail="Invalid coupon code")
        CouponService.ensure_redeemable(coupon, now)

    pricing = compute_total([PriceLine(l.unit_price, l.quantity) for l in lines], coupon)

    if request.payment_method == PaymentMethod.FREE and pricing.final_price > 0:
        raise HTTPException(status_code=400, detail="Payment method 'free' requires a zero total")

    return ValidatedOrder(
        request=request,
        lines=lines,
        pricing=pricing,
        pickup_slot=pickup_slot,
        return_slot=return_slot,
        coupon=coupon,
    )


def _service_name(lines: List[ValidatedLine]) -> str:
    if len(lines) == 1:
        return lines[0].name
    return f"{len(lines)} palvelua"


def _sync_profile(db: Session, user_id: str, phone: str, address: str) -> None:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if profile is None:
        db.add(Profile(user_id=user_id, phone=phone, address=address, points_balance=0))
    elif profile.phone != phone or profile.address != address:
        profile.phone = phone
        profile.address = address


def create_order(db: Session, actor: ActorContext, request: OrderRequest, now: datetime = None) -> Order:
    validated = validate_order(db, actor, request, now)
    pickup_start = scheduling.slot_start(validated.pickup_slot)
    return_start = scheduling.slot_start(validated.return_slot)

    order = Order(
        user_id=actor.user_id,
        status=OrderStatus.PENDING,
        service_name=_service_name(validated.lines),
        phone=request.phone.strip(),
        address=request.address.strip(),
        special_instructions=request.special_instructions,
        pickup_option=request.pickup_option,
        pickup_date=pickup_start.date(),
        pickup_time=validated.pickup_slot.start,
        return_date=return_start.date(),
        return_time=validated.return_slot.start,
        pickup_slot=as_utc(pickup_start),
        delivery_slot=as_utc(return_start),
        price=validated.pricing.subtotal,
        final_price=validated.pricing.final_price,
        discount_code=validated.coupon.code if validated.coupon else None,
        coupon_id=validated.coupon.id if validated.coupon else None,
        payment_method=request.payment_method,
    )
    try:
        db.add(order)
        db.flush()
        for line in validated.lines:
            metadata = None
            if line.rug_dimensions is not None:
                metadata = {"rug_dimensions": line.rug_dimensions.model_dump()}
            db.add(OrderItem(
                order_id=order.id,
                service_type=line.service_id,
                service_name=line.name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                total_price=line.total,
                item_metadata=metadata,
            ))
        if validated.coupon is not None:
            CouponService.redeem(db, validated.coupon)
        db.add(OrderHistory(
            order_id=order.id, old_status=None, new_status=OrderStatus.PENDING.value, changed_by=actor.user_id,
        ))
        _sync_profile(db, actor.user_id, order.phone, order.address)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)

    logger.info("order %s created by %s, final price %s", order.id, redact_user_id(actor.user_id), order.final_price)
    order_events.publish(OrderChanged(order_id=order.id, status=OrderStatus.PENDING.value))
    return order


def list_orders(db: Session, actor: ActorContext, status: Optional[OrderStatus] = None) -> List[Order]:
    q = db.query(Order)
    if actor.role == Role.CUSTOMER:
        q = q.filter(Order.user_id == actor.user_id)
    elif actor.role == Role.DRIVER:
        q = q.filter(Order.driver_id == actor.user_id)
    if status is not None:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc()).all()


def list_pool(db: Session, actor: ActorContext) -> List[Order]:
    """Unassigned orders a driver can still take; hides the ones this driver turned down."""
    authorize(actor, Role.DRIVER, Role.ADMIN)
    q = db.query(Order).filter(Order.status.in_(POOL_STATUSES), Order.driver_id.is_(None))
    if actor.role == Role.DRIVER:
        turned_down = select(OrderRejection.order_id).where(OrderRejection.driver_id == actor.user_id)
        q = q.filter(Order.id.not_in(turned_down))
    return q.order_by(Order.pickup_slot, Order.created_at).all()


def get_order_for_actor(db: Session, actor: ActorContext, order_id: int) -> Order:
    """Same 404 for missing and foreign orders."""
    order = db.query(Order).filter(Order.id == order_id).first()
    if order is None or not _can_view(actor, order):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def _can_view(actor: ActorContext, order: Order) -> bool:
    if actor.role == Role.ADMIN:
        return True
    if actor.role == Role.CUSTOMER:
        return order.user_id == actor.user_id
    if order.driver_id == actor.user_id:
        return True
    if order.driver_id is not None or order.status not in POOL_STATUSES:
        return False
    # same exclusion as the pool listing
    return all(r.driver_id != actor.user_id for r in order.rejections)


def update_instructions(db: Session, actor: ActorContext, order_id: int, instructions: str) -> Order:
    order = get_order_for_actor(db, actor, order_id)
    if actor.role != Role.ADMIN and order.user_id != actor.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")
    if order.status not in CUSTOMER_EDITABLE_STATUSES:
        raise HTTPException(status_code=400, detail="Instructions can no longer be changed")
    order.special_instructions = instructions
    db.commit()
    db.refresh(order)
    return order
