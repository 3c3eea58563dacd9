"""Order lifecycle.

pending -> accepted -> picking_up -> washing -> returning -> delivered, with
rejected and cancelled as side exits. Every move is a conditional update on
the status the caller last saw, so two drivers racing for the same order get
exactly one winner.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from laundry.logging_config import redact_user_id
from laundry.models.order import Order, OrderHistory, OrderRejection
from laundry.models.user import UserRole
from laundry.schemas.scheduling import TimeSlot
from laundry.services import scheduling
from laundry.services.authorization import ActorContext, NOT_AUTHORIZED, authorize, can_transition, is_legal_transition
from laundry.services.events import OrderChanged, order_events
from laundry.services.points_service import award_order_points
from laundry.utils.enums import OrderStatus, Role
from laundry.utils.timeutils import as_utc, now_local, utcnow

logger = logging.getLogger("laundry.orders")

ORDER_UNAVAILABLE = "Order no longer available"
RESCHEDULABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.ACCEPTED})


def _effects(order: Order, actor: ActorContext, target: OrderStatus, now: datetime, note: Optional[str]) -> dict:
    """Column changes that travel with a move into ``target``."""
    values = {Order.status: target, Order.updated_at: now}
    if target == OrderStatus.ACCEPTED:
        values[Order.accepted_at] = now
        # keeps a driver an admin already assigned
        values[Order.driver_id] = func.coalesce(Order.driver_id, actor.user_id)
    elif target == OrderStatus.PICKING_UP:
        values[Order.actual_pickup_time] = now
    elif target == OrderStatus.DELIVERED:
        values[Order.actual_return_time] = now
    elif target == OrderStatus.REJECTED:
        values[Order.rejected_at] = now
        values[Order.rejected_by] = actor.user_id
        values[Order.rejection_reason] = note
        values[Order.driver_id] = None
    return values


def _apply(db: Session, order: Order, actor: ActorContext, target: OrderStatus, note: Optional[str]) -> Order:
    expected = OrderStatus(order.status)
    now = utcnow()
    q = db.query(Order).filter(Order.id == order.id, Order.status == expected)
    if target == OrderStatus.ACCEPTED and actor.role == Role.DRIVER:
        # an order an admin already handed to someone else is not up for grabs
        q = q.filter(or_(Order.driver_id.is_(None), Order.driver_id == actor.user_id))
    try:
        updated = q.update(_effects(order, actor, target, now, note), synchronize_session=False)
        if updated == 0:
            db.rollback()
            logger.info("order %s moved away from %s before %s could act", order.id, expected.value,
                        redact_user_id(actor.user_id))
            raise HTTPException(status_code=409, detail=ORDER_UNAVAILABLE)

        db.add(OrderHistory(
            order_id=order.id, old_status=expected.value, new_status=target.value,
            changed_by=actor.user_id, note=note,
        ))
        if target == OrderStatus.REJECTED and actor.role == Role.DRIVER:
            db.add(OrderRejection(order_id=order.id, driver_id=actor.user_id, reason=note))
        if target == OrderStatus.DELIVERED:
            award_order_points(db, order, now)
        db.commit()
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("order %s: %s -> %s by %s", order.id, expected.value, target.value, redact_user_id(actor.user_id))
    order_events.publish(OrderChanged(order_id=order.id, status=target.value))
    return order


def transition(db: Session, actor: ActorContext, order: Order, target: OrderStatus, note: Optional[str] = None) -> Order:
    """Move ``order`` along the lifecycle from the status it was read with."""
    target = OrderStatus(target)
    if actor.role == Role.CUSTOMER and target != OrderStatus.CANCELLED:
        raise HTTPException(status_code=403, detail=NOT_AUTHORIZED)
    if not is_legal_transition(order.status, target):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot move order from {OrderStatus(order.status).value} to {target.value}",
        )
    if not can_transition(actor, order, target):
        raise HTTPException(status_code=403, detail=NOT_AUTHORIZED)
    return _apply(db, order, actor, target, note)


def override_status(db: Session, actor: ActorContext, order: Order, target: OrderStatus, note: Optional[str] = None) -> Order:
    """Admin-only: any status, backwards included, always recorded in history."""
    authorize(actor, Role.ADMIN)
    target = OrderStatus(target)
    if OrderStatus(order.status) == target:
        return order
    logger.warning("admin override on order %s: %s -> %s", order.id, OrderStatus(order.status).value, target.value)
    return _apply(db, order, actor, target, note or "admin override")


def _record_change(db: Session, actor: ActorContext, order: Order, note: str) -> None:
    status = OrderStatus(order.status).value
    db.add(OrderHistory(order_id=order.id, old_status=status, new_status=status, changed_by=actor.user_id, note=note))


def reschedule(db: Session, actor: ActorContext, order: Order, kind: str, slot: TimeSlot, now: datetime = None) -> Order:
    """Assigned driver proposes a new window before pickup; a new pickup re-derives the return estimate."""
    authorize(actor, Role.DRIVER, Role.ADMIN)
    if actor.role == Role.DRIVER and order.driver_id != actor.user_id:
        raise HTTPException(status_code=403, detail=NOT_AUTHORIZED)
    if OrderStatus(order.status) not in RESCHEDULABLE_STATUSES:
        raise HTTPException(status_code=400, detail="Order can no longer be rescheduled")
    if not scheduling.is_valid_slot(slot):
        raise HTTPException(status_code=400, detail="Invalid time slot")

    now = now or now_local()
    start = scheduling.slot_start(slot)
    if start <= now:
        raise HTTPException(status_code=400, detail="Time slot must be in the future")

    if kind == "pickup":
        estimate = scheduling.estimate_return_slot(scheduling.slot_at(start), asap=False)
        return_start = scheduling.slot_start(estimate)
        order.pickup_date = start.date()
        order.pickup_time = slot.start
        order.pickup_slot = as_utc(start)
        order.return_date = return_start.date()
        order.return_time = estimate.start
        order.delivery_slot = as_utc(return_start)
    elif kind == "return":
        pickup_at = as_utc(order.pickup_slot)
        if pickup_at is not None and as_utc(start) <= pickup_at:
            raise HTTPException(status_code=400, detail="Return must be after pickup")
        order.return_date = start.date()
        order.return_time = slot.start
        order.delivery_slot = as_utc(start)
    else:
        raise HTTPException(status_code=400, detail="kind must be 'pickup' or 'return'")

    _record_change(db, actor, order, f"{kind} rescheduled to {slot.date} {slot.start}")
    db.commit()
    db.refresh(order)
    order_events.publish(OrderChanged(order_id=order.id, status=OrderStatus(order.status).value))
    return order


def assign_driver(db: Session, actor: ActorContext, order: Order, driver_id: Optional[str]) -> Order:
    authorize(actor, Role.ADMIN)
    if driver_id is not None:
        grant = db.query(UserRole).filter(UserRole.user_id == driver_id).first()
        if grant is None or Role(grant.role) != Role.DRIVER:
            raise HTTPException(status_code=400, detail="Assignee must be a driver")
    previous = order.driver_id
    order.driver_id = driver_id
    _record_change(db, actor, order, "driver reassigned")
    db.commit()
    db.refresh(order)
    logger.info("order %s driver %s -> %s", order.id, redact_user_id(previous), redact_user_id(driver_id))
    order_events.publish(OrderChanged(order_id=order.id, status=OrderStatus(order.status).value))
    return order
