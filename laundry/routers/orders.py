from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.order import (
    OrderRequest, OrderResponse, OrderValidationResponse, ValidatedItem,
    TransitionRequest, RescheduleRequest, InstructionsUpdate,
)
from laundry.schemas.coupon import CouponResponse
from laundry.services import order_service, order_state
from laundry.services.authorization import ActorContext
from laundry.utils.enums import OrderStatus

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/validate", response_model=OrderValidationResponse)
def validate_order(payload: OrderRequest, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    validated = order_service.validate_order(db, actor, payload)
    return OrderValidationResponse(
        items=[
            ValidatedItem(
                service_id=line.service_id,
                name=line.name,
                unit_price=float(line.unit_price),
                quantity=line.quantity,
                total=float(line.total),
                rug_dimensions=line.rug_dimensions,
            )
            for line in validated.lines
        ],
        subtotal=float(validated.pricing.subtotal),
        discount=float(validated.pricing.discount),
        final_price=float(validated.pricing.final_price),
        coupon=CouponResponse.model_validate(validated.coupon) if validated.coupon else None,
        pickup_slot=validated.pickup_slot,
        estimated_return_slot=validated.return_slot,
    )


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(payload: OrderRequest, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return order_service.create_order(db, actor, payload)


@router.get("", response_model=List[OrderResponse])
def list_orders(status: Optional[OrderStatus] = None, db: Session = Depends(get_db),
                actor: ActorContext = Depends(get_actor)):
    return order_service.list_orders(db, actor, status)


@router.get("/pool", response_model=List[OrderResponse])
def order_pool(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return order_service.list_pool(db, actor)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return order_service.get_order_for_actor(db, actor, order_id)


@router.post("/{order_id}/status", response_model=OrderResponse)
def change_status(order_id: int, payload: TransitionRequest, db: Session = Depends(get_db),
                  actor: ActorContext = Depends(get_actor)):
    # always act on a fresh read; change notifications are only hints
    order = order_service.get_order_for_actor(db, actor, order_id)
    return order_state.transition(db, actor, order, payload.status, payload.note)


@router.post("/{order_id}/reschedule", response_model=OrderResponse)
def reschedule(order_id: int, payload: RescheduleRequest, db: Session = Depends(get_db),
               actor: ActorContext = Depends(get_actor)):
    order = order_service.get_order_for_actor(db, actor, order_id)
    return order_state.reschedule(db, actor, order, payload.kind, payload.slot)


@router.patch("/{order_id}/instructions", response_model=OrderResponse)
def update_instructions(order_id: int, payload: InstructionsUpdate, db: Session = Depends(get_db),
                        actor: ActorContext = Depends(get_actor)):
    return order_service.update_instructions(db, actor, order_id, payload.special_instructions)
