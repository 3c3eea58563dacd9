from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.coupon import (
    CouponCreate, CouponUpdate, CouponResponse, CouponValidationRequest, CouponValidationResponse
)
from laundry.services.authorization import ActorContext, authorize
from laundry.services.coupon_service import CouponService
from laundry.utils.enums import Role

router = APIRouter(prefix="", tags=["coupons"])


@router.post("/coupons", response_model=CouponResponse, status_code=201)
def create_coupon(coupon: CouponCreate, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    return CouponService.create_coupon(db, coupon, created_by=actor.user_id)


@router.get("/coupons", response_model=List[CouponResponse])
def list_coupons(skip: int = 0, limit: int = 100, db: Session = Depends(get_db),
                 actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    return CouponService.get_coupons(db, skip, limit)


@router.get("/coupons/{coupon_id}", response_model=CouponResponse)
def get_coupon(coupon_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    c = CouponService.get_coupon(db, coupon_id)
    if not c:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return c


@router.put("/coupons/{coupon_id}", response_model=CouponResponse)
def update_coupon(coupon_id: int, payload: CouponUpdate, db: Session = Depends(get_db),
                  actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    updated = CouponService.update_coupon(db, coupon_id, payload)
    if not updated:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return updated


@router.delete("/coupons/{coupon_id}", status_code=204)
def delete_coupon(coupon_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    authorize(actor, Role.ADMIN)
    ok = CouponService.delete_coupon(db, coupon_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return


@router.post("/coupons/validate", response_model=CouponValidationResponse)
def validate_coupon(body: CouponValidationRequest, db: Session = Depends(get_db),
                    actor: ActorContext = Depends(get_actor)):
    # lenient on purpose: checkout shows "no discount", the order gateway rejects
    valid, reason, coupon, discount = CouponService.validate_coupon(db, body.code, body.order_total)
    return CouponValidationResponse(
        valid=valid,
        reason=reason,
        discount=float(discount),
        coupon=CouponResponse.model_validate(coupon) if coupon else None,
    )
