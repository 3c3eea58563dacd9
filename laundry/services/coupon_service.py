import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from laundry.models.coupon import Coupon
from laundry.schemas.coupon import CouponCreate, CouponUpdate
from laundry.services.pricing import D, calculate_discount
from laundry.utils.enums import DiscountType
from laundry.utils.timeutils import as_utc, utcnow

logger = logging.getLogger("laundry.coupons")


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


class CouponService:
    """Service class for CRUD, validation and redemption of coupons"""

    @staticmethod
    def create_coupon(db: Session, coupon_data: CouponCreate, created_by: Optional[str] = None) -> Coupon:
        code = normalize_code(coupon_data.code)
        valid_from = coupon_data.valid_from or utcnow()
        CouponService._validate_coupon_fields(
            coupon_data.discount_type, coupon_data.discount_value, valid_from, coupon_data.valid_until
        )
        if CouponService.get_coupon_by_code(db, code):
            raise HTTPException(status_code=400, detail=f"Coupon code '{code}' already exists")
        db_coupon = Coupon(
            code=code,
            discount_type=coupon_data.discount_type,
            discount_value=D(coupon_data.discount_value),
            usage_limit=coupon_data.usage_limit,
            valid_from=valid_from,
            valid_until=coupon_data.valid_until,
            created_by=created_by,
        )
        db.add(db_coupon)
        db.commit()
        db.refresh(db_coupon)
        logger.info("coupon %s created", code)
        return db_coupon

    @staticmethod
    def get_coupon(db: Session, coupon_id: int) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.id == coupon_id).first()

    @staticmethod
    def get_coupon_by_code(db: Session, code: str) -> Optional[Coupon]:
        return db.query(Coupon).filter(Coupon.code == normalize_code(code)).first()

    @staticmethod
    def get_coupons(db: Session, skip: int = 0, limit: int = 100) -> List[Coupon]:
        limit = min(max(limit, 1), 500)
        return db.query(Coupon).order_by(Coupon.created_at.desc()).offset(skip).limit(limit).all()

    @staticmethod
    def update_coupon(db: Session, coupon_id: int, coupon_data: CouponUpdate) -> Optional[Coupon]:
        db_coupon = CouponService.get_coupon(db, coupon_id)
        if not db_coupon:
            return None

        # Compute final fields then validate
        final_type = coupon_data.discount_type or db_coupon.discount_type
        final_value = coupon_data.discount_value if coupon_data.discount_value is not None else db_coupon.discount_value
        final_from = coupon_data.valid_from or db_coupon.valid_from
        final_until = coupon_data.valid_until if coupon_data.valid_until is not None else db_coupon.valid_until
        CouponService._validate_coupon_fields(final_type, final_value, final_from, final_until)

        if coupon_data.code is not None:
            code = normalize_code(coupon_data.code)
            clash = CouponService.get_coupon_by_code(db, code)
            if clash and clash.id != db_coupon.id:
                raise HTTPException(status_code=400, detail=f"Coupon code '{code}' already exists")
            db_coupon.code = code

        db_coupon.discount_type = final_type
        db_coupon.discount_value = D(final_value)
        db_coupon.valid_from = final_from
        db_coupon.valid_until = final_until
        if coupon_data.usage_limit is not None:
            db_coupon.usage_limit = coupon_data.usage_limit

        db.commit()
        db.refresh(db_coupon)
        return db_coupon

    @staticmethod
    def delete_coupon(db: Session, coupon_id: int) -> bool:
        db_coupon = CouponService.get_coupon(db, coupon_id)
        if not db_coupon:
            return False
        db.delete(db_coupon)
        db.commit()
        logger.info("coupon %s deleted", db_coupon.code)
        return True

    @staticmethod
    def _validate_coupon_fields(discount_type, discount_value, valid_from, valid_until) -> None:
        value = D(discount_value)
        if value <= 0:
            raise HTTPException(status_code=400, detail="discount_value must be a positive number")
        if DiscountType(discount_type) == DiscountType.PERCENTAGE and value > 100:
            raise HTTPException(status_code=400, detail="Percentage discount cannot exceed 100")
        if valid_until is not None and as_utc(valid_until) < as_utc(valid_from):
            raise HTTPException(status_code=400, detail="valid_until must not be before valid_from")

    @staticmethod
    def redeemability_problem(coupon: Coupon, now: Optional[datetime] = None) -> Optional[str]:
        now = as_utc(now) if now else utcnow()
        if as_utc(coupon.valid_from) > now:
            return "Coupon is not valid yet"
        if coupon.valid_until is not None and as_utc(coupon.valid_until) < now:
            return "Coupon is expired"
        if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
            return "Coupon usage limit reached"
        return None

    @staticmethod
    def ensure_redeemable(coupon: Coupon, now: Optional[datetime] = None) -> None:
        problem = CouponService.redeemability_problem(coupon, now)
        if problem:
            raise HTTPException(status_code=400, detail=problem)

    @staticmethod
    def validate_coupon(db: Session, code: str, order_total, now=None) -> Tuple[bool, Optional[str], Optional[Coupon], Decimal]:
        """Lenient check for checkout previews: never raises, reports why a code does not apply."""
        coupon = CouponService.get_coupon_by_code(db, code)
        if not coupon:
            return False, "Coupon not found", None, Decimal("0.00")
        problem = CouponService.redeemability_problem(coupon, now)
        if problem:
            return False, problem, None, Decimal("0.00")
        discount = calculate_discount(D(order_total), coupon.discount_type, coupon.discount_value)
        return True, None, coupon, discount

    @staticmethod
    def redeem(db: Session, coupon: Coupon) -> None:
        """Atomically count one use; the caller owns the transaction."""
        updated = (
            db.query(Coupon)
            .filter(
                Coupon.id == coupon.id,
                or_(Coupon.usage_limit.is_(None), Coupon.usage_count < Coupon.usage_limit),
            )
            .update({Coupon.usage_count: Coupon.usage_count + 1}, synchronize_session=False)
        )
        if updated == 0:
            raise HTTPException(status_code=400, detail="Coupon usage limit reached")
