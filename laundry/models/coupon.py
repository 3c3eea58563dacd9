from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, ForeignKey, Index

from laundry.database import Base
from laundry.utils.enums import DiscountType


def _now():
    return datetime.now(timezone.utc)


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    discount_type = Column(Enum(DiscountType, name="discount_type", values_callable=lambda e: [m.value for m in e]),
                           nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    usage_count = Column(Integer, default=0, nullable=False)
    usage_limit = Column(Integer, nullable=True)
    valid_from = Column(DateTime(timezone=True), default=_now, nullable=False)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        Index("ix_coupons_validity", "valid_from", "valid_until"),
    )
