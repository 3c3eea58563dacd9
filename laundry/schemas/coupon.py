from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from laundry.utils.enums import DiscountType


# Request schemas
class CouponCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    discount_type: DiscountType
    discount_value: float = Field(..., gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = Field(None, gt=0)
    usage_limit: Optional[int] = Field(default=None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


# Response schemas
class CouponResponse(BaseModel):
    id: int
    code: str
    discount_type: DiscountType
    discount_value: float
    usage_count: int
    usage_limit: Optional[int] = None
    valid_from: datetime
    valid_until: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CouponValidationRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    order_total: float = Field(..., ge=0)


class CouponValidationResponse(BaseModel):
    valid: bool
    reason: Optional[str] = None
    discount: float = 0.0
    coupon: Optional[CouponResponse] = None
