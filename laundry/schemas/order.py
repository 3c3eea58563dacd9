from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import date, datetime

from laundry.schemas.coupon import CouponResponse
from laundry.schemas.scheduling import TimeSlot
from laundry.utils.enums import OrderStatus, PickupOption, PaymentMethod, PaymentStatus


class RugDimensions(BaseModel):
    length: float = Field(..., gt=0, le=200, description="cm")
    width: float = Field(..., gt=0, le=300, description="cm")


class CartItemIn(BaseModel):
    service_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., gt=0, le=100)
    rug_dimensions: Optional[RugDimensions] = None


class OrderRequest(BaseModel):
    cart_items: List[CartItemIn] = Field(..., min_length=1, max_length=50)
    phone: str = Field(..., pattern=r"^[\d\s\-\+\(\)]{7,20}$")
    address: str = Field(..., min_length=5, max_length=500)
    special_instructions: Optional[str] = Field(None, max_length=1000)
    pickup_option: PickupOption
    selected_time_slot: Optional[TimeSlot] = None
    coupon_code: Optional[str] = Field(None, max_length=50)
    payment_method: PaymentMethod = PaymentMethod.CASH


class ValidatedItem(BaseModel):
    service_id: str
    name: str
    unit_price: float
    quantity: int
    total: float
    rug_dimensions: Optional[RugDimensions] = None


class OrderValidationResponse(BaseModel):
    valid: bool = True
    items: List[ValidatedItem]
    subtotal: float
    discount: float
    final_price: float
    coupon: Optional[CouponResponse] = None
    pickup_slot: TimeSlot
    estimated_return_slot: TimeSlot


class OrderItemResponse(BaseModel):
    service_type: str
    service_name: str
    quantity: int
    unit_price: float
    total_price: float
    item_metadata: Optional[dict] = None

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    id: int
    user_id: str
    driver_id: Optional[str] = None
    status: OrderStatus
    created_at: datetime
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    actual_pickup_time: Optional[datetime] = None
    actual_return_time: Optional[datetime] = None
    service_name: str
    phone: str
    address: str
    special_instructions: Optional[str] = None
    pickup_option: PickupOption
    pickup_date: date
    pickup_time: str
    return_date: date
    return_time: str
    price: float
    final_price: float
    discount_code: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    items: List[OrderItemResponse] = []

    model_config = ConfigDict(from_attributes=True)


class TransitionRequest(BaseModel):
    status: OrderStatus
    note: Optional[str] = Field(None, max_length=255)


class RescheduleRequest(BaseModel):
    kind: str = Field(..., pattern=r"^(pickup|return)$")
    slot: TimeSlot


class InstructionsUpdate(BaseModel):
    special_instructions: str = Field(..., max_length=1000)


class DriverAssignment(BaseModel):
    driver_id: Optional[str] = Field(None, max_length=36)
