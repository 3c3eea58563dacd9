from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

from laundry.utils.enums import PricingModel


class ProductCreate(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9_\-]+$")
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=64)
    base_price: float = Field(..., ge=0, le=10000)
    pricing_model: PricingModel = PricingModel.FIXED
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=64)
    base_price: Optional[float] = Field(None, ge=0, le=10000)
    is_active: Optional[bool] = None


class ProductResponse(BaseModel):
    product_id: str
    name: str
    category: Optional[str] = None
    base_price: float
    pricing_model: PricingModel
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
