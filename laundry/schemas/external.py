from pydantic import BaseModel, Field
from typing import Dict, List


class GeocodeRequest(BaseModel):
    address: str = Field(..., max_length=500)


class Coordinates(BaseModel):
    lat: float
    lng: float


class GeocodeResponse(BaseModel):
    success: bool = True
    coordinates: Coordinates


class AutocompleteRequest(BaseModel):
    text: str = Field(..., max_length=200)


class AddressSuggestion(BaseModel):
    address: str
    street: str = ""
    city: str = ""
    postcode: str = ""
    coordinates: Coordinates


class AutocompleteResponse(BaseModel):
    suggestions: List[AddressSuggestion]


class PaymentRequest(BaseModel):
    order_id: int = Field(..., gt=0)


class PaymentSessionResponse(BaseModel):
    session_id: str
    url: str


class ReportResponse(BaseModel):
    orders_by_status: Dict[str, int]
    total_orders: int
    revenue: float
    discounts_granted: float
    deliveries_by_driver: Dict[str, int]
