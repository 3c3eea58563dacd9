from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime

from laundry.utils.enums import Role


class UserCreate(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    full_name: Optional[str] = Field(None, max_length=120)
    phone: Optional[str] = Field(None, pattern=r"^[\d\s\-\+\(\)]{7,20}$")
    address: Optional[str] = Field(None, max_length=500)
    role: Role = Role.CUSTOMER


class RoleUpdate(BaseModel):
    role: Role


class UserResponse(BaseModel):
    id: str
    email: str
    role: Role
    full_name: Optional[str] = None
    phone: Optional[str] = None
    points_balance: int = 0


class PointsTransactionResponse(BaseModel):
    order_id: Optional[int] = None
    points: int
    transaction_type: str
    description: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PointsSummary(BaseModel):
    balance: int
    transactions: List[PointsTransactionResponse]
