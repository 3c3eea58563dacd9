from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import datetime


class ShiftResponse(BaseModel):
    id: int
    driver_id: str
    is_active: bool
    started_at: datetime
    ended_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CalendarEventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    starts_at: datetime
    ends_at: datetime
    notes: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def check_range(self):
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class CalendarEventResponse(BaseModel):
    id: int
    driver_id: str
    title: str
    starts_at: datetime
    ends_at: datetime
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
