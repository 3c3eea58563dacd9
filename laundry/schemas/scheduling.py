from pydantic import BaseModel, Field


class TimeSlot(BaseModel):
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="Calendar date, YYYY-MM-DD")
    start: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Window start, HH:MM")
    end: str = Field(..., pattern=r"^\d{2}:\d{2}$", description="Window end, HH:MM")
    display: str = ""


class ScheduleEstimate(BaseModel):
    pickup: TimeSlot
    estimated_return: TimeSlot
