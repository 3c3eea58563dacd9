from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, text

from laundry.database import Base


def _now():
    return datetime.now(timezone.utc)


class DriverShift(Base):
    __tablename__ = "driver_shifts"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    started_at = Column(DateTime(timezone=True), default=_now, nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # one open shift per driver
        Index(
            "uq_driver_shifts_active", "driver_id", unique=True,
            postgresql_where=text("is_active"), sqlite_where=text("is_active = 1"),
        ),
    )


class DriverCalendarEvent(Base):
    __tablename__ = "driver_calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    driver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    notes = Column(String(1000), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)
