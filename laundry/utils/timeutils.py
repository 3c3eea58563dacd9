from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from laundry import config


def business_tz() -> ZoneInfo:
    return ZoneInfo(config.BUSINESS_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def now_local() -> datetime:
    return datetime.now(business_tz())


def as_utc(dt):
    """SQLite hands back naive datetimes; those are stored as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
