"""Pickup and return windows.

Slots are two-hour windows on the business wall clock, starting on even
hours from 08:00 through 18:00, so the last window closes at 20:00.
"""
from datetime import datetime, date, time, timedelta
from typing import Iterator, Optional

from laundry import config
from laundry.schemas.scheduling import TimeSlot
from laundry.utils.timeutils import business_tz, now_local

OPENING_HOUR = 8
CLOSING_HOUR = 20
LAST_START_HOUR = 18
SLOT_HOURS = 2

ASAP_RETURN_OFFSET = timedelta(hours=7)
SCHEDULED_RETURN_OFFSET = timedelta(hours=5)

FINNISH_WEEKDAYS = (
    "maanantai", "tiistai", "keskiviikko", "torstai", "perjantai", "lauantai", "sunnuntai",
)


def _display(start: datetime, end: datetime) -> str:
    weekday = FINNISH_WEEKDAYS[start.weekday()]
    return f"{weekday} {start.day}.{start.month}. klo {start:%H:%M}-{end:%H:%M}"


def slot_at(start: datetime) -> TimeSlot:
    """The two-hour window beginning at ``start``."""
    end = start + timedelta(hours=SLOT_HOURS)
    return TimeSlot(
        date=start.strftime("%Y-%m-%d"),
        start=start.strftime("%H:%M"),
        end=end.strftime("%H:%M"),
        display=_display(start, end),
    )


def _localize(now: Optional[datetime]) -> datetime:
    if now is None:
        return now_local()
    if now.tzinfo is None:
        return now.replace(tzinfo=business_tz())
    return now.astimezone(business_tz())


def generate_time_slots(
    now: Optional[datetime] = None,
    days: Optional[int] = None,
    start_from_today: bool = True,
) -> Iterator[TimeSlot]:
    """Yield every bookable window in the horizon, in order.

    Today's windows that have already started are skipped. With
    ``start_from_today=False`` the horizon begins tomorrow, which is what a
    driver sees when proposing a new return window.
    """
    now = _localize(now)
    horizon = config.SLOT_HORIZON_DAYS if days is None else days
    first_day = 0 if start_from_today else 1

    for day_offset in range(first_day, horizon):
        day = now.date() + timedelta(days=day_offset)
        for hour in range(OPENING_HOUR, LAST_START_HOUR + 1, SLOT_HOURS):
            start = datetime.combine(day, time(hour, 0), tzinfo=now.tzinfo)
            if day_offset == 0 and start <= now:
                continue
            yield slot_at(start)


def asap_slot(now: Optional[datetime] = None) -> TimeSlot:
    """First window starting after ``now``; rolls to tomorrow 08:00 after the last one."""
    now = _localize(now)
    for slot in generate_time_slots(now, days=1):
        return slot
    tomorrow = now.date() + timedelta(days=1)
    return slot_at(datetime.combine(tomorrow, time(OPENING_HOUR, 0), tzinfo=now.tzinfo))


def slot_start(slot: TimeSlot) -> datetime:
    day = date.fromisoformat(slot.date)
    hours, minutes = (int(part) for part in slot.start.split(":"))
    return datetime.combine(day, time(hours, minutes), tzinfo=business_tz())


def is_valid_slot(slot: TimeSlot) -> bool:
    """Window sits on the grid: even start hour 08..18, two hours long."""
    try:
        start = slot_start(slot)
        end_h, end_m = (int(part) for part in slot.end.split(":"))
    except ValueError:
        return False
    if start.minute != 0 or end_m != 0:
        return False
    if start.hour < OPENING_HOUR or start.hour > LAST_START_HOUR or (start.hour - OPENING_HOUR) % SLOT_HOURS:
        return False
    return end_h == start.hour + SLOT_HOURS


def estimate_return_slot(pickup: TimeSlot, asap: bool = False) -> TimeSlot:
    offset = ASAP_RETURN_OFFSET if asap else SCHEDULED_RETURN_OFFSET
    # wall-clock arithmetic, DST shifts do not move the window
    start = slot_start(pickup).replace(tzinfo=None) + offset

    if start.hour >= CLOSING_HOUR:
        start = datetime.combine(start.date() + timedelta(days=1), time(OPENING_HOUR, 0))
    elif start.hour < OPENING_HOUR:
        start = datetime.combine(start.date(), time(OPENING_HOUR, 0))

    return slot_at(start)
