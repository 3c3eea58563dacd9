from datetime import datetime, timedelta

import pytest

from laundry.schemas.scheduling import TimeSlot
from laundry.services import scheduling
from laundry.utils.timeutils import business_tz


def _local(y, m, d, h, minute=0):
    return datetime(y, m, d, h, minute, tzinfo=business_tz())


def _hours(slot):
    return int(slot.start[:2]), int(slot.end[:2])


def test_every_slot_is_two_hours_within_opening_hours():
    slots = list(scheduling.generate_time_slots(_local(2026, 10, 19, 6), days=7))
    assert len(slots) == 7 * 6
    for slot in slots:
        start, end = _hours(slot)
        assert end - start == 2
        assert 8 <= start <= 18
        assert slot.start.endswith(":00")


def test_no_slot_today_starts_before_now():
    now = _local(2026, 10, 19, 11, 30)
    today = [s for s in scheduling.generate_time_slots(now, days=1)]
    assert [s.start for s in today] == ["12:00", "14:00", "16:00", "18:00"]


def test_slot_starting_now_is_not_offered():
    now = _local(2026, 10, 19, 12, 0)
    first = next(scheduling.generate_time_slots(now, days=1))
    assert first.start == "14:00"


def test_generator_is_lazy_and_restartable():
    now = _local(2026, 10, 19, 7)
    gen = scheduling.generate_time_slots(now, days=2)
    assert next(gen).start == "08:00"
    assert next(scheduling.generate_time_slots(now, days=2)).start == "08:00"


def test_start_from_tomorrow():
    now = _local(2026, 10, 19, 7)
    slots = list(scheduling.generate_time_slots(now, days=3, start_from_today=False))
    assert slots[0].date == "2026-10-20"
    assert len(slots) == 2 * 6


def test_display_uses_finnish_weekday():
    slot = scheduling.slot_at(_local(2026, 10, 19, 8))
    assert slot.display == "maanantai 19.10. klo 08:00-10:00"


def test_asap_after_last_slot_rolls_to_next_morning():
    slot = scheduling.asap_slot(_local(2026, 10, 19, 18, 5))
    assert (slot.date, slot.start, slot.end) == ("2026-10-20", "08:00", "10:00")


def test_asap_takes_first_future_slot():
    slot = scheduling.asap_slot(_local(2026, 10, 19, 9, 15))
    assert (slot.date, slot.start) == ("2026-10-19", "10:00")


def test_scheduled_evening_pickup_returns_next_morning():
    pickup = TimeSlot(date="2026-10-19", start="18:00", end="20:00")
    estimate = scheduling.estimate_return_slot(pickup, asap=False)
    assert (estimate.date, estimate.start, estimate.end) == ("2026-10-20", "08:00", "10:00")


@pytest.mark.parametrize("pickup_start,asap,expected", [
    ("08:00", False, ("2026-10-19", "13:00")),
    ("08:00", True, ("2026-10-19", "15:00")),
    ("12:00", True, ("2026-10-19", "19:00")),
    ("14:00", False, ("2026-10-19", "19:00")),
    ("14:00", True, ("2026-10-20", "08:00")),
])
def test_return_estimate_offsets(pickup_start, asap, expected):
    end = f"{int(pickup_start[:2]) + 2:02d}:00"
    pickup = TimeSlot(date="2026-10-19", start=pickup_start, end=end)
    estimate = scheduling.estimate_return_slot(pickup, asap=asap)
    assert (estimate.date, estimate.start) == expected


def test_return_estimate_across_dst_change_keeps_wall_clock():
    # clocks go back on 2026-10-25 in Helsinki
    pickup = TimeSlot(date="2026-10-24", start="18:00", end="20:00")
    estimate = scheduling.estimate_return_slot(pickup)
    assert (estimate.date, estimate.start) == ("2026-10-25", "08:00")


@pytest.mark.parametrize("slot,valid", [
    (TimeSlot(date="2026-10-19", start="08:00", end="10:00"), True),
    (TimeSlot(date="2026-10-19", start="18:00", end="20:00"), True),
    (TimeSlot(date="2026-10-19", start="09:00", end="11:00"), False),
    (TimeSlot(date="2026-10-19", start="20:00", end="22:00"), False),
    (TimeSlot(date="2026-10-19", start="08:00", end="12:00"), False),
    (TimeSlot(date="2026-13-40", start="08:00", end="10:00"), False),
])
def test_is_valid_slot(slot, valid):
    assert scheduling.is_valid_slot(slot) is valid


def test_slots_endpoint(client):
    response = client.get("/slots", params={"days": 2})
    assert response.status_code == 200
    slots = response.json()
    assert 6 <= len(slots) <= 12
    tomorrow = (datetime.now(business_tz()) + timedelta(days=1)).strftime("%Y-%m-%d")
    assert sum(1 for s in slots if s["date"] == tomorrow) == 6


def test_estimate_endpoint(client):
    response = client.post(
        "/slots/estimate",
        json={"date": "2026-10-19", "start": "18:00", "end": "20:00"},
    )
    assert response.status_code == 200
    assert response.json()["estimated_return"]["start"] == "08:00"


def test_estimate_endpoint_rejects_off_grid_slot(client):
    response = client.post(
        "/slots/estimate",
        json={"date": "2026-10-19", "start": "07:00", "end": "09:00"},
    )
    assert response.status_code == 400
