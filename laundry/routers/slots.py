from fastapi import APIRouter, HTTPException, Query
from typing import List

from laundry import config
from laundry.schemas.scheduling import TimeSlot, ScheduleEstimate
from laundry.services import scheduling
from laundry.utils.enums import PickupOption

router = APIRouter(prefix="/slots", tags=["scheduling"])


@router.get("", response_model=List[TimeSlot])
def list_slots(days: int = Query(config.SLOT_HORIZON_DAYS, ge=0, le=14), start_from_today: bool = True):
    return list(scheduling.generate_time_slots(days=days, start_from_today=start_from_today))


@router.get("/asap", response_model=ScheduleEstimate)
def asap():
    pickup = scheduling.asap_slot()
    return ScheduleEstimate(pickup=pickup, estimated_return=scheduling.estimate_return_slot(pickup, asap=True))


@router.post("/estimate", response_model=ScheduleEstimate)
def estimate(pickup: TimeSlot, pickup_option: PickupOption = PickupOption.CHOOSE_TIME):
    if not scheduling.is_valid_slot(pickup):
        raise HTTPException(status_code=400, detail="Invalid pickup time slot")
    return ScheduleEstimate(
        pickup=pickup,
        estimated_return=scheduling.estimate_return_slot(pickup, asap=pickup_option == PickupOption.ASAP),
    )
