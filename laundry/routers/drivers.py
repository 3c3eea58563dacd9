from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from laundry.database import get_db
from laundry.deps import get_actor
from laundry.schemas.driver import ShiftResponse, CalendarEventCreate, CalendarEventResponse
from laundry.services import driver_service
from laundry.services.authorization import ActorContext

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post("/shifts/start", response_model=ShiftResponse, status_code=201)
def start_shift(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return driver_service.start_shift(db, actor)


@router.post("/shifts/end", response_model=ShiftResponse)
def end_shift(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return driver_service.end_shift(db, actor)


@router.get("/shifts/current", response_model=Optional[ShiftResponse])
def current_shift(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return driver_service.current_shift(db, actor)


@router.get("/calendar", response_model=List[CalendarEventResponse])
def list_events(db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    return driver_service.list_events(db, actor)


@router.post("/calendar", response_model=CalendarEventResponse, status_code=201)
def create_event(payload: CalendarEventCreate, db: Session = Depends(get_db),
                 actor: ActorContext = Depends(get_actor)):
    return driver_service.create_event(db, actor, payload)


@router.delete("/calendar/{event_id}", status_code=204)
def delete_event(event_id: int, db: Session = Depends(get_db), actor: ActorContext = Depends(get_actor)):
    if not driver_service.delete_event(db, actor, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return
