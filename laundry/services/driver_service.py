import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from laundry.logging_config import redact_user_id
from laundry.models.driver import DriverShift, DriverCalendarEvent
from laundry.schemas.driver import CalendarEventCreate
from laundry.services.authorization import ActorContext, authorize
from laundry.utils.enums import Role
from laundry.utils.timeutils import utcnow

logger = logging.getLogger("laundry.drivers")


def current_shift(db: Session, actor: ActorContext) -> Optional[DriverShift]:
    authorize(actor, Role.DRIVER)
    return (
        db.query(DriverShift)
        .filter(DriverShift.driver_id == actor.user_id, DriverShift.is_active.is_(True))
        .first()
    )


def start_shift(db: Session, actor: ActorContext) -> DriverShift:
    if current_shift(db, actor) is not None:
        raise HTTPException(status_code=409, detail="Driver already has an active shift")
    shift = DriverShift(driver_id=actor.user_id, is_active=True, started_at=utcnow())
    db.add(shift)
    try:
        db.commit()
    except IntegrityError:
        # lost a race against another start request for the same driver
        db.rollback()
        raise HTTPException(status_code=409, detail="Driver already has an active shift")
    db.refresh(shift)
    logger.info("shift %s started by %s", shift.id, redact_user_id(actor.user_id))
    return shift


def end_shift(db: Session, actor: ActorContext) -> DriverShift:
    shift = current_shift(db, actor)
    if shift is None:
        raise HTTPException(status_code=404, detail="No active shift")
    shift.is_active = False
    shift.ended_at = utcnow()
    db.commit()
    db.refresh(shift)
    logger.info("shift %s ended by %s", shift.id, redact_user_id(actor.user_id))
    return shift


def list_events(db: Session, actor: ActorContext) -> List[DriverCalendarEvent]:
    authorize(actor, Role.DRIVER)
    return (
        db.query(DriverCalendarEvent)
        .filter(DriverCalendarEvent.driver_id == actor.user_id)
        .order_by(DriverCalendarEvent.starts_at)
        .all()
    )


def create_event(db: Session, actor: ActorContext, data: CalendarEventCreate) -> DriverCalendarEvent:
    authorize(actor, Role.DRIVER)
    event = DriverCalendarEvent(
        driver_id=actor.user_id,
        title=data.title,
        starts_at=data.starts_at,
        ends_at=data.ends_at,
        notes=data.notes,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, actor: ActorContext, event_id: int) -> bool:
    authorize(actor, Role.DRIVER)
    event = (
        db.query(DriverCalendarEvent)
        .filter(DriverCalendarEvent.id == event_id, DriverCalendarEvent.driver_id == actor.user_id)
        .first()
    )
    if not event:
        return False
    db.delete(event)
    db.commit()
    return True
