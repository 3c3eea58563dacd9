"""User administration, including the account deletion cascade."""
import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session

from laundry.logging_config import redact_user_id
from laundry.models.driver import DriverShift, DriverCalendarEvent
from laundry.models.order import Order, OrderHistory, OrderRejection
from laundry.models.points import PointsTransaction
from laundry.models.user import User, UserRole, Profile
from laundry.schemas.user import UserCreate, UserResponse
from laundry.services.authorization import ActorContext, authorize
from laundry.utils.enums import Role

logger = logging.getLogger("laundry.accounts")


def to_response(db: Session, user: User) -> UserResponse:
    grant = db.query(UserRole).filter(UserRole.user_id == user.id).first()
    profile = db.query(Profile).filter(Profile.user_id == user.id).first()
    return UserResponse(
        id=user.id,
        email=user.email,
        role=Role(grant.role) if grant else Role.CUSTOMER,
        full_name=profile.full_name if profile else None,
        phone=profile.phone if profile else None,
        points_balance=profile.points_balance if profile else 0,
    )


def list_users(db: Session, actor: ActorContext) -> List[UserResponse]:
    authorize(actor, Role.ADMIN)
    return [to_response(db, u) for u in db.query(User).order_by(User.created_at).all()]


def create_user(db: Session, actor: ActorContext, data: UserCreate) -> User:
    authorize(actor, Role.ADMIN)
    email = data.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="A user with this email already exists")
    user = User(email=email)
    db.add(user)
    db.flush()
    db.add(UserRole(user_id=user.id, role=data.role))
    db.add(Profile(user_id=user.id, full_name=data.full_name, phone=data.phone, address=data.address))
    db.commit()
    db.refresh(user)
    logger.info("user %s created with role %s", redact_user_id(user.id), data.role.value)
    return user


def set_role(db: Session, actor: ActorContext, user_id: str, role: Role) -> User:
    authorize(actor, Role.ADMIN)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    grant = db.query(UserRole).filter(UserRole.user_id == user_id).first()
    if grant is None:
        db.add(UserRole(user_id=user_id, role=role))
    else:
        grant.role = role
    db.commit()
    logger.info("role of %s set to %s", redact_user_id(user_id), role.value)
    return user


def delete_user(db: Session, actor: ActorContext, user_id: str) -> bool:
    """Remove a user and everything pointing at them; returns False when there was nothing to delete.

    Rows are removed in foreign-key order: history, rejections, calendar and
    shifts first, then references on other orders, then the user's own
    orders, then role and profile, and the identity last.
    """
    authorize(actor, Role.ADMIN)
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    if user_id == actor.user_id:
        raise HTTPException(status_code=400, detail="Admins cannot delete themselves")

    redacted = redact_user_id(user_id)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info("delete requested for unknown user %s, nothing to do", redacted)
        return False

    try:
        db.query(OrderHistory).filter(OrderHistory.changed_by == user_id).delete(synchronize_session=False)
        db.query(OrderRejection).filter(OrderRejection.driver_id == user_id).delete(synchronize_session=False)
        db.query(DriverCalendarEvent).filter(DriverCalendarEvent.driver_id == user_id).delete(synchronize_session=False)
        db.query(DriverShift).filter(DriverShift.driver_id == user_id).delete(synchronize_session=False)
        db.query(Order).filter(Order.driver_id == user_id).update(
            {Order.driver_id: None}, synchronize_session=False
        )
        db.query(Order).filter(Order.rejected_by == user_id).update(
            {Order.rejected_by: None}, synchronize_session=False
        )
        db.query(PointsTransaction).filter(PointsTransaction.user_id == user_id).delete(synchronize_session=False)
        # ORM deletes so items, history and rejections of these orders go with them
        for order in db.query(Order).filter(Order.user_id == user_id).all():
            db.delete(order)
        db.flush()
        db.query(UserRole).filter(UserRole.user_id == user_id).delete(synchronize_session=False)
        db.query(Profile).filter(Profile.user_id == user_id).delete(synchronize_session=False)
        db.query(User).filter(User.id == user_id).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("failed to delete user %s", redacted)
        raise

    logger.info("deleted user %s", redacted)
    return True
