import logging
import math
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from laundry import config
from laundry.logging_config import redact_user_id
from laundry.models.points import PointsTransaction
from laundry.models.user import Profile
from laundry.utils.timeutils import utcnow

logger = logging.getLogger("laundry.points")

EARNED = "earned"


def points_for(final_price) -> int:
    """One point per whole euro paid."""
    return max(0, math.floor(final_price))


def award_order_points(db: Session, order, now=None) -> Optional[PointsTransaction]:
    """Credit the customer for a delivered order, once per order. Caller commits."""
    points = points_for(order.final_price)
    if points <= 0:
        return None
    already = (
        db.query(PointsTransaction)
        .filter(PointsTransaction.order_id == order.id, PointsTransaction.transaction_type == EARNED)
        .first()
    )
    if already:
        return None

    now = now or utcnow()
    txn = PointsTransaction(
        user_id=order.user_id,
        order_id=order.id,
        points=points,
        transaction_type=EARNED,
        description="Pisteet tilauksesta",
        expires_at=now + timedelta(days=config.POINTS_EXPIRY_DAYS),
    )
    db.add(txn)

    profile = db.query(Profile).filter(Profile.user_id == order.user_id).first()
    if profile is None:
        profile = Profile(user_id=order.user_id, points_balance=0)
        db.add(profile)
    # balance is bumped in SQL so concurrent awards do not overwrite each other
    db.flush()
    db.query(Profile).filter(Profile.id == profile.id).update(
        {Profile.points_balance: Profile.points_balance + points}, synchronize_session=False
    )
    logger.info("awarded %s points to %s for order %s", points, redact_user_id(order.user_id), order.id)
    return txn


def get_balance(db: Session, user_id: str) -> int:
    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    return profile.points_balance if profile else 0


def list_active_transactions(db: Session, user_id: str) -> List[PointsTransaction]:
    now = utcnow()
    return (
        db.query(PointsTransaction)
        .filter(
            PointsTransaction.user_id == user_id,
            or_(PointsTransaction.expires_at.is_(None), PointsTransaction.expires_at > now),
        )
        .order_by(PointsTransaction.created_at.desc())
        .all()
    )
