from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from laundry.database import get_db
from laundry.models.user import User, UserRole
from laundry.services.authorization import ActorContext
from laundry.utils.enums import Role


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> ActorContext:
    """Resolve the caller forwarded by the auth gateway into an explicit context."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    grant = db.query(UserRole).filter(UserRole.user_id == user.id).first()
    role = Role(grant.role) if grant else Role.CUSTOMER
    return ActorContext(user_id=user.id, role=role)
