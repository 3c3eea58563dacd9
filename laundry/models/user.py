import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from laundry.database import Base
from laundry.utils.enums import Role


def _uuid() -> str:
    return str(uuid.uuid4())


def _now():
    return datetime.now(timezone.utc)


class User(Base):
    """Mirror of the identity held by the auth provider."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False)
    role_grant = relationship("UserRole", back_populates="user", uselist=False)


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    role = Column(Enum(Role, name="app_role", values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=Role.CUSTOMER)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    user = relationship("User", back_populates="role_grant")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    full_name = Column(String(120), nullable=True)
    phone = Column(String(32), nullable=True)
    address = Column(String(500), nullable=True)
    points_balance = Column(Integer, default=0, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    user = relationship("User", back_populates="profile")
