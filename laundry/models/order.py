from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Date, Enum, ForeignKey, JSON, Index
)
from sqlalchemy.orm import relationship

from laundry.database import Base
from laundry.utils.enums import OrderStatus, PickupOption, PaymentMethod, PaymentStatus


def _now():
    return datetime.now(timezone.utc)


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)

    status = Column(Enum(OrderStatus, name="order_status", values_callable=_values),
                    nullable=False, default=OrderStatus.PENDING, index=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)
    accepted_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    rejected_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    actual_pickup_time = Column(DateTime(timezone=True), nullable=True)
    actual_return_time = Column(DateTime(timezone=True), nullable=True)

    service_name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False)
    address = Column(String(500), nullable=False)
    special_instructions = Column(String(1000), nullable=True)

    # requested windows in business-local wall clock
    pickup_option = Column(Enum(PickupOption, name="pickup_option", values_callable=_values), nullable=False)
    pickup_date = Column(Date, nullable=False)
    pickup_time = Column(String(5), nullable=False)
    return_date = Column(Date, nullable=False)
    return_time = Column(String(5), nullable=False)
    pickup_slot = Column(DateTime(timezone=True), nullable=True)
    delivery_slot = Column(DateTime(timezone=True), nullable=True)

    price = Column(Numeric(10, 2), nullable=False)
    final_price = Column(Numeric(10, 2), nullable=False)
    discount_code = Column(String(50), nullable=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True)

    payment_method = Column(Enum(PaymentMethod, name="payment_method", values_callable=_values), nullable=False)
    payment_status = Column(Enum(PaymentStatus, name="payment_status", values_callable=_values),
                            nullable=False, default=PaymentStatus.UNPAID)
    payment_amount = Column(Numeric(10, 2), nullable=True)
    stripe_session_id = Column(String(255), nullable=True, index=True)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    history = relationship("OrderHistory", back_populates="order", cascade="all, delete-orphan")
    rejections = relationship("OrderRejection", back_populates="order", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_orders_pool", "status", "driver_id"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    service_type = Column(String(64), nullable=False)
    service_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    # {"rug_dimensions": {"length": cm, "width": cm}} for area-priced lines
    item_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    order = relationship("Order", back_populates="items")


class OrderHistory(Base):
    __tablename__ = "order_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    old_status = Column(String(24), nullable=True)
    new_status = Column(String(24), nullable=False)
    changed_by = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    note = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    order = relationship("Order", back_populates="history")


class OrderRejection(Base):
    __tablename__ = "order_rejections"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    driver_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False)

    order = relationship("Order", back_populates="rejections")
