from enum import Enum


class Role(str, Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PICKING_UP = "picking_up"
    WASHING = "washing"
    RETURNING = "returning"
    DELIVERED = "delivered"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PickupOption(str, Enum):
    ASAP = "asap"
    CHOOSE_TIME = "choose_time"


class PaymentMethod(str, Enum):
    STRIPE = "stripe"
    CASH = "cash"
    FREE = "free"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING = "pending"
    PAID = "paid"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PricingModel(str, Enum):
    FIXED = "fixed"
    RUG_AREA = "rug_area"
