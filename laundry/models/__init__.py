# importing every model registers all tables on Base.metadata
from .user import User, UserRole, Profile  # noqa: F401
from .product import Product  # noqa: F401
from .coupon import Coupon  # noqa: F401
from .order import Order, OrderItem, OrderHistory, OrderRejection  # noqa: F401
from .driver import DriverShift, DriverCalendarEvent  # noqa: F401
from .points import PointsTransaction  # noqa: F401
