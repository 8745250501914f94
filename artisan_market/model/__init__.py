# ------ artisan_market/model/__init__.py ------

from .user import User
from .product import Product
from .coupon import Coupon, COUPON_TYPES
from .order import (
    Order,
    CustomerSnapshot,
    ORDER_STATUSES,
    PENDING,
    SHIPPED,
    DELIVERED,
    CANCELLED,
)
from .review import Review

__all__ = [
    "User",
    "Product",
    "Coupon",
    "COUPON_TYPES",
    "Order",
    "CustomerSnapshot",
    "ORDER_STATUSES",
    "PENDING",
    "SHIPPED",
    "DELIVERED",
    "CANCELLED",
    "Review",
]
