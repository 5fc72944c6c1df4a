"""
SQLAlchemy models for PackCheck.

Import from here so every mapper is registered before the first query:

    from packcheck.models import Base, Tenant, Order, OrderEvent
"""

from .base import Base, TimestampMixin, utcnow
from .tenant import Tenant
from .catalog import Product, Modifier
from .order import Order, OrderItem, OrderItemModifier
from .order_event import OrderEvent, ImmutableEventError

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "Tenant",
    "Product",
    "Modifier",
    "Order",
    "OrderItem",
    "OrderItemModifier",
    "OrderEvent",
    "ImmutableEventError",
]
