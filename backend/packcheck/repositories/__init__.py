"""
Repository Pattern implementation.
Every repository is bound to a single tenant at construction.

Usage:
    from packcheck.repositories import get_order_repository

    repo = get_order_repository(db, tenant_id=1)
    orders = repo.find_all(OrderFilters(status="pending_weight"))
    order = repo.find_by_id(123)
"""

from .base import TenantRepository, RepositoryFilters
from .catalog import CatalogRepository, get_product_repository, get_modifier_repository
from .order import OrderRepository, OrderFilters, get_order_repository
from .order_event import OrderEventRepository, OrderEventFilters, get_order_event_repository

__all__ = [
    # Base
    "TenantRepository",
    "RepositoryFilters",
    # Catalog
    "CatalogRepository",
    "get_product_repository",
    "get_modifier_repository",
    # Order
    "OrderRepository",
    "OrderFilters",
    "get_order_repository",
    # Order events
    "OrderEventRepository",
    "OrderEventFilters",
    "get_order_event_repository",
]
