"""Common utilities shared across routers."""

from .deps import get_actor_id, get_tenant
from .pagination import Pagination, get_pagination

__all__ = [
    "get_tenant",
    "get_actor_id",
    "Pagination",
    "get_pagination",
]
