"""
Order Repository - Data access for orders.
Eager loading of items -> modifiers prevents N+1 queries.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import Session, selectinload

from packcheck.models import Order, OrderItem
from shared.config.constants import OrderStatus

from .base import RepositoryFilters, TenantRepository


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    status: str | None = None
    statuses: list[str] | None = None
    include_archived: bool = False
    search: str | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None

    def __post_init__(self):
        super().__post_init__()
        if self.search:
            self.search = self.search.strip()[:100] or None


class OrderRepository(TenantRepository[Order]):
    """
    Repository for Order entities.

    Guarantees eager loading of items -> modifiers.
    """

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        return self._scoped(
            select(Order).options(
                selectinload(Order.items).selectinload(OrderItem.modifiers)
            )
        )

    def _default_order(self) -> Any:
        return Order.created_at.desc()

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderFilters):
            return query

        if filters.status:
            query = query.where(Order.status == filters.status)
        elif filters.statuses:
            query = query.where(Order.status.in_(filters.statuses))
        elif not filters.include_archived:
            query = query.where(Order.status != OrderStatus.ARCHIVED)

        if filters.search:
            pattern = f"%{filters.search}%"
            query = query.where(
                or_(
                    Order.check_number.ilike(pattern),
                    Order.customer_name.ilike(pattern),
                )
            )

        if filters.created_from is not None:
            query = query.where(Order.created_at >= filters.created_from)
        if filters.created_to is not None:
            query = query.where(Order.created_at < filters.created_to)

        return query

    def find_by_check_number(self, check_number: str, raw_input: str) -> Order | None:
        """An order already created from this exact input, if any."""
        query = self._base_query().where(
            Order.check_number == check_number,
            Order.raw_input == raw_input,
        )
        return self._db.scalars(query.limit(1)).first()

    def find_inactive_ids(self, cutoff: datetime, limit: int, after_id: int = 0) -> list[int]:
        """
        IDs above ``after_id`` of pending_weight orders neither created nor
        touched since cutoff, ascending.
        """
        query = self._scoped(
            select(Order.id).where(
                Order.id > after_id,
                Order.status == OrderStatus.PENDING_WEIGHT,
                Order.created_at < cutoff,
                Order.updated_at < cutoff,
            )
        ).order_by(Order.id.asc()).limit(limit)
        return list(self._db.scalars(query).all())


def get_order_repository(db: Session, tenant_id: int) -> OrderRepository:
    """Factory for dependency injection."""
    return OrderRepository(db, tenant_id)

