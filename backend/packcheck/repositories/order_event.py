"""
Order Event Repository - read side of the audit ledger.
Events are always returned ordered by (created_at, id).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from packcheck.models import OrderEvent

from .base import RepositoryFilters, TenantRepository


@dataclass
class OrderEventFilters(RepositoryFilters):
    """Filters specific to order events."""

    order_id: int | None = None
    event_type: str | None = None
    since: datetime | None = None


class OrderEventRepository(TenantRepository[OrderEvent]):
    """Repository for OrderEvent entities."""

    @property
    def model(self) -> type[OrderEvent]:
        return OrderEvent

    def _default_order(self) -> Any:
        return OrderEvent.created_at.asc(), OrderEvent.id.asc()

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[OrderEvent]:
        filters = filters or OrderEventFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = (
            query.order_by(*self._default_order())
            .offset(filters.offset)
            .limit(filters.limit)
        )
        return self._db.execute(query).scalars().all()

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderEventFilters):
            return query
        if filters.order_id is not None:
            query = query.where(OrderEvent.order_id == filters.order_id)
        if filters.event_type:
            query = query.where(OrderEvent.event_type == filters.event_type)
        if filters.since is not None:
            query = query.where(OrderEvent.created_at >= filters.since)
        return query

    def find_for_order(self, order_id: int) -> Sequence[OrderEvent]:
        """Full trail of one order, oldest first."""
        query = self._scoped(
            select(OrderEvent).where(OrderEvent.order_id == order_id)
        ).order_by(*self._default_order())
        return self._db.execute(query).scalars().all()


def get_order_event_repository(db: Session, tenant_id: int) -> OrderEventRepository:
    """Factory for dependency injection."""
    return OrderEventRepository(db, tenant_id)
