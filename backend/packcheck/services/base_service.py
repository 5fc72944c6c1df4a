"""
Base Service Class.

Architecture:
    Router (thin) -> Service (business logic) -> Repository (data access) -> Model

Every service is constructed for one tenant and reaches orders only
through that tenant's repository.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packcheck.models import Order, Tenant
from packcheck.repositories import OrderRepository, get_order_repository
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import OrderNotFoundError, PersistenceError

logger = get_logger(__name__)


class TenantService:
    """Shared plumbing for tenant-scoped domain services."""

    def __init__(self, db: Session, tenant: Tenant):
        self._db = db
        self._tenant = tenant
        self._orders = get_order_repository(db, tenant.id)

    @property
    def db(self) -> Session:
        return self._db

    @property
    def tenant(self) -> Tenant:
        return self._tenant

    @property
    def orders(self) -> OrderRepository:
        return self._orders

    def _get_order(self, order_id: int, for_update: bool = False) -> Order:
        """Load one of this tenant's orders or raise OrderNotFoundError."""
        order = self._orders.find_by_id(order_id, for_update=for_update)
        if order is None:
            raise OrderNotFoundError(order_id, tenant_id=self._tenant.id)
        return order

    def _commit(self, operation: str, **log_context: Any) -> None:
        """
        Commit the unit of work; store failures roll back and surface as
        a retryable PersistenceError.
        """
        try:
            safe_commit(self._db)
        except SQLAlchemyError as e:
            raise PersistenceError(
                operation, tenant_id=self._tenant.id, error=str(e), **log_context
            ) from e
