"""
Base Repository implementation.

A repository is bound to one tenant when it is constructed; every query it
builds starts from ``model.tenant_id == tenant_id``. Services receive
repositories, never raw cross-tenant access.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Paging window every listing accepts; subclasses add their own criteria."""

    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class TenantRepository(ABC, Generic[ModelT]):
    """
    Abstract tenant-scoped repository.

    Subclasses must implement:
    - model: the SQLAlchemy model class (must have tenant_id)
    - _apply_filters(): entity-specific filtering
    """

    def __init__(self, db: Session, tenant_id: int):
        self._db = db
        self._tenant_id = tenant_id

    @property
    def tenant_id(self) -> int:
        return self._tenant_id

    @property
    def session(self) -> Session:
        return self._db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    def _scoped(self, query: Select) -> Select:
        return query.where(self.model.tenant_id == self._tenant_id)

    def _base_query(self) -> Select:
        """Base select for this tenant. Subclasses add eager loading here."""
        return self._scoped(select(self.model))

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def _default_order(self) -> Any:
        return self.model.id.asc()

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        """One page of this tenant's rows matching ``filters``."""
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = query.order_by(self._default_order()).offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int, for_update: bool = False) -> ModelT | None:
        """Find entity by ID. Entities of other tenants are invisible."""
        query = self._base_query().where(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        return self._db.scalar(query)

    def find_by_ids(self, entity_ids: list[int], for_update: bool = False) -> Sequence[ModelT]:
        """Rows among ``entity_ids`` owned by this tenant, unordered."""
        if not entity_ids:
            return []
        query = self._base_query().where(self.model.id.in_(entity_ids))
        if for_update:
            query = query.with_for_update()
        return self._db.execute(query).scalars().unique().all()

    def count(self, filters: RepositoryFilters | None = None) -> int:
        """Count entities matching filters."""
        filters = filters or RepositoryFilters()
        query = self._apply_filters(
            self._scoped(select(func.count()).select_from(self.model)), filters
        )
        return self._db.scalar(query) or 0

    def exists(self, entity_id: int) -> bool:
        query = self._scoped(
            select(func.count()).select_from(self.model).where(self.model.id == entity_id)
        )
        return (self._db.scalar(query) or 0) > 0
