"""
Catalog Repository - products and modifiers of one tenant.
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, insert, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from packcheck.models import Modifier, Product
from shared.config.constants import MatchMode
from shared.config.logging import get_logger

from .base import TenantRepository

logger = get_logger(__name__)

CatalogT = TypeVar("CatalogT", Product, Modifier)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CatalogRepository(TenantRepository[CatalogT], Generic[CatalogT]):
    """Tenant-scoped access to one catalog table (products or modifiers)."""

    def __init__(self, db: Session, tenant_id: int, model: type[CatalogT]):
        super().__init__(db, tenant_id)
        self._model = model

    @property
    def model(self) -> type[CatalogT]:
        return self._model

    def find_candidates(self, normalized_names: list[str], mode: str) -> Sequence[CatalogT]:
        """
        Bulk candidate lookup for a set of normalized names.

        EXACT fetches rows whose normalized name equals one of the targets.
        CONTAINS fetches rows whose normalized name contains any target.
        """
        if not normalized_names:
            return []

        query: Select = self._base_query()
        if mode == MatchMode.EXACT:
            query = query.where(self._model.normalized_name.in_(normalized_names))
        else:
            query = query.where(
                or_(
                    *[
                        self._model.normalized_name.contains(name, autoescape=True)
                        for name in normalized_names
                    ]
                )
            )
        return self._db.execute(query.order_by(self._model.id.asc())).scalars().all()

    def find_by_normalized_names(self, normalized_names: list[str]) -> Sequence[CatalogT]:
        return self.find_candidates(normalized_names, MatchMode.EXACT)

    def insert_missing(self, rows: list[dict[str, Any]]) -> None:
        """
        Insert catalog rows, skipping any whose (tenant_id, normalized_name)
        already exists. Runs inside the caller's transaction.
        """
        if not rows:
            return

        values = [{**row, "tenant_id": self._tenant_id} for row in rows]
        dialect = self._db.get_bind().dialect.name
        upsert = _UPSERT_INSERTS.get(dialect)

        if upsert is not None:
            stmt = upsert(self._model).values(values).on_conflict_do_nothing(
                index_elements=["tenant_id", "normalized_name"]
            )
            self._db.execute(stmt)
            return

        # Dialects without ON CONFLICT: one savepoint per row
        for value in values:
            try:
                with self._db.begin_nested():
                    self._db.execute(insert(self._model).values(**value))
            except IntegrityError:
                logger.debug(
                    "Catalog row created concurrently",
                    table=self._model.__tablename__,
                    normalized_name=value["normalized_name"],
                )


def get_product_repository(db: Session, tenant_id: int) -> CatalogRepository[Product]:
    return CatalogRepository(db, tenant_id, Product)


def get_modifier_repository(db: Session, tenant_id: int) -> CatalogRepository[Modifier]:
    return CatalogRepository(db, tenant_id, Modifier)
