"""
Catalog Resolver.

Binds the free-text product and modifier names of a structured order to
rows of the tenant's catalog, creating rows for names the catalog has
never seen. Runs inside the caller's transaction: if the order is later
rolled back, so are the catalog rows created here.

Binding rules, per normalized name:
1. An exact normalized match always wins.
2. In "contains" mode, a name with no exact match binds to the catalog
   row with the shortest normalized name that contains it (ties: lowest id).
3. Anything still unbound is created with weight 0 and re-selected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Iterable, Sequence

from sqlalchemy.orm import Session

from packcheck.models import Modifier, Product
from packcheck.repositories.catalog import (
    CatalogRepository,
    CatalogT,
    get_modifier_repository,
    get_product_repository,
)
from packcheck.services.catalog.normalize import normalize_text
from packcheck.services.catalog.pricing import to_cents, unit_price_cents
from shared.config.constants import MatchMode
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.utils.exceptions import ResolutionError
from shared.utils.schemas import StructuredItem, StructuredModifier, StructuredOrder

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogRequest:
    """One name to resolve, with the price to use if it must be created."""

    name: str
    normalized_name: str
    price: int


@dataclass
class ResolvedModifier:
    source: StructuredModifier
    modifier: Modifier | None


@dataclass
class ResolvedLine:
    """A structured item with its catalog bindings."""

    source: StructuredItem
    product: Product | None
    modifiers: list[ResolvedModifier] = field(default_factory=list)

    @property
    def quantity(self) -> int:
        return self.source.quantity


@dataclass
class Resolution(Generic[CatalogT]):
    bound: dict[str, CatalogT]
    created: list[str]


def _pick_candidate(target: str, candidates: Sequence[CatalogT], mode: str) -> CatalogT | None:
    for row in candidates:
        if row.normalized_name == target:
            return row
    if mode != MatchMode.CONTAINS:
        return None
    containing = [row for row in candidates if target in row.normalized_name]
    if not containing:
        return None
    return min(containing, key=lambda row: (len(row.normalized_name), row.id))


def _dedupe(requests: Iterable[CatalogRequest]) -> list[CatalogRequest]:
    """First occurrence of each normalized name wins."""
    seen: dict[str, CatalogRequest] = {}
    for request in requests:
        seen.setdefault(request.normalized_name, request)
    return list(seen.values())


class CatalogResolver:
    """
    Resolves structured orders against one tenant's catalog.

    Usage:
        resolver = CatalogResolver(db, tenant_id)
        lines = resolver.resolve(structured_order)
    """

    def __init__(self, db: Session, tenant_id: int, match_mode: str | None = None):
        self._tenant_id = tenant_id
        self._products = get_product_repository(db, tenant_id)
        self._modifiers = get_modifier_repository(db, tenant_id)
        self._mode = match_mode or settings.catalog_match_mode
        # Normalized names created by the last resolve_* calls
        self.created_products: list[str] = []
        self.created_modifiers: list[str] = []

    @property
    def match_mode(self) -> str:
        return self._mode

    def _resolve(
        self,
        repo: CatalogRepository[CatalogT],
        requests: Iterable[CatalogRequest],
    ) -> Resolution[CatalogT]:
        unique = _dedupe(requests)
        blank = [r.name for r in unique if not r.normalized_name]
        if blank:
            raise ResolutionError(
                "Item names must contain at least one letter or digit",
                names=blank,
                tenant_id=self._tenant_id,
            )

        targets = [r.normalized_name for r in unique]
        candidates = repo.find_candidates(targets, self._mode)

        bound: dict[str, CatalogT] = {}
        for target in targets:
            row = _pick_candidate(target, candidates, self._mode)
            if row is not None:
                bound[target] = row

        missing = [r for r in unique if r.normalized_name not in bound]
        if missing:
            repo.insert_missing(
                [
                    {
                        "name": r.name,
                        "normalized_name": r.normalized_name,
                        "price": r.price,
                        "weight": 0,
                    }
                    for r in missing
                ]
            )
            for row in repo.find_by_normalized_names([r.normalized_name for r in missing]):
                bound[row.normalized_name] = row
            logger.info(
                "Catalog auto-extended",
                table=repo.model.__tablename__,
                tenant_id=self._tenant_id,
                names=[r.normalized_name for r in missing],
            )

        unbound = [t for t in targets if t not in bound]
        if unbound:
            raise ResolutionError(
                f"Could not bind {len(unbound)} name(s) to the {repo.model.__tablename__} catalog",
                names=unbound,
                tenant_id=self._tenant_id,
            )

        return Resolution(bound=bound, created=[r.normalized_name for r in missing])

    def resolve_products(self, items: Sequence[StructuredItem]) -> dict[str, Product]:
        """Normalized product name -> Product. Unknown products are created."""
        resolution = self._resolve(
            self._products,
            (
                CatalogRequest(
                    name=item.name,
                    normalized_name=normalize_text(item.name),
                    price=unit_price_cents(item.price, item.quantity),
                )
                for item in items
            ),
        )
        self.created_products = resolution.created
        return resolution.bound

    def resolve_modifiers(self, items: Sequence[StructuredItem]) -> dict[str, Modifier]:
        """Normalized modifier name -> Modifier across all items."""
        resolution = self._resolve(
            self._modifiers,
            (
                CatalogRequest(
                    name=modifier.name,
                    normalized_name=normalize_text(modifier.name),
                    price=to_cents(modifier.price),
                )
                for item in items
                for modifier in item.modifiers
            ),
        )
        self.created_modifiers = resolution.created
        return resolution.bound

    def resolve(self, structured: StructuredOrder) -> list[ResolvedLine]:
        """Bind every line and modifier of ``structured``."""
        products = self.resolve_products(structured.items)
        modifiers = self.resolve_modifiers(structured.items)

        return [
            ResolvedLine(
                source=item,
                product=products.get(normalize_text(item.name)),
                modifiers=[
                    ResolvedModifier(
                        source=modifier,
                        modifier=modifiers.get(normalize_text(modifier.name)),
                    )
                    for modifier in item.modifiers
                ],
            )
            for item in structured.items
        ]
