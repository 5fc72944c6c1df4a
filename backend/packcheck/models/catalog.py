"""
Catalog Models: Product, Modifier.

Both tables are unique on (tenant_id, normalized_name) so concurrent
auto-creation of the same unknown name yields a single row.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK, TimestampMixin


class CatalogItemMixin(TimestampMixin):
    """Columns shared by products and modifiers."""

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    normalized_name: Mapped[str] = mapped_column(Text, nullable=False)
    # Cents
    price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Grams
    weight: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Product(CatalogItemMixin, Base):
    """A sellable item. Weight is the per-unit weight in grams."""

    __tablename__ = "product"
    __table_args__ = (
        UniqueConstraint("tenant_id", "normalized_name", name="uq_product_tenant_normalized_name"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', weight={self.weight})>"


class Modifier(CatalogItemMixin, Base):
    """
    An add-on attached to a product line.
    Weight may be negative (e.g. "no rice").
    """

    __tablename__ = "modifier"
    __table_args__ = (
        UniqueConstraint("tenant_id", "normalized_name", name="uq_modifier_tenant_normalized_name"),
    )

    def __repr__(self) -> str:
        return f"<Modifier(id={self.id}, name='{self.name}', weight={self.weight})>"
