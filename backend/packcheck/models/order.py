"""
Order Models: Order, OrderItem, OrderItemModifier.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import OrderStatus

from .base import Base, BigIntPK, JSONDocument, TimestampMixin

if TYPE_CHECKING:
    from .catalog import Modifier, Product


class Order(TimestampMixin, Base):
    """
    A physical bag to be verified before dispatch.

    expected_weight is fixed at creation. delta_weight is always
    actual_weight - expected_weight when both are set.
    """

    __tablename__ = "order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        Text, default=OrderStatus.PENDING_WEIGHT, nullable=False, index=True
    )
    channel: Mapped[str] = mapped_column(Text, nullable=False)
    check_number: Mapped[str] = mapped_column(Text, nullable=False)

    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(Text)
    customer_phone: Mapped[Optional[str]] = mapped_column(Text)
    customer_address: Mapped[Optional[str]] = mapped_column(Text)

    # Cents
    subtotal_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Grams
    expected_weight: Mapped[int] = mapped_column(Integer, nullable=False)
    actual_weight: Mapped[Optional[int]] = mapped_column(Integer)
    delta_weight: Mapped[Optional[int]] = mapped_column(Integer)
    weight_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    raw_input: Mapped[str] = mapped_column(Text, nullable=False)
    structured_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)

    visual_status: Mapped[Optional[str]] = mapped_column(Text)
    visual_result: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONDocument)
    visual_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    archived_reason: Mapped[Optional[str]] = mapped_column(Text)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        Index("ix_order_tenant_status", "tenant_id", "status"),
        # Auto-archive sweep scans pending orders by age
        Index("ix_order_status_created_updated", "status", "created_at", "updated_at"),
    )

    def clear_weight(self) -> None:
        """Drop the recorded weight (used when reverting to pending_weight)."""
        self.actual_weight = None
        self.delta_weight = None
        self.weight_verified_at = None

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, check='{self.check_number}', status='{self.status}')>"


class OrderItem(Base):
    """A product line within an order. name keeps the extracted text."""

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("product.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Cents, line total as extracted
    total_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")
    product: Mapped["Product"] = relationship()
    modifiers: Mapped[list["OrderItemModifier"]] = relationship(
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemModifier.id",
    )

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, name='{self.name}', qty={self.quantity})>"


class OrderItemModifier(Base):
    """A modifier line attached to an order item."""

    __tablename__ = "order_item_modifier"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    order_item_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    modifier_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("modifier.id", ondelete="SET NULL"), index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Cents
    total_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    order_item: Mapped["OrderItem"] = relationship(back_populates="modifiers")
    modifier: Mapped[Optional["Modifier"]] = relationship()

    def __repr__(self) -> str:
        return f"<OrderItemModifier(id={self.id}, name='{self.name}')>"
