"""
Audit Ledger Model: OrderEvent.

Rows are append-only. Flushing an update or a delete of an existing
event raises ImmutableEventError.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Text, event, func
from sqlalchemy.orm import Mapped, mapped_column, object_session

from .base import Base, BigIntPK, JSONDocument


class ImmutableEventError(Exception):
    """Attempted to modify or delete an audit event."""

    def __init__(self, event_id: int | None, operation: str):
        self.event_id = event_id
        self.operation = operation
        super().__init__(f"Order event {event_id} is immutable ({operation} rejected)")


class OrderEvent(Base):
    """One entry of an order's audit trail."""

    __tablename__ = "order_event"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tenant_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True
    )
    event_type: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    # Opaque operator identifier, None for system actions
    actor_id: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_order_event_order_created", "order_id", "created_at", "id"),
        Index("ix_order_event_tenant_created", "tenant_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OrderEvent(id={self.id}, order_id={self.order_id}, type='{self.event_type}')>"


@event.listens_for(OrderEvent, "before_update")
def _reject_event_update(mapper, connection, target: OrderEvent) -> None:
    session = object_session(target)
    if session is not None and session.is_modified(target, include_collections=False):
        raise ImmutableEventError(target.id, "update")


@event.listens_for(OrderEvent, "before_delete")
def _reject_event_delete(mapper, connection, target: OrderEvent) -> None:
    raise ImmutableEventError(target.id, "delete")
