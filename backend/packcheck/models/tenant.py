"""
Multi-Tenancy Model: Tenant.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, BigIntPK, TimestampMixin


class Tenant(TimestampMixin, Base):
    """
    Represents a restaurant (top-level tenant).
    Catalog rows, orders and events all belong to exactly one tenant.
    """

    __tablename__ = "tenant"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # Address the inbound mail provider forwards orders to
    inbound_address: Mapped[Optional[str]] = mapped_column(Text, unique=True)
    # Grams
    order_weight_delta_tolerance: Mapped[int] = mapped_column(
        Integer, default=100, server_default="100", nullable=False
    )
    # Template with an {items} placeholder; None uses the default prompt
    visual_verification_prompt: Mapped[Optional[str]] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, slug='{self.slug}')>"
