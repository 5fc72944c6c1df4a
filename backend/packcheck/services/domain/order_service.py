"""
Order Transaction Builder.

Turns a validated StructuredOrder into a persisted order in one
transaction: catalog resolution (with auto-creation), expected-weight
estimation, the order with its items and modifiers, and the ``created``
event. Either all of it is committed or none of it is, including any
catalog rows the resolver created.

Usage:
    service = OrderService(db, tenant)
    order = service.create_order(structured, raw_input=email_body)
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packcheck.models import Order, OrderItem, OrderItemModifier, Tenant
from packcheck.services.base_service import TenantService
from packcheck.services.catalog import (
    CatalogResolver,
    ResolvedLine,
    estimate_expected_weight,
    to_cents,
)
from packcheck.services.events import CreatedEventData, append_order_event
from shared.config.constants import OrderStatus
from shared.config.logging import get_logger
from shared.utils.exceptions import PersistenceError, ResolutionError
from shared.utils.schemas import StructuredOrder

logger = get_logger(__name__)


def _build_item(line: ResolvedLine) -> OrderItem:
    item = OrderItem(
        product_id=line.product.id,
        name=line.source.name,
        quantity=line.quantity,
        total_price=to_cents(line.source.price),
    )
    for resolved in line.modifiers:
        item.modifiers.append(
            OrderItemModifier(
                modifier_id=resolved.modifier.id,
                name=resolved.source.name,
                total_price=to_cents(resolved.source.price),
            )
        )
    return item


class OrderService(TenantService):
    """Creates orders for one tenant."""

    def __init__(self, db: Session, tenant: Tenant, match_mode: str | None = None):
        super().__init__(db, tenant)
        self._match_mode = match_mode

    def create_order(
        self,
        structured: StructuredOrder,
        raw_input: str,
        actor_id: str | None = None,
    ) -> Order:
        """
        Persist ``structured`` as a new pending_weight order.

        Raises:
            ResolutionError: a product or modifier name could not be bound.
            PersistenceError: the store rejected the transaction.
        """
        try:
            resolver = CatalogResolver(self._db, self._tenant.id, self._match_mode)
            lines = resolver.resolve(structured)
            expected_weight = estimate_expected_weight(lines)

            customer = structured.customer
            order = Order(
                tenant_id=self._tenant.id,
                status=OrderStatus.PENDING_WEIGHT,
                channel=structured.type,
                check_number=structured.check_number,
                customer_name=customer.name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                customer_address=customer.address,
                subtotal_amount=to_cents(structured.subtotal_amount),
                tax_amount=to_cents(structured.tax_amount),
                total_amount=to_cents(structured.total_amount),
                expected_weight=expected_weight,
                raw_input=raw_input,
                structured_snapshot=structured.model_dump(mode="json"),
            )
            order.items = [_build_item(line) for line in lines]
            self._db.add(order)
            self._db.flush()

            append_order_event(
                self._db,
                order,
                CreatedEventData(
                    check_number=order.check_number,
                    customer_name=order.customer_name,
                    channel=order.channel,
                    items_count=len(lines),
                    expected_weight=expected_weight,
                    auto_created_products=resolver.created_products,
                    auto_created_modifiers=resolver.created_modifiers,
                ),
                actor_id=actor_id,
            )
        except ResolutionError:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            raise PersistenceError(
                "order creation", tenant_id=self._tenant.id, error=str(e)
            ) from e

        self._commit("order creation", check_number=structured.check_number)
        self._db.refresh(order)

        logger.info(
            "Order created",
            order_id=order.id,
            tenant_id=self._tenant.id,
            check_number=order.check_number,
            expected_weight=expected_weight,
            items=len(lines),
        )
        return order
