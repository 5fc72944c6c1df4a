"""
Audit Ledger writer.

Events are written with the same session as the state change they
describe, so both are committed (or rolled back) together:

    order.status = OrderStatus.WEIGHED
    append_order_event(db, order, StatusChangedEventData(...), actor_id)
    safe_commit(db)
"""

from sqlalchemy.orm import Session

from packcheck.models import Order, OrderEvent
from packcheck.services.events.event_data import OrderEventData
from shared.config.logging import get_logger

logger = get_logger(__name__)


def append_event(
    db: Session,
    order_id: int,
    tenant_id: int,
    data: OrderEventData,
    actor_id: str | None = None,
) -> OrderEvent:
    """
    Append one event by order id.

    For bulk statements (the archive sweep) that change rows without
    loading them. Prefer append_order_event when the Order is at hand.
    """
    payload = data.model_dump(mode="json", exclude={"type"})
    order_event = OrderEvent(
        order_id=order_id,
        tenant_id=tenant_id,
        event_type=data.type,
        event_data=payload,
        actor_id=actor_id,
    )
    db.add(order_event)
    logger.debug(
        "Order event appended",
        order_id=order_id,
        tenant_id=tenant_id,
        event_type=data.type,
    )
    # Don't commit - let the caller control the transaction
    return order_event


def append_order_event(
    db: Session,
    order: Order,
    data: OrderEventData,
    actor_id: str | None = None,
) -> OrderEvent:
    """
    Append one event to ``order``'s trail.

    MUST be called within the transaction that performs the state change.
    The event's tenant is always the order's tenant.

    Args:
        db: SQLAlchemy session (same session as the state change)
        order: The order the event describes
        data: Typed payload; its ``type`` becomes the event_type
        actor_id: Operator identifier, None for system actions

    Returns:
        The pending OrderEvent instance
    """
    if order.id is None:
        db.flush()
    return append_event(db, order.id, order.tenant_id, data, actor_id)
