"""
Workflow job handlers.

Each handler receives the job payload and owns its database session.
Delivery is at-least-once: process_order skips input it has already
turned into an order, and verify_visual overwrites its previous result.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from functools import partial
from typing import Any, Awaitable, Callable

from sqlalchemy.orm import Session

from packcheck.models import Tenant
from packcheck.services.ai import GeminiClient, gemini_client
from packcheck.services.domain import OrderService
from packcheck.services.verification import VisualVerificationService
from shared.config.constants import Workflow
from shared.config.logging import workflow_logger as logger
from shared.infrastructure.db import get_db_context
from shared.utils.exceptions import TenantNotFoundError, ValidationError

JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]
SessionScope = Callable[[], AbstractContextManager[Session]]


def _require(payload: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if payload.get(k) in (None, "", [])]
    if missing:
        raise ValidationError(f"Job payload is missing {', '.join(missing)}")


def _get_tenant(db: Session, tenant_id: int) -> Tenant:
    tenant = db.get(Tenant, tenant_id)
    if tenant is None:
        raise TenantNotFoundError(tenant_id)
    return tenant


async def process_order(
    payload: dict[str, Any],
    client: GeminiClient,
    session_scope: SessionScope = get_db_context,
) -> int:
    """Structure raw order text and persist it. Returns the order id."""
    _require(payload, "tenant_id", "raw_text")
    tenant_id = int(payload["tenant_id"])
    raw_text = payload["raw_text"]

    # Structure before opening a session; the collaborator may be slow
    structured = await client.structure_order(raw_text)

    with session_scope() as db:
        tenant = _get_tenant(db, tenant_id)
        service = OrderService(db, tenant)
        existing = service.orders.find_by_check_number(structured.check_number, raw_text)
        if existing is not None:
            logger.info(
                "Order already processed, skipping",
                order_id=existing.id,
                tenant_id=tenant_id,
            )
            return existing.id
        order = service.create_order(structured, raw_input=raw_text)
        return order.id


async def verify_visual(
    payload: dict[str, Any],
    client: GeminiClient,
    session_scope: SessionScope = get_db_context,
) -> str:
    """Run the vision check for one order. Returns the visual status."""
    _require(payload, "tenant_id", "order_id", "images")
    with session_scope() as db:
        tenant = _get_tenant(db, int(payload["tenant_id"]))
        order = await VisualVerificationService(db, tenant).run(
            int(payload["order_id"]), payload["images"], client
        )
        return order.visual_status


def build_handlers(
    client: GeminiClient | None = None,
    session_scope: SessionScope = get_db_context,
) -> dict[str, JobHandler]:
    """Workflow name -> handler, bound to a collaborator client and session scope."""
    client = client or gemini_client
    return {
        Workflow.PROCESS_ORDER: partial(process_order, client=client, session_scope=session_scope),
        Workflow.VERIFY_VISUAL: partial(verify_visual, client=client, session_scope=session_scope),
    }
