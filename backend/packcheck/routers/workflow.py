"""
Workflow callbacks.

A vision run executed outside this service reports back here; the call
is the idempotent complete-verification command.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from packcheck.models import Tenant
from packcheck.routers._common import get_actor_id, get_tenant
from packcheck.services.verification import VisualVerificationService
from shared.infrastructure.db import get_db
from shared.utils.schemas import VisualCompletionRequest, VisualCompletionResponse

router = APIRouter(prefix="/api/workflow", tags=["workflow"])


@router.post("/orders/{order_id}/visual-result", response_model=VisualCompletionResponse)
def complete_visual_verification(
    order_id: int,
    body: VisualCompletionRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> VisualCompletionResponse:
    order = VisualVerificationService(db, tenant).complete(
        order_id, body.result, body.images, actor_id=actor_id
    )
    return VisualCompletionResponse(
        order_id=order.id,
        status=order.visual_status,
        confidence=body.result.confidence,
    )
