"""
Inbound channel adapter.

The mail provider posts each forwarded order as a form with the
``recipient`` address and the ``body-plain`` text. The recipient selects
the tenant; structuring and persistence happen in the process_order job.
"""

from fastapi import APIRouter, Depends, Form, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from packcheck.models import Tenant
from packcheck.services.workflow import WorkflowDispatcher, get_workflow_dispatcher
from shared.config.constants import Workflow
from shared.config.logging import api_logger as logger, mask_email
from shared.infrastructure.db import get_db
from shared.utils.exceptions import TenantNotFoundError, ValidationError
from shared.utils.schemas import JobAcceptedResponse

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])


def find_tenant_by_address(db: Session, recipient: str) -> Tenant:
    address = recipient.strip().lower()
    tenant = db.scalar(select(Tenant).where(func.lower(Tenant.inbound_address) == address))
    if tenant is None:
        raise TenantNotFoundError(address)
    return tenant


@router.post("/inbound", response_model=JobAcceptedResponse, status_code=status.HTTP_202_ACCEPTED)
async def inbound_order(
    recipient: str = Form(...),
    body_plain: str = Form(default="", alias="body-plain"),
    db: Session = Depends(get_db),
    dispatcher: WorkflowDispatcher = Depends(get_workflow_dispatcher),
) -> JobAcceptedResponse:
    if not body_plain.strip():
        raise ValidationError("Inbound message has no text body", recipient=mask_email(recipient))

    tenant = find_tenant_by_address(db, recipient)
    job_id = await dispatcher.dispatch(
        Workflow.PROCESS_ORDER,
        {"tenant_id": tenant.id, "raw_text": body_plain},
    )
    logger.info("Inbound order queued", tenant_id=tenant.id, job_id=job_id, chars=len(body_plain))
    return JobAcceptedResponse(job_id=job_id)
