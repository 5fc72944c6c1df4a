"""
Order router.
Thin controllers over OrderLifecycleService and VisualVerificationService.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from packcheck.models import Tenant
from packcheck.repositories import (
    OrderEventFilters,
    OrderFilters,
    get_order_event_repository,
    get_order_repository,
)
from packcheck.routers._common import Pagination, get_actor_id, get_pagination, get_tenant
from packcheck.services.domain import OrderLifecycleService
from packcheck.services.verification import VisualVerificationService
from packcheck.services.workflow import WorkflowDispatcher, get_workflow_dispatcher
from shared.config.constants import OrderStatus
from shared.infrastructure.db import get_db
from shared.utils.exceptions import OrderNotFoundError, ValidationError
from shared.utils.schemas import (
    ArchiveRequest,
    BulkTransitionResponse,
    CancelRequest,
    JobAcceptedResponse,
    OrderEventListResponse,
    OrderEventOutput,
    OrderIdsRequest,
    OrderListResponse,
    OrderOutput,
    OrderSummary,
    RecordWeightRequest,
    RecordWeightResponse,
    UnarchiveRequest,
    VerifyVisualRequest,
    WeightAnalysisOutput,
)

router = APIRouter(prefix="/api/orders", tags=["orders"])


def _lifecycle(db: Session, tenant: Tenant) -> OrderLifecycleService:
    return OrderLifecycleService(db, tenant)


def _bulk_response(orders) -> BulkTransitionResponse:
    return BulkTransitionResponse(updated=len(orders), order_ids=[o.id for o in orders])


@router.get("", response_model=OrderListResponse)
def list_orders(
    status_filter: str | None = Query(default=None, alias="status"),
    include_archived: bool = False,
    search: str | None = Query(default=None, max_length=100),
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
) -> OrderListResponse:
    """List orders, newest first. Archived orders only when asked for."""
    if status_filter is not None and status_filter not in OrderStatus.ALL:
        raise ValidationError(f"Unknown status '{status_filter}'")

    repo = get_order_repository(db, tenant.id)
    filters = OrderFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        status=status_filter,
        include_archived=include_archived,
        search=search,
        created_from=created_from,
        created_to=created_to,
    )
    orders = repo.find_all(filters)
    return OrderListResponse(
        items=[OrderSummary.model_validate(o) for o in orders],
        pagination=pagination.to_dict(total=repo.count(filters)),
    )


# Static paths are declared before /{order_id} routes


@router.post("/stage-for-lockers", response_model=BulkTransitionResponse)
def stage_for_lockers(
    body: OrderIdsRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> BulkTransitionResponse:
    """Move weighed orders to ready_for_lockers (all or nothing)."""
    orders = _lifecycle(db, tenant).stage_for_lockers(body.order_ids, actor_id=actor_id)
    return _bulk_response(orders)


@router.post("/batch-complete", response_model=BulkTransitionResponse)
def batch_complete(
    body: OrderIdsRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> BulkTransitionResponse:
    """Complete orders waiting in the lockers (all or nothing)."""
    orders = _lifecycle(db, tenant).batch_complete(body.order_ids, actor_id=actor_id)
    return _bulk_response(orders)


@router.post("/archive", response_model=BulkTransitionResponse)
def archive_orders(
    body: ArchiveRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> BulkTransitionResponse:
    """Archive orders. Already archived orders are skipped."""
    orders = _lifecycle(db, tenant).archive(body.order_ids, reason=body.reason, actor_id=actor_id)
    return _bulk_response(orders)


@router.put("/archive", response_model=BulkTransitionResponse)
def unarchive_orders(
    body: UnarchiveRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> BulkTransitionResponse:
    """Restore archived orders to restore_status (default pending_weight)."""
    orders = _lifecycle(db, tenant).unarchive(
        body.order_ids, restore_status=body.restore_status, actor_id=actor_id
    )
    return _bulk_response(orders)


@router.get("/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
) -> OrderOutput:
    order = get_order_repository(db, tenant.id).find_by_id(order_id)
    if order is None:
        raise OrderNotFoundError(order_id, tenant_id=tenant.id)
    return OrderOutput.model_validate(order)


@router.put("/{order_id}/weight", response_model=RecordWeightResponse)
def record_weight(
    order_id: int,
    body: RecordWeightRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> RecordWeightResponse:
    """
    Record the scale reading (grams). Completes the order unless
    status="weighed" is requested; re-weighing a weighed order is allowed.
    """
    order, analysis = _lifecycle(db, tenant).record_weight(
        order_id, body.actual_weight, target_status=body.status, actor_id=actor_id
    )
    return RecordWeightResponse(
        order=OrderOutput.model_validate(order),
        analysis=WeightAnalysisOutput(
            status=analysis.status,
            action=analysis.action,
            message=analysis.message,
            delta=analysis.delta,
            suggested_item=analysis.suggested_item,
            confidence=analysis.confidence,
        ),
    )


@router.post("/{order_id}/revert", response_model=OrderOutput)
def revert_order(
    order_id: int,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> OrderOutput:
    """Step back one state: weighed -> pending_weight, completed -> weighed."""
    order = _lifecycle(db, tenant).revert(order_id, actor_id=actor_id)
    return OrderOutput.model_validate(order)


@router.post("/{order_id}/cancel", response_model=OrderOutput)
def cancel_order(
    order_id: int,
    body: CancelRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    actor_id: str | None = Depends(get_actor_id),
) -> OrderOutput:
    order = _lifecycle(db, tenant).cancel(order_id, reason=body.reason, actor_id=actor_id)
    return OrderOutput.model_validate(order)


@router.get("/{order_id}/events", response_model=OrderEventListResponse)
def list_order_events(
    order_id: int,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
) -> OrderEventListResponse:
    """Audit trail of one order, oldest first."""
    if get_order_repository(db, tenant.id).find_by_id(order_id) is None:
        raise OrderNotFoundError(order_id, tenant_id=tenant.id)

    repo = get_order_event_repository(db, tenant.id)
    filters = OrderEventFilters(
        limit=pagination.limit, offset=pagination.offset, order_id=order_id
    )
    events = repo.find_all(filters)
    return OrderEventListResponse(
        items=[OrderEventOutput.model_validate(e) for e in events],
        pagination=pagination.to_dict(total=repo.count(filters)),
    )


@router.post(
    "/{order_id}/verify-visual",
    response_model=JobAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def verify_visual(
    order_id: int,
    body: VerifyVisualRequest,
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
    dispatcher: WorkflowDispatcher = Depends(get_workflow_dispatcher),
) -> JobAcceptedResponse:
    """
    Queue a photo check of the packed bag (1 to 6 base64 images).
    The result arrives as a visual_verified event.
    """
    job_id = await VisualVerificationService(db, tenant).request(
        order_id, body.images, dispatcher
    )
    return JobAcceptedResponse(job_id=job_id)
