"""
Audit ledger router: tenant-wide event listing.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from packcheck.models import Tenant
from packcheck.repositories import OrderEventFilters, get_order_event_repository
from packcheck.routers._common import Pagination, get_pagination, get_tenant
from shared.config.constants import EventType
from shared.infrastructure.db import get_db
from shared.utils.exceptions import ValidationError
from shared.utils.schemas import OrderEventListResponse, OrderEventOutput

router = APIRouter(prefix="/api/order-events", tags=["order-events"])


@router.get("", response_model=OrderEventListResponse)
def list_events(
    order_id: int | None = None,
    event_type: str | None = Query(default=None),
    since: datetime | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    tenant: Tenant = Depends(get_tenant),
) -> OrderEventListResponse:
    """Events of this tenant ordered by (created_at, id)."""
    if event_type is not None and event_type not in EventType.ALL:
        raise ValidationError(f"Unknown event type '{event_type}'")

    repo = get_order_event_repository(db, tenant.id)
    filters = OrderEventFilters(
        limit=pagination.limit,
        offset=pagination.offset,
        order_id=order_id,
        event_type=event_type,
        since=since,
    )
    events = repo.find_all(filters)
    return OrderEventListResponse(
        items=[OrderEventOutput.model_validate(e) for e in events],
        pagination=pagination.to_dict(total=repo.count(filters)),
    )
