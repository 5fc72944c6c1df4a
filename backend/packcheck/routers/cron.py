"""
Scheduler endpoints. Called by an external cron with
``Authorization: Bearer <CRON_SECRET>``.
"""

import secrets

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from packcheck.services.domain import archive_inactive_orders
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from shared.utils.exceptions import UnauthorizedError
from shared.utils.schemas import ArchiveSweepResponse

router = APIRouter(prefix="/api/cron", tags=["cron"])


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    expected = settings.cron_secret
    if not expected or not authorization:
        raise UnauthorizedError("Invalid cron credentials")
    if not secrets.compare_digest(authorization, f"Bearer {expected}"):
        raise UnauthorizedError("Invalid cron credentials")


@router.get(
    "/archive-inactive-orders",
    response_model=ArchiveSweepResponse,
    dependencies=[Depends(require_cron_secret)],
)
def archive_inactive(db: Session = Depends(get_db)) -> ArchiveSweepResponse:
    """Archive pending_weight orders untouched for the inactivity window."""
    result = archive_inactive_orders(db)
    return ArchiveSweepResponse(archived=result.archived, tenants=result.tenants)
