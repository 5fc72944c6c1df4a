"""
Request context dependencies.

The tenant comes from the X-Tenant-ID header (an id or a slug) and the
acting operator from the optional X-Actor-ID header. Authentication is
handled in front of this service.
"""

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from packcheck.models import Tenant
from shared.infrastructure.db import get_db
from shared.utils.exceptions import TenantNotFoundError, ValidationError


def get_tenant(
    x_tenant_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> Tenant:
    if not x_tenant_id or not x_tenant_id.strip():
        raise ValidationError("X-Tenant-ID header is required")

    value = x_tenant_id.strip()
    if value.isascii() and value.isdigit():
        tenant = db.get(Tenant, int(value))
    else:
        tenant = db.scalar(select(Tenant).where(Tenant.slug == value))
    if tenant is None:
        raise TenantNotFoundError(value)
    return tenant


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str | None:
    if x_actor_id is None:
        return None
    return x_actor_id.strip()[:255] or None
