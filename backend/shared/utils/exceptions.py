"""
Engine errors.

Each error is an HTTPException (routers let them propagate to FastAPI),
logs itself when raised, and says whether retrying can help:

    retryable=False  the input or catalog must change (400/401/404/409/422)
    retryable=True   a dependency failed and nothing was written (502/503)

Workers use ``retryable`` to choose between leaving a job pending and
dead-lettering it.
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """Base class. Subclasses set ``status_code_default`` and ``log_level``."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    log_level: str = "warning"
    retryable: bool = False

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        code = status_code or self.status_code_default
        getattr(logger, self.log_level)(
            detail, error_type=type(self).__name__, status_code=code, **log_context
        )
        super().__init__(status_code=code, detail=detail, headers=headers)


class UnauthorizedError(AppException):
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Unauthorized", **log_context: Any):
        super().__init__(detail, **log_context)


class ValidationError(AppException):
    """Malformed request or job payload."""

    status_code_default = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppException):
    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail, entity=entity, entity_id=entity_id, **log_context)


class OrderNotFoundError(NotFoundError):
    """Unknown order, or one owned by another tenant."""

    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class TenantNotFoundError(NotFoundError):
    def __init__(self, tenant_id: int | str | None = None, **log_context: Any):
        super().__init__("Tenant", tenant_id, **log_context)


class ResolutionError(AppException):
    """
    Item names that could not be bound to the tenant's catalog.

    ``names`` lists the offending source names.
    """

    status_code_default = 422

    def __init__(self, detail: str, names: list[str] | None = None, **log_context: Any):
        self.names = list(names or [])
        super().__init__(detail, names=self.names, **log_context)


class ConflictError(AppException):
    status_code_default = status.HTTP_409_CONFLICT


class InvalidTransitionError(ConflictError):
    """A lifecycle command the order's current status does not allow."""

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move {entity} from '{from_status}' to '{to_status}'",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class PersistenceError(AppException):
    """The store rejected a write; the transaction was rolled back."""

    status_code_default = status.HTTP_503_SERVICE_UNAVAILABLE
    log_level = "error"
    retryable = True

    def __init__(self, operation: str, **log_context: Any):
        self.operation = operation
        super().__init__(
            f"Database error during {operation}. Please try again.",
            operation=operation,
            **log_context,
        )


class ExternalServiceError(AppException):
    """
    A dependency (queue, model API) failed.

    ``is_unavailable`` selects 503 (down, throttled) over 502 (bad reply).
    """

    log_level = "error"
    retryable = True

    def __init__(self, service: str, is_unavailable: bool = False, **log_context: Any):
        self.service = service
        if is_unavailable:
            code, detail = status.HTTP_503_SERVICE_UNAVAILABLE, f"{service} is unavailable"
        else:
            code, detail = status.HTTP_502_BAD_GATEWAY, f"Bad response from {service}"
        super().__init__(detail, status_code=code, service=service, **log_context)


class ExternalCollaboratorError(ExternalServiceError):
    """The structuring or vision model failed. No order state was touched."""
