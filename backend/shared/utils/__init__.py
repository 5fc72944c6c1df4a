"""
Utilities module: Exceptions, schemas.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
    ResolutionError,
    ConflictError,
    InvalidTransitionError,
    PersistenceError,
    ExternalCollaboratorError,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "OrderNotFoundError",
    "ValidationError",
    "ResolutionError",
    "ConflictError",
    "InvalidTransitionError",
    "PersistenceError",
    "ExternalCollaboratorError",
    # schemas
    "ErrorResponse",
]
