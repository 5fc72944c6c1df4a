"""
Centralized constants for the backend application.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import OrderStatus, EventType, Limits

    if order.status == OrderStatus.PENDING_WEIGHT:
        ...
"""

from typing import Final


# =============================================================================
# Order Status
# =============================================================================


class OrderStatus:
    """Order lifecycle status constants."""

    PENDING_WEIGHT: Final[str] = "pending_weight"
    WEIGHED: Final[str] = "weighed"
    READY_FOR_LOCKERS: Final[str] = "ready_for_lockers"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"
    ARCHIVED: Final[str] = "archived"

    ALL: Final[list[str]] = [
        PENDING_WEIGHT, WEIGHED, READY_FOR_LOCKERS, COMPLETED, CANCELLED, ARCHIVED,
    ]
    # States an order may be cancelled from
    CANCELLABLE: Final[list[str]] = [PENDING_WEIGHT, WEIGHED, READY_FOR_LOCKERS]
    # States an archived order may be restored to
    RESTORABLE: Final[list[str]] = [PENDING_WEIGHT, WEIGHED, COMPLETED, CANCELLED]
    # Targets accepted by the weight-recording command
    WEIGHT_TARGETS: Final[list[str]] = [WEIGHED, COMPLETED]


# Valid revert transitions (from -> to)
REVERT_TRANSITIONS: Final[dict[str, str]] = {
    OrderStatus.WEIGHED: OrderStatus.PENDING_WEIGHT,
    OrderStatus.COMPLETED: OrderStatus.WEIGHED,
}


class Channel:
    """Order fulfilment channel."""

    DELIVERY: Final[str] = "delivery"
    TAKEOUT: Final[str] = "takeout"

    ALL: Final[list[str]] = [DELIVERY, TAKEOUT]


# =============================================================================
# Audit Ledger
# =============================================================================


class EventType:
    """Order event type constants."""

    CREATED: Final[str] = "created"
    WEIGHT_VERIFIED: Final[str] = "weight_verified"
    VISUAL_VERIFIED: Final[str] = "visual_verified"
    STATUS_CHANGED: Final[str] = "status_changed"
    ARCHIVED: Final[str] = "archived"
    UNARCHIVED: Final[str] = "unarchived"

    ALL: Final[list[str]] = [
        CREATED, WEIGHT_VERIFIED, VISUAL_VERIFIED, STATUS_CHANGED, ARCHIVED, UNARCHIVED,
    ]


# =============================================================================
# Verification
# =============================================================================


class VisualStatus:
    """Visual verification outcome constants."""

    VERIFIED: Final[str] = "verified"
    MISSING_ITEMS: Final[str] = "missing_items"
    EXTRA_ITEMS: Final[str] = "extra_items"
    UNCERTAIN: Final[str] = "uncertain"
    WRONG_IMAGE: Final[str] = "wrong_image"

    ALL: Final[list[str]] = [VERIFIED, MISSING_ITEMS, EXTRA_ITEMS, UNCERTAIN, WRONG_IMAGE]


class WeightStatus:
    """Weight analysis classification."""

    PERFECT: Final[str] = "perfect"
    UNDERWEIGHT: Final[str] = "underweight"
    OVERWEIGHT: Final[str] = "overweight"


class WeightAction:
    """Operator action suggested by weight analysis."""

    READY: Final[str] = "ready"
    REWEIGH: Final[str] = "re-weigh"
    REVIEW: Final[str] = "review"


class MatchMode:
    """Catalog resolution match modes."""

    CONTAINS: Final[str] = "contains"
    EXACT: Final[str] = "exact"


# =============================================================================
# Workflow
# =============================================================================


class Workflow:
    """Background job names carried on the workflow stream."""

    PROCESS_ORDER: Final[str] = "process_order"
    VERIFY_VISUAL: Final[str] = "verify_visual"

    ALL: Final[list[str]] = [PROCESS_ORDER, VERIFY_VISUAL]


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1

    # Largest batch accepted by bulk lifecycle commands
    MAX_BATCH_SIZE: Final[int] = 100

    MAX_NAME_LENGTH: Final[int] = 255
    MAX_REASON_LENGTH: Final[int] = 500

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200

    # Visual verification
    MAX_VERIFICATION_IMAGES: Final[int] = 6
    VISUAL_MATCH_MIN_CONFIDENCE: Final[int] = 70
