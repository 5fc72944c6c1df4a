"""
Domain Services.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from packcheck.services.domain import OrderLifecycleService

    service = OrderLifecycleService(db, tenant)
    order, analysis = service.record_weight(order_id, actual_weight=812)
"""

from .order_service import OrderService
from .lifecycle_service import (
    AUTO_ARCHIVE_REASON,
    OrderLifecycleService,
    SweepResult,
    WeightRecording,
    archive_inactive_orders,
)

__all__ = [
    "OrderService",
    "OrderLifecycleService",
    "WeightRecording",
    "SweepResult",
    "AUTO_ARCHIVE_REASON",
    "archive_inactive_orders",
]
