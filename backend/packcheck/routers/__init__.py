"""HTTP routers."""

from .cron import router as cron_router
from .order_events import router as order_events_router
from .orders import router as orders_router
from .webhooks import router as webhooks_router
from .workflow import router as workflow_router

__all__ = [
    "orders_router",
    "order_events_router",
    "webhooks_router",
    "cron_router",
    "workflow_router",
]
