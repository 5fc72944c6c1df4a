"""
Audit Ledger services.

- event_data.py: typed payload per event type
- order_events.py: append_order_event() for use inside a transaction
"""

from .event_data import (
    CreatedEventData,
    WeightVerifiedEventData,
    VisualVerifiedEventData,
    StatusChangedEventData,
    ArchivedEventData,
    UnarchivedEventData,
    OrderEventData,
    parse_event_data,
)
from .order_events import append_event, append_order_event

__all__ = [
    "CreatedEventData",
    "WeightVerifiedEventData",
    "VisualVerifiedEventData",
    "StatusChangedEventData",
    "ArchivedEventData",
    "UnarchivedEventData",
    "OrderEventData",
    "parse_event_data",
    "append_event",
    "append_order_event",
]
