"""
Typed payloads of order events.

Each event type has one schema; the ``type`` field doubles as the
discriminator so stored JSON can be parsed back into the right model:

    data = parse_event_data(event.event_type, event.event_data)
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from shared.utils.schemas import OrderStatusLiteral, RestoreStatusLiteral, VisualStatusLiteral


class CreatedEventData(BaseModel):
    type: Literal["created"] = "created"
    check_number: str
    customer_name: str
    channel: Literal["delivery", "takeout"]
    items_count: int
    expected_weight: int
    auto_created_products: list[str] = Field(default_factory=list)
    auto_created_modifiers: list[str] = Field(default_factory=list)


class WeightVerifiedEventData(BaseModel):
    type: Literal["weight_verified"] = "weight_verified"
    expected_weight: int
    actual_weight: int
    delta_weight: int
    tolerance: int
    analysis_status: Literal["perfect", "underweight", "overweight"]
    from_status: OrderStatusLiteral
    to_status: OrderStatusLiteral
    is_reweigh: bool = False
    previous_actual_weight: int | None = None


class VisualVerifiedEventData(BaseModel):
    type: Literal["visual_verified"] = "visual_verified"
    status: VisualStatusLiteral
    confidence: float
    match: bool
    wrong_order: bool = False
    missing_items: list[str] = Field(default_factory=list)
    extra_items: list[str] = Field(default_factory=list)
    image_count: int = 0


class StatusChangedEventData(BaseModel):
    type: Literal["status_changed"] = "status_changed"
    from_status: OrderStatusLiteral
    to_status: OrderStatusLiteral
    reason: str | None = None
    cleared_weight: bool = False


class ArchivedEventData(BaseModel):
    type: Literal["archived"] = "archived"
    from_status: OrderStatusLiteral
    reason: str | None = None
    auto_archived: bool = False


class UnarchivedEventData(BaseModel):
    type: Literal["unarchived"] = "unarchived"
    restore_status: RestoreStatusLiteral


OrderEventData = Annotated[
    Union[
        CreatedEventData,
        WeightVerifiedEventData,
        VisualVerifiedEventData,
        StatusChangedEventData,
        ArchivedEventData,
        UnarchivedEventData,
    ],
    Field(discriminator="type"),
]

_event_data_adapter: TypeAdapter[OrderEventData] = TypeAdapter(OrderEventData)


def parse_event_data(event_type: str, payload: dict) -> OrderEventData:
    """Parse a stored payload back into its typed model."""
    return _event_data_adapter.validate_python({**payload, "type": event_type})
