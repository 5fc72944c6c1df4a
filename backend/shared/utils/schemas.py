"""
Shared Pydantic schemas used across the application.

Two families live here:
- collaborator contracts (StructuredOrder, VisualVerificationResult)
- request/response bodies of the HTTP API
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.config.constants import Limits


# =============================================================================
# Common Types
# =============================================================================

OrderStatusLiteral = Literal[
    "pending_weight", "weighed", "ready_for_lockers", "completed", "cancelled", "archived"
]
RestoreStatusLiteral = Literal["pending_weight", "weighed", "completed", "cancelled"]
ChannelLiteral = Literal["delivery", "takeout"]
VisualStatusLiteral = Literal["verified", "missing_items", "extra_items", "uncertain", "wrong_image"]


class ErrorResponse(BaseModel):
    """Body returned for every AppException."""

    detail: str


# =============================================================================
# Structuring collaborator contract
# =============================================================================


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


class StructuredModifier(BaseModel):
    """A modifier as extracted from the order text. price is the line total."""

    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    price: float = 0

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _require_text(value)


class StructuredItem(BaseModel):
    """A product line as extracted. price is the line total, not the unit price."""

    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    quantity: int = Field(ge=Limits.MIN_QUANTITY)
    price: float = 0
    modifiers: list[StructuredModifier] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        return _require_text(value)


class StructuredCustomer(BaseModel):
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


class StructuredOrder(BaseModel):
    """
    Output of the text-structuring collaborator.

    Monetary values are in currency units exactly as printed on the order;
    conversion to cents happens when the order is persisted.
    """

    # Money fields must be finite
    model_config = ConfigDict(allow_inf_nan=False)

    type: ChannelLiteral
    check_number: str
    customer: StructuredCustomer
    items: list[StructuredItem] = Field(min_length=1)
    subtotal_amount: float = 0
    tax_amount: float = 0
    total_amount: float = 0


# =============================================================================
# Vision collaborator contract
# =============================================================================


class IdentifiedItem(BaseModel):
    name: str
    found: bool
    confidence: float = Field(ge=0, le=100)


class VisualVerificationResult(BaseModel):
    """Output of the vision collaborator."""

    match: bool
    confidence: float = Field(ge=0, le=100)
    identified_items: list[IdentifiedItem] = Field(default_factory=list)
    missing_items: list[str] = Field(default_factory=list)
    extra_items: list[str] = Field(default_factory=list)
    wrong_order: bool = False
    notes: str | None = None


# =============================================================================
# Order Schemas
# =============================================================================


class OrderItemModifierOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    modifier_id: int | None
    name: str
    total_price: int


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    name: str
    quantity: int
    total_price: int
    modifiers: list[OrderItemModifierOutput] = []


class OrderSummary(BaseModel):
    """Row of the order list."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    status: str
    channel: str
    check_number: str
    customer_name: str
    total_amount: int
    expected_weight: int
    actual_weight: int | None
    delta_weight: int | None
    visual_status: str | None
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime


class OrderOutput(OrderSummary):
    """Full order with items."""

    customer_email: str | None
    customer_phone: str | None
    customer_address: str | None
    subtotal_amount: int
    tax_amount: int
    weight_verified_at: datetime | None
    visual_result: dict[str, Any] | None
    visual_verified_at: datetime | None
    archived_reason: str | None
    structured_snapshot: dict[str, Any]
    items: list[OrderItemOutput] = []


class OrderListResponse(BaseModel):
    items: list[OrderSummary]
    pagination: dict[str, Any]


class RecordWeightRequest(BaseModel):
    """Body of PUT /api/orders/{id}/weight. Weight in grams."""

    actual_weight: int = Field(gt=0)
    status: Literal["weighed", "completed"] | None = None


class WeightAnalysisOutput(BaseModel):
    status: Literal["perfect", "underweight", "overweight"]
    action: Literal["ready", "re-weigh", "review"]
    message: str
    delta: int
    suggested_item: str | None = None
    confidence: float | None = None


class RecordWeightResponse(BaseModel):
    order: OrderOutput
    analysis: WeightAnalysisOutput


class OrderIdsRequest(BaseModel):
    order_ids: list[int] = Field(min_length=1, max_length=Limits.MAX_BATCH_SIZE)

    @field_validator("order_ids")
    @classmethod
    def dedupe_ids(cls, value: list[int]) -> list[int]:
        return list(dict.fromkeys(value))


class ArchiveRequest(OrderIdsRequest):
    reason: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)


class UnarchiveRequest(OrderIdsRequest):
    restore_status: RestoreStatusLiteral = "pending_weight"


class CancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=Limits.MAX_REASON_LENGTH)


class BulkTransitionResponse(BaseModel):
    updated: int
    order_ids: list[int]


# =============================================================================
# Audit Ledger Schemas
# =============================================================================


class OrderEventOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    event_type: str
    event_data: dict[str, Any]
    actor_id: str | None
    created_at: datetime


class OrderEventListResponse(BaseModel):
    items: list[OrderEventOutput]
    pagination: dict[str, Any]


# =============================================================================
# Visual Verification Schemas
# =============================================================================


class VerifyVisualRequest(BaseModel):
    """Base64-encoded photos of the packed bag."""

    images: list[str] = Field(min_length=1, max_length=Limits.MAX_VERIFICATION_IMAGES)


class JobAcceptedResponse(BaseModel):
    status: Literal["queued"] = "queued"
    job_id: str


class VisualCompletionRequest(BaseModel):
    """Completion callback posted by whoever ran the vision job."""

    result: VisualVerificationResult
    images: list[str] = Field(default_factory=list)


class VisualCompletionResponse(BaseModel):
    order_id: int
    status: VisualStatusLiteral
    confidence: float


# =============================================================================
# Scheduler Schemas
# =============================================================================


class ArchiveSweepResponse(BaseModel):
    archived: int
    tenants: int
