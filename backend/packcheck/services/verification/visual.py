"""
Visual Verification Orchestrator.

A photo check runs in three steps that may happen in different processes:

    request()   HTTP: validate, enqueue a verify_visual job
    run()       worker: build the prompt, call the vision collaborator
    complete()  persist the outcome and append a visual_verified event

complete() is idempotent (last write wins) and only touches the visual_*
fields, so it never interferes with weight verification.
"""

from __future__ import annotations

from typing import Any, Iterable, Sequence

from packcheck.models import Order, utcnow
from packcheck.services.ai.prompts import DEFAULT_VISUAL_VERIFICATION_PROMPT
from packcheck.services.base_service import TenantService
from packcheck.services.events import VisualVerifiedEventData, append_order_event
from shared.config.constants import Limits, OrderStatus, VisualStatus, Workflow
from shared.config.logging import get_logger
from shared.utils.exceptions import InvalidTransitionError, ValidationError
from shared.utils.schemas import VisualVerificationResult

logger = get_logger(__name__)

ITEMS_PLACEHOLDER = "{items}"


def format_items(items: Iterable[Any]) -> str:
    """
    One line per order line, modifiers in parentheses.

        - 2x Taco al Pastor (Extra Cheese, No Onion)
    """
    lines = []
    for item in items:
        modifiers = ", ".join(m.name for m in item.modifiers)
        suffix = f" ({modifiers})" if modifiers else ""
        lines.append(f"- {item.quantity}x {item.name}{suffix}")
    return "\n".join(lines)


def build_verification_prompt(items: Iterable[Any], template: str | None = None) -> str:
    """
    Prompt for the vision collaborator. A tenant ``template`` replaces the
    default; without an {items} placeholder the list is appended.
    """
    template = template or DEFAULT_VISUAL_VERIFICATION_PROMPT
    item_list = format_items(items)
    if ITEMS_PLACEHOLDER in template:
        return template.replace(ITEMS_PLACEHOLDER, item_list)
    return f"{template.rstrip()}\n\nEXPECTED ORDER ITEMS:\n{item_list}"


def classify_visual_result(result: VisualVerificationResult) -> str:
    if result.wrong_order:
        return VisualStatus.WRONG_IMAGE
    if result.match and result.confidence >= Limits.VISUAL_MATCH_MIN_CONFIDENCE:
        return VisualStatus.VERIFIED
    if result.missing_items:
        return VisualStatus.MISSING_ITEMS
    if result.extra_items:
        return VisualStatus.EXTRA_ITEMS
    return VisualStatus.UNCERTAIN


class VisualVerificationService(TenantService):
    """Photo verification of one tenant's orders."""

    def _validate_images(self, images: Sequence[str]) -> None:
        if not images:
            raise ValidationError("At least one image is required")
        if len(images) > Limits.MAX_VERIFICATION_IMAGES:
            raise ValidationError(
                f"At most {Limits.MAX_VERIFICATION_IMAGES} images per verification"
            )
        if any(not image.strip() for image in images):
            raise ValidationError("Images must not be empty")

    def _verifiable_order(self, order_id: int) -> Order:
        order = self._get_order(order_id)
        if order.status == OrderStatus.ARCHIVED:
            raise InvalidTransitionError(
                f"order {order.id}", order.status, "visual verification",
                tenant_id=self._tenant.id,
            )
        if not order.items:
            raise ValidationError("Order has no items to verify", order_id=order.id)
        return order

    async def request(self, order_id: int, images: Sequence[str], dispatcher) -> str:
        """Check the order and enqueue a verify_visual job. Returns the job id."""
        self._validate_images(images)
        order = self._verifiable_order(order_id)
        job_id = await dispatcher.dispatch(
            Workflow.VERIFY_VISUAL,
            {"tenant_id": self._tenant.id, "order_id": order.id, "images": list(images)},
        )
        logger.info(
            "Visual verification queued",
            order_id=order.id,
            tenant_id=self._tenant.id,
            images=len(images),
            job_id=job_id,
        )
        return job_id

    async def run(self, order_id: int, images: Sequence[str], client) -> Order:
        """Ask the vision collaborator about ``images`` and record the outcome."""
        self._validate_images(images)
        order = self._verifiable_order(order_id)
        prompt = build_verification_prompt(order.items, self._tenant.visual_verification_prompt)
        # Release the read transaction while waiting on the collaborator
        self._db.rollback()

        result = await client.verify_images(prompt, images)
        return self.complete(order_id, result, images)

    def complete(
        self,
        order_id: int,
        result: VisualVerificationResult,
        images: Sequence[str] = (),
        actor_id: str | None = None,
    ) -> Order:
        """Persist a vision result. Repeating the call overwrites the previous one."""
        order = self._get_order(order_id, for_update=True)
        status = classify_visual_result(result)
        now = utcnow()

        order.visual_status = status
        order.visual_result = {**result.model_dump(mode="json"), "images": list(images)}
        order.visual_verified_at = now
        order.touch(now)
        append_order_event(
            self._db,
            order,
            VisualVerifiedEventData(
                status=status,
                confidence=result.confidence,
                match=result.match,
                wrong_order=result.wrong_order,
                missing_items=result.missing_items,
                extra_items=result.extra_items,
                image_count=len(images),
            ),
            actor_id=actor_id,
        )
        self._commit("visual verification", order_id=order_id)

        logger.info(
            "Visual verification completed",
            order_id=order_id,
            tenant_id=self._tenant.id,
            status=status,
            confidence=result.confidence,
        )
        return order
