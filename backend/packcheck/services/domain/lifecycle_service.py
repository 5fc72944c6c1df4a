"""
Lifecycle State Machine.

    pending_weight --record_weight--> completed (default) | weighed
    weighed        --revert--------> pending_weight   (weight cleared)
    completed      --revert--------> weighed
    weighed        --stage---------> ready_for_lockers
    ready_for_lockers --batch_complete--> completed
    pending_weight | weighed | ready_for_lockers --cancel--> cancelled
    any non-archived --archive--> archived --unarchive--> caller-chosen

Each successful change sets updated_at and appends exactly one event in
the same transaction. A rejected command raises before anything is
written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NamedTuple, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from packcheck.models import Order, Tenant, utcnow
from packcheck.repositories import get_order_repository
from packcheck.services.base_service import TenantService
from packcheck.services.events import (
    ArchivedEventData,
    StatusChangedEventData,
    UnarchivedEventData,
    WeightVerifiedEventData,
    append_event,
    append_order_event,
)
from packcheck.services.verification.weight_analysis import (
    WeightAnalysis,
    analyze_order_weight,
)
from shared.config.constants import REVERT_TRANSITIONS, Limits, OrderStatus
from shared.config.logging import lifecycle_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import safe_commit
from shared.utils.exceptions import (
    InvalidTransitionError,
    OrderNotFoundError,
    PersistenceError,
    ValidationError,
)

AUTO_ARCHIVE_REASON = "Auto-archived after inactivity"


class WeightRecording(NamedTuple):
    order: Order
    analysis: WeightAnalysis


class OrderLifecycleService(TenantService):
    """State transitions for one tenant's orders."""

    def _load_batch(self, order_ids: Sequence[int], strict: bool = True) -> list[Order]:
        """
        Lock the selected orders. With ``strict`` every id must exist for
        this tenant; otherwise unknown ids are skipped.
        """
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            raise ValidationError("order_ids must not be empty")
        if len(ids) > Limits.MAX_BATCH_SIZE:
            raise ValidationError(
                f"At most {Limits.MAX_BATCH_SIZE} orders per batch",
                requested=len(ids),
            )

        orders = {o.id: o for o in self._orders.find_by_ids(ids, for_update=True)}
        if strict:
            missing = [i for i in ids if i not in orders]
            if missing:
                raise OrderNotFoundError(missing[0], tenant_id=self._tenant.id)
        return [orders[i] for i in ids if i in orders]

    def _tolerance(self) -> int:
        tolerance = self._tenant.order_weight_delta_tolerance
        return settings.default_weight_tolerance_grams if tolerance is None else tolerance

    def _set_status(
        self,
        order: Order,
        to_status: str,
        now: datetime,
        actor_id: str | None,
        reason: str | None = None,
        cleared_weight: bool = False,
    ) -> None:
        from_status = order.status
        order.status = to_status
        order.touch(now)
        append_order_event(
            self._db,
            order,
            StatusChangedEventData(
                from_status=from_status,
                to_status=to_status,
                reason=reason,
                cleared_weight=cleared_weight,
            ),
            actor_id=actor_id,
        )

    # =========================================================================
    # Weight
    # =========================================================================

    def record_weight(
        self,
        order_id: int,
        actual_weight: int,
        target_status: str | None = None,
        actor_id: str | None = None,
    ) -> WeightRecording:
        """
        Store a scale reading and move the order to ``target_status``
        (completed unless the caller asks for weighed).

        Allowed from pending_weight, and from weighed as a re-weigh.
        Returns the order with the advisory weight analysis.
        """
        if actual_weight <= 0:
            raise ValidationError("actual_weight must be a positive number of grams")
        target = target_status or OrderStatus.COMPLETED
        if target not in OrderStatus.WEIGHT_TARGETS:
            raise ValidationError(f"Weight target must be one of {OrderStatus.WEIGHT_TARGETS}")

        order = self._get_order(order_id, for_update=True)
        if order.status not in (OrderStatus.PENDING_WEIGHT, OrderStatus.WEIGHED):
            raise InvalidTransitionError(
                f"order {order.id}", order.status, target, tenant_id=self._tenant.id
            )

        now = utcnow()
        from_status = order.status
        previous_weight = order.actual_weight
        tolerance = self._tolerance()

        order.actual_weight = actual_weight
        order.delta_weight = actual_weight - order.expected_weight
        order.weight_verified_at = now
        order.status = target
        order.touch(now)

        analysis = analyze_order_weight(
            actual_weight, order.expected_weight, order.items, tolerance
        )
        append_order_event(
            self._db,
            order,
            WeightVerifiedEventData(
                expected_weight=order.expected_weight,
                actual_weight=actual_weight,
                delta_weight=order.delta_weight,
                tolerance=tolerance,
                analysis_status=analysis.status,
                from_status=from_status,
                to_status=target,
                is_reweigh=from_status == OrderStatus.WEIGHED,
                previous_actual_weight=previous_weight,
            ),
            actor_id=actor_id,
        )
        self._commit("weight recording", order_id=order_id)

        logger.info(
            "Weight recorded",
            order_id=order_id,
            tenant_id=self._tenant.id,
            to_status=target,
            delta=analysis.delta,
            analysis=analysis.status,
        )
        return WeightRecording(order=order, analysis=analysis)

    def revert(self, order_id: int, actor_id: str | None = None) -> Order:
        """weighed -> pending_weight (clears the weight); completed -> weighed."""
        order = self._get_order(order_id, for_update=True)
        to_status = REVERT_TRANSITIONS.get(order.status)
        if to_status is None:
            raise InvalidTransitionError(
                f"order {order.id}", order.status, "previous state", tenant_id=self._tenant.id
            )

        cleared = to_status == OrderStatus.PENDING_WEIGHT
        if cleared:
            order.clear_weight()
        self._set_status(order, to_status, utcnow(), actor_id, cleared_weight=cleared)
        self._commit("order revert", order_id=order_id)

        logger.info("Order reverted", order_id=order_id, to_status=to_status, cleared=cleared)
        return order

    # =========================================================================
    # Batches
    # =========================================================================

    def _transition_batch(
        self,
        order_ids: Sequence[int],
        from_status: str,
        to_status: str,
        actor_id: str | None,
        operation: str,
    ) -> list[Order]:
        """All-or-nothing move of every selected order from one state to another."""
        orders = self._load_batch(order_ids)
        for order in orders:
            if order.status != from_status:
                raise InvalidTransitionError(
                    f"order {order.id}", order.status, to_status, tenant_id=self._tenant.id
                )

        now = utcnow()
        for order in orders:
            self._set_status(order, to_status, now, actor_id)
        self._commit(operation, count=len(orders))

        logger.info(operation.capitalize(), tenant_id=self._tenant.id, count=len(orders))
        return orders

    def stage_for_lockers(
        self, order_ids: Sequence[int], actor_id: str | None = None
    ) -> list[Order]:
        """weighed -> ready_for_lockers, all or nothing."""
        return self._transition_batch(
            order_ids,
            OrderStatus.WEIGHED,
            OrderStatus.READY_FOR_LOCKERS,
            actor_id,
            "locker staging",
        )

    def batch_complete(
        self, order_ids: Sequence[int], actor_id: str | None = None
    ) -> list[Order]:
        """ready_for_lockers -> completed, all or nothing."""
        return self._transition_batch(
            order_ids,
            OrderStatus.READY_FOR_LOCKERS,
            OrderStatus.COMPLETED,
            actor_id,
            "batch completion",
        )

    def cancel(
        self, order_id: int, reason: str | None = None, actor_id: str | None = None
    ) -> Order:
        order = self._get_order(order_id, for_update=True)
        if order.status not in OrderStatus.CANCELLABLE:
            raise InvalidTransitionError(
                f"order {order.id}", order.status, OrderStatus.CANCELLED,
                tenant_id=self._tenant.id,
            )
        self._set_status(order, OrderStatus.CANCELLED, utcnow(), actor_id, reason=reason)
        self._commit("order cancellation", order_id=order_id)
        logger.info("Order cancelled", order_id=order_id, tenant_id=self._tenant.id)
        return order

    # =========================================================================
    # Archival
    # =========================================================================

    def archive(
        self,
        order_ids: Sequence[int],
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> list[Order]:
        """
        Archive the selected orders. Orders that are already archived, or
        that are not this tenant's, are left alone.
        """
        now = utcnow()
        archived = []
        for order in self._load_batch(order_ids, strict=False):
            if order.status == OrderStatus.ARCHIVED:
                continue
            from_status = order.status
            order.status = OrderStatus.ARCHIVED
            order.archived_at = now
            order.archived_reason = reason
            order.touch(now)
            append_order_event(
                self._db,
                order,
                ArchivedEventData(from_status=from_status, reason=reason),
                actor_id=actor_id,
            )
            archived.append(order)

        if archived:
            self._commit("order archival", count=len(archived))
        logger.info("Orders archived", tenant_id=self._tenant.id, count=len(archived))
        return archived

    def unarchive(
        self,
        order_ids: Sequence[int],
        restore_status: str = OrderStatus.PENDING_WEIGHT,
        actor_id: str | None = None,
    ) -> list[Order]:
        """Restore archived orders to ``restore_status``. Others are skipped."""
        if restore_status not in OrderStatus.RESTORABLE:
            raise ValidationError(
                f"restore_status must be one of {OrderStatus.RESTORABLE}",
                restore_status=restore_status,
            )

        now = utcnow()
        restored = []
        for order in self._load_batch(order_ids, strict=False):
            if order.status != OrderStatus.ARCHIVED:
                continue
            order.status = restore_status
            order.archived_at = None
            order.archived_reason = None
            order.touch(now)
            append_order_event(
                self._db,
                order,
                UnarchivedEventData(restore_status=restore_status),
                actor_id=actor_id,
            )
            restored.append(order)

        if restored:
            self._commit("order unarchival", count=len(restored))
        logger.info(
            "Orders unarchived",
            tenant_id=self._tenant.id,
            count=len(restored),
            restore_status=restore_status,
        )
        return restored


# =============================================================================
# Automatic archival
# =============================================================================


@dataclass
class SweepResult:
    archived: int = 0
    tenants: int = 0


def _archive_chunk(
    db: Session, tenant_id: int, order_ids: list[int], cutoff: datetime, now: datetime
) -> list[int]:
    """
    Archive one chunk. The UPDATE repeats the inactivity predicate so an
    order touched since it was selected is left alone.
    """
    stmt = (
        update(Order)
        .where(
            Order.tenant_id == tenant_id,
            Order.id.in_(order_ids),
            Order.status == OrderStatus.PENDING_WEIGHT,
            Order.created_at < cutoff,
            Order.updated_at < cutoff,
        )
        .values(
            status=OrderStatus.ARCHIVED,
            archived_at=now,
            archived_reason=AUTO_ARCHIVE_REASON,
            updated_at=now,
        )
        .returning(Order.id)
        .execution_options(synchronize_session=False)
    )
    archived_ids = list(db.execute(stmt).scalars().all())
    for order_id in archived_ids:
        append_event(
            db,
            order_id,
            tenant_id,
            ArchivedEventData(
                from_status=OrderStatus.PENDING_WEIGHT,
                reason=AUTO_ARCHIVE_REASON,
                auto_archived=True,
            ),
        )
    return archived_ids


def archive_inactive_orders(db: Session, now: datetime | None = None) -> SweepResult:
    """
    Archive every pending_weight order whose created_at and updated_at are
    both older than the inactivity window, across all tenants.

    Chunks are committed independently; a failing chunk is rolled back and
    the error propagates, leaving earlier chunks archived. Safe to run
    concurrently with itself and with manual commands.
    """
    now = now or utcnow()
    cutoff = now - timedelta(hours=settings.auto_archive_after_hours)
    chunk_size = settings.archive_sweep_chunk_size
    result = SweepResult()

    tenant_ids = list(db.scalars(select(Tenant.id).order_by(Tenant.id)).all())
    for tenant_id in tenant_ids:
        result.tenants += 1
        repo = get_order_repository(db, tenant_id)
        last_id = 0
        while True:
            candidates = repo.find_inactive_ids(cutoff, chunk_size, after_id=last_id)
            if not candidates:
                break
            try:
                archived_ids = _archive_chunk(db, tenant_id, candidates, cutoff, now)
                safe_commit(db)
            except SQLAlchemyError as e:
                db.rollback()
                raise PersistenceError(
                    "auto-archive sweep", tenant_id=tenant_id, error=str(e)
                ) from e
            result.archived += len(archived_ids)
            # Orders touched since selection are skipped, not retried
            last_id = candidates[-1]
            if len(candidates) < chunk_size:
                break

    logger.info(
        "Auto-archive sweep finished",
        archived=result.archived,
        tenants=result.tenants,
        cutoff=cutoff.isoformat(),
    )
    return result
