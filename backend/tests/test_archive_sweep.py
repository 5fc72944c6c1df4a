"""
Tests for the automatic archival sweep.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select

from packcheck.models import OrderEvent, utcnow
from packcheck.services.domain import AUTO_ARCHIVE_REASON, archive_inactive_orders
from packcheck.services.domain.lifecycle_service import _archive_chunk
from shared.config.constants import EventType, OrderStatus
from shared.config.settings import settings


@pytest.fixture
def now():
    return utcnow()


def _age(db, order, created_hours, updated_hours=None, now=None):
    """Backdate an order's timestamps."""
    now = now or utcnow()
    order.created_at = now - timedelta(hours=created_hours)
    order.updated_at = now - timedelta(
        hours=created_hours if updated_hours is None else updated_hours
    )
    db.commit()


class TestArchiveInactiveOrders:

    def test_archives_old_pending_orders(self, db_session, make_order, now):
        stale = make_order()
        fresh = make_order()
        _age(db_session, stale, settings.auto_archive_after_hours + 1, now=now)

        result = archive_inactive_orders(db_session, now=now)

        assert result.archived == 1
        assert result.tenants == 1
        db_session.expire_all()
        assert stale.status == OrderStatus.ARCHIVED
        assert stale.archived_reason == AUTO_ARCHIVE_REASON
        assert stale.archived_at is not None
        assert fresh.status == OrderStatus.PENDING_WEIGHT

        event = db_session.execute(
            select(OrderEvent).where(
                OrderEvent.order_id == stale.id,
                OrderEvent.event_type == EventType.ARCHIVED,
            )
        ).scalar_one()
        assert event.actor_id is None
        assert event.event_data["auto_archived"] is True
        assert event.event_data["from_status"] == OrderStatus.PENDING_WEIGHT

    def test_recently_touched_orders_survive(self, db_session, make_order, now):
        order = make_order()
        _age(db_session, order, created_hours=72, updated_hours=1, now=now)

        assert archive_inactive_orders(db_session, now=now).archived == 0
        db_session.expire_all()
        assert order.status == OrderStatus.PENDING_WEIGHT

    @pytest.mark.parametrize(
        "status", [OrderStatus.WEIGHED, OrderStatus.COMPLETED, OrderStatus.CANCELLED]
    )
    def test_only_pending_orders_are_swept(self, db_session, make_order, now, status):
        order = make_order(status=status)
        _age(db_session, order, 72, now=now)

        assert archive_inactive_orders(db_session, now=now).archived == 0

    def test_runs_in_chunks_across_tenants(
        self, db_session, make_order, other_tenant, now, monkeypatch
    ):
        monkeypatch.setattr(settings, "archive_sweep_chunk_size", 2)
        orders = [make_order() for _ in range(5)] + [make_order(tenant=other_tenant)]
        for order in orders:
            _age(db_session, order, 48, now=now)

        result = archive_inactive_orders(db_session, now=now)

        assert result.archived == 6
        assert result.tenants == 2

    def test_second_run_is_a_no_op(self, db_session, make_order, now):
        order = make_order()
        _age(db_session, order, 48, now=now)

        archive_inactive_orders(db_session, now=now)
        assert archive_inactive_orders(db_session, now=now).archived == 0

        archived_events = db_session.execute(
            select(OrderEvent).where(OrderEvent.event_type == EventType.ARCHIVED)
        ).scalars().all()
        assert len(archived_events) == 1

    def test_chunk_rechecks_inactivity(self, db_session, seed_tenant, make_order, now):
        # A fresh order handed in as if it had been selected as stale
        order = make_order()
        cutoff = now - timedelta(hours=settings.auto_archive_after_hours)

        archived = _archive_chunk(db_session, seed_tenant.id, [order.id], cutoff, now)

        assert archived == []

    def test_full_chunk_of_touched_orders_does_not_stop_tenant_scan(
        self, db_session, make_order, now, monkeypatch
    ):
        monkeypatch.setattr(settings, "archive_sweep_chunk_size", 2)
        orders = [make_order() for _ in range(5)]
        for order in orders:
            _age(db_session, order, 48, now=now)

        calls = []

        def first_chunk_all_touched(db, tenant_id, order_ids, cutoff, at):
            calls.append(list(order_ids))
            if len(calls) == 1:
                return []
            return _archive_chunk(db, tenant_id, order_ids, cutoff, at)

        monkeypatch.setattr(
            "packcheck.services.domain.lifecycle_service._archive_chunk",
            first_chunk_all_touched,
        )

        result = archive_inactive_orders(db_session, now=now)

        assert result.archived == 3
        assert calls == [
            [orders[0].id, orders[1].id],
            [orders[2].id, orders[3].id],
            [orders[4].id],
        ]
        db_session.expire_all()
        assert [o.status for o in orders[:2]] == [OrderStatus.PENDING_WEIGHT] * 2
        assert all(o.status == OrderStatus.ARCHIVED for o in orders[2:])
