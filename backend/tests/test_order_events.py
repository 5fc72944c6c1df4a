"""
Tests for the audit ledger: append, ordering, immutability.
"""

import pytest

from packcheck.models import ImmutableEventError, OrderEvent
from packcheck.repositories.order_event import OrderEventFilters, get_order_event_repository
from packcheck.services.domain import OrderLifecycleService
from packcheck.services.events import (
    StatusChangedEventData,
    WeightVerifiedEventData,
    append_order_event,
    parse_event_data,
)
from shared.config.constants import EventType, OrderStatus


class TestAppendOrderEvent:

    def test_event_inherits_order_tenant(self, db_session, make_order, seed_tenant):
        order = make_order()

        event = append_order_event(
            db_session,
            order,
            StatusChangedEventData(from_status="pending_weight", to_status="cancelled"),
            actor_id="op",
        )
        db_session.commit()

        assert event.id is not None
        assert event.tenant_id == seed_tenant.id
        assert event.event_type == EventType.STATUS_CHANGED
        assert "type" not in event.event_data

    def test_nothing_is_written_without_commit(self, db_session, make_order):
        order = make_order()
        append_order_event(
            db_session,
            order,
            StatusChangedEventData(from_status="pending_weight", to_status="cancelled"),
        )
        db_session.rollback()

        repo = get_order_event_repository(db_session, order.tenant_id)
        assert len(repo.find_for_order(order.id)) == 1


class TestParseEventData:

    def test_round_trips_stored_payload(self, db_session, make_order, seed_tenant):
        order = make_order()
        OrderLifecycleService(db_session, seed_tenant).record_weight(order.id, 390)

        events = get_order_event_repository(db_session, seed_tenant.id).find_for_order(order.id)
        data = parse_event_data(events[-1].event_type, events[-1].event_data)

        assert isinstance(data, WeightVerifiedEventData)
        assert data.actual_weight == 390
        assert data.delta_weight == 10


class TestImmutability:

    def test_update_is_rejected(self, db_session, make_order):
        order = make_order()
        event = db_session.query(OrderEvent).filter_by(order_id=order.id).one()

        event.event_data = {"tampered": True}
        with pytest.raises(ImmutableEventError):
            db_session.flush()
        db_session.rollback()

    def test_delete_is_rejected(self, db_session, make_order):
        order = make_order()
        event = db_session.query(OrderEvent).filter_by(order_id=order.id).one()

        db_session.delete(event)
        with pytest.raises(ImmutableEventError):
            db_session.flush()
        db_session.rollback()


class TestOrderEventRepository:

    def test_trail_is_oldest_first(self, db_session, make_order, seed_tenant):
        order = make_order()
        service = OrderLifecycleService(db_session, seed_tenant)
        service.record_weight(order.id, 380, target_status=OrderStatus.WEIGHED)
        service.revert(order.id)
        service.cancel(order.id)

        events = get_order_event_repository(db_session, seed_tenant.id).find_for_order(order.id)

        assert [e.event_type for e in events] == [
            EventType.CREATED,
            EventType.WEIGHT_VERIFIED,
            EventType.STATUS_CHANGED,
            EventType.STATUS_CHANGED,
        ]
        assert [e.id for e in events] == sorted(e.id for e in events)

    def test_filters_by_type_and_tenant(self, db_session, make_order, seed_tenant, other_tenant):
        mine = make_order()
        make_order(tenant=other_tenant)

        repo = get_order_event_repository(db_session, seed_tenant.id)
        events = repo.find_all(OrderEventFilters(event_type=EventType.CREATED))

        assert [e.order_id for e in events] == [mine.id]
        assert repo.find_all(OrderEventFilters(event_type=EventType.ARCHIVED)) == []
