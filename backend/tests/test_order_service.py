"""
Tests for OrderService.create_order (order transaction builder).
"""

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from packcheck.models import Order, OrderEvent, Product
from packcheck.services.domain import OrderService
from shared.config.constants import EventType, OrderStatus
from shared.utils.exceptions import PersistenceError, ResolutionError


def _count(db, model):
    return db.scalar(select(func.count()).select_from(model))


class TestCreateOrder:

    def test_persists_pending_order_with_items(self, db_session, seed_tenant, seed_catalog, make_structured):
        order = OrderService(db_session, seed_tenant).create_order(
            make_structured(), raw_input="Check #1001", actor_id="importer"
        )

        assert order.id is not None
        assert order.status == OrderStatus.PENDING_WEIGHT
        assert order.expected_weight == 380
        assert order.actual_weight is None
        assert order.delta_weight is None
        assert order.total_amount == 972
        assert order.tax_amount == 72
        assert order.customer_name == "Ana Pérez"
        assert order.raw_input == "Check #1001"
        assert order.structured_snapshot["check_number"] == "1001"

        [item] = order.items
        assert item.product_id == seed_catalog["taco"].id
        assert item.quantity == 2
        assert item.total_price == 700
        assert item.modifiers[0].modifier_id == seed_catalog["extra cheese"].id
        assert item.modifiers[0].total_price == 200

    def test_writes_single_created_event(self, db_session, seed_tenant, seed_catalog, make_structured):
        order = OrderService(db_session, seed_tenant).create_order(
            make_structured(), raw_input="x", actor_id="importer"
        )

        events = db_session.execute(select(OrderEvent)).scalars().all()
        assert len(events) == 1
        event = events[0]
        assert event.order_id == order.id
        assert event.tenant_id == seed_tenant.id
        assert event.event_type == EventType.CREATED
        assert event.actor_id == "importer"
        assert event.event_data["expected_weight"] == 380
        assert event.event_data["auto_created_products"] == []

    def test_unknown_names_are_reported_in_created_event(self, db_session, seed_tenant, make_structured):
        order = OrderService(db_session, seed_tenant).create_order(
            make_structured(items=[{"name": "Sope", "quantity": 1, "price": 5}]), raw_input="x"
        )

        assert order.expected_weight == 0
        event = db_session.execute(select(OrderEvent)).scalar_one()
        assert event.event_data["auto_created_products"] == ["sope"]

    def test_orders_are_scoped_to_their_tenant(
        self, db_session, seed_tenant, other_tenant, seed_catalog, make_structured
    ):
        order = OrderService(db_session, other_tenant).create_order(make_structured(), raw_input="x")

        assert order.tenant_id == other_tenant.id
        # Tenant has no catalog yet, so Taco is created for it at weight 0
        assert order.expected_weight == 0
        assert order.items[0].product.tenant_id == other_tenant.id


class TestAtomicity:

    def test_resolution_failure_leaves_no_trace(self, db_session, seed_tenant, make_structured):
        structured = make_structured(
            items=[
                {"name": "Gordita", "quantity": 1},
                {"name": "́", "quantity": 1},
            ]
        )

        with pytest.raises(ResolutionError):
            OrderService(db_session, seed_tenant).create_order(structured, raw_input="x")

        assert _count(db_session, Order) == 0
        assert _count(db_session, OrderEvent) == 0
        assert _count(db_session, Product) == 0

    def test_store_failure_rolls_back_created_catalog_rows(
        self, db_session, seed_tenant, make_structured
    ):
        with patch(
            "packcheck.services.domain.order_service.append_order_event",
            side_effect=OperationalError("INSERT", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(PersistenceError) as exc_info:
                OrderService(db_session, seed_tenant).create_order(
                    make_structured(items=[{"name": "Flauta", "quantity": 2}]), raw_input="x"
                )

        assert exc_info.value.status_code == 503
        assert exc_info.value.retryable is True
        assert _count(db_session, Order) == 0
        assert _count(db_session, Product) == 0
