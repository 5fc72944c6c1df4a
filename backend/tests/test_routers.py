"""
HTTP API tests: orders, audit ledger, inbound webhook, cron, workflow callback.
"""

import pytest

from packcheck.core.health import ProbeResult
from packcheck.routers._common import get_tenant
from shared.config.constants import EventType, OrderStatus, Workflow
from shared.utils.exceptions import TenantNotFoundError


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["service"] == "packcheck"

    def test_detailed_reports_degraded_dependency(self, client, monkeypatch):
        async def fake_probes():
            return [
                ProbeResult("database", True, latency_ms=1.2),
                ProbeResult("redis", False, error="ConnectionError: refused"),
            ]

        monkeypatch.setattr("packcheck.main.probe_all", fake_probes)
        response = client.get("/api/health/detailed")

        assert response.status_code == 503
        body = response.json()
        assert body["status"] == "degraded"
        assert body["dependencies"]["database"] == {"healthy": True, "latency_ms": 1.2}
        assert body["dependencies"]["redis"]["healthy"] is False


class TestTenantHeader:

    def test_missing_header(self, client, seed_tenant):
        assert client.get("/api/orders").status_code == 400

    def test_unknown_tenant(self, client):
        response = client.get("/api/orders", headers={"X-Tenant-ID": "9999"})
        assert response.status_code == 404

    def test_slug_is_accepted(self, client, make_order):
        make_order()
        response = client.get("/api/orders", headers={"X-Tenant-ID": "taqueria-test"})
        assert response.status_code == 200
        assert len(response.json()["items"]) == 1

    def test_superscript_digit_is_not_an_id(self, db_session, seed_tenant):
        # "\u00b2".isdigit() is true but int() rejects it
        with pytest.raises(TenantNotFoundError):
            get_tenant(x_tenant_id="\u00b2", db=db_session)


class TestOrdersApi:

    def test_list_hides_archived_by_default(self, client, tenant_headers, make_order):
        make_order()
        make_order(status=OrderStatus.ARCHIVED)

        default = client.get("/api/orders", headers=tenant_headers).json()
        everything = client.get(
            "/api/orders", params={"include_archived": True}, headers=tenant_headers
        ).json()

        assert len(default["items"]) == 1
        assert default["pagination"]["total"] == 1
        assert len(everything["items"]) == 2

    def test_list_rejects_unknown_status(self, client, tenant_headers):
        response = client.get("/api/orders", params={"status": "lost"}, headers=tenant_headers)
        assert response.status_code == 400

    def test_get_order(self, client, tenant_headers, make_order):
        order = make_order()

        body = client.get(f"/api/orders/{order.id}", headers=tenant_headers).json()

        assert body["expected_weight"] == 380
        assert body["items"][0]["name"] == "Taco"
        assert body["items"][0]["modifiers"][0]["name"] == "Extra Cheese"

    def test_get_other_tenants_order(self, client, make_order, other_tenant):
        order = make_order()
        response = client.get(f"/api/orders/{order.id}", headers={"X-Tenant-ID": str(other_tenant.id)})
        assert response.status_code == 404

    def test_record_weight(self, client, tenant_headers, make_order):
        order = make_order()

        response = client.put(
            f"/api/orders/{order.id}/weight",
            json={"actual_weight": 230},
            headers=tenant_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["status"] == OrderStatus.COMPLETED
        assert body["order"]["delta_weight"] == -150
        assert body["analysis"]["status"] == "underweight"
        assert body["analysis"]["suggested_item"] == "1x Taco"

    def test_record_weight_to_weighed(self, client, tenant_headers, make_order):
        order = make_order()
        response = client.put(
            f"/api/orders/{order.id}/weight",
            json={"actual_weight": 380, "status": "weighed"},
            headers=tenant_headers,
        )
        assert response.json()["order"]["status"] == OrderStatus.WEIGHED

    def test_weight_is_put_only(self, client, tenant_headers, make_order):
        order = make_order()
        response = client.post(
            f"/api/orders/{order.id}/weight", json={"actual_weight": 380}, headers=tenant_headers
        )
        assert response.status_code == 405

    def test_record_weight_invalid_transition(self, client, tenant_headers, make_order):
        order = make_order(status=OrderStatus.CANCELLED)
        response = client.put(
            f"/api/orders/{order.id}/weight", json={"actual_weight": 380}, headers=tenant_headers
        )
        assert response.status_code == 409

    def test_record_weight_rejects_zero(self, client, tenant_headers, make_order):
        order = make_order()
        response = client.put(
            f"/api/orders/{order.id}/weight", json={"actual_weight": 0}, headers=tenant_headers
        )
        assert response.status_code == 422

    def test_revert_and_cancel(self, client, tenant_headers, make_order):
        order = make_order(status=OrderStatus.WEIGHED)

        reverted = client.post(f"/api/orders/{order.id}/revert", headers=tenant_headers)
        cancelled = client.post(
            f"/api/orders/{order.id}/cancel", json={"reason": "duplicate"}, headers=tenant_headers
        )

        assert reverted.json()["status"] == OrderStatus.PENDING_WEIGHT
        assert cancelled.json()["status"] == OrderStatus.CANCELLED

    def test_stage_and_complete_batch(self, client, tenant_headers, make_order):
        ids = [make_order(status=OrderStatus.WEIGHED).id for _ in range(2)]

        staged = client.post(
            "/api/orders/stage-for-lockers", json={"order_ids": ids}, headers=tenant_headers
        )
        completed = client.post(
            "/api/orders/batch-complete", json={"order_ids": ids}, headers=tenant_headers
        )

        assert staged.json() == {"updated": 2, "order_ids": ids}
        assert completed.json()["updated"] == 2

    def test_batch_rejects_empty_list(self, client, tenant_headers):
        response = client.post(
            "/api/orders/batch-complete", json={"order_ids": []}, headers=tenant_headers
        )
        assert response.status_code == 422

    def test_archive_and_unarchive(self, client, tenant_headers, make_order):
        order = make_order()

        archived = client.post(
            "/api/orders/archive",
            json={"order_ids": [order.id], "reason": "test"},
            headers=tenant_headers,
        )
        restored = client.put(
            "/api/orders/archive",
            json={"order_ids": [order.id], "restore_status": "weighed"},
            headers=tenant_headers,
        )

        assert archived.json()["updated"] == 1
        assert restored.json()["updated"] == 1
        body = client.get(f"/api/orders/{order.id}", headers=tenant_headers).json()
        assert body["status"] == OrderStatus.WEIGHED

    def test_order_events(self, client, tenant_headers, make_order):
        order = make_order()
        client.post(f"/api/orders/{order.id}/cancel", json={}, headers=tenant_headers)

        body = client.get(f"/api/orders/{order.id}/events", headers=tenant_headers).json()

        assert [e["event_type"] for e in body["items"]] == [
            EventType.CREATED,
            EventType.STATUS_CHANGED,
        ]
        assert body["items"][1]["actor_id"] == "operator-1"

    def test_verify_visual_queues_job(self, client, tenant_headers, make_order, dispatcher):
        order = make_order()

        response = client.post(
            f"/api/orders/{order.id}/verify-visual",
            json={"images": ["aGVsbG8="]},
            headers=tenant_headers,
        )

        assert response.status_code == 202
        assert response.json() == {"status": "queued", "job_id": "1700000000000-0"}
        assert dispatcher.jobs[0][0] == Workflow.VERIFY_VISUAL

    def test_verify_visual_image_limit(self, client, tenant_headers, make_order):
        order = make_order()
        response = client.post(
            f"/api/orders/{order.id}/verify-visual",
            json={"images": ["aGk="] * 7},
            headers=tenant_headers,
        )
        assert response.status_code == 422


class TestOrderEventsApi:

    def test_lists_tenant_events(self, client, tenant_headers, make_order):
        make_order()
        make_order()

        body = client.get(
            "/api/order-events", params={"event_type": "created"}, headers=tenant_headers
        ).json()

        assert len(body["items"]) == 2
        assert body["pagination"]["total"] == 2

    def test_unknown_event_type(self, client, tenant_headers):
        response = client.get(
            "/api/order-events", params={"event_type": "teleported"}, headers=tenant_headers
        )
        assert response.status_code == 400


class TestInboundWebhook:

    def test_queues_process_order(self, client, seed_tenant, dispatcher):
        response = client.post(
            "/api/webhooks/inbound",
            data={"recipient": "Orders@Taqueria.test", "body-plain": "Check #7\n1x Taco"},
        )

        assert response.status_code == 202
        assert dispatcher.jobs == [
            (Workflow.PROCESS_ORDER, {"tenant_id": seed_tenant.id, "raw_text": "Check #7\n1x Taco"})
        ]

    def test_unknown_recipient(self, client, seed_tenant, dispatcher):
        response = client.post(
            "/api/webhooks/inbound",
            data={"recipient": "nobody@nowhere.test", "body-plain": "x"},
        )
        assert response.status_code == 404
        assert dispatcher.jobs == []

    def test_empty_body(self, client, seed_tenant):
        response = client.post(
            "/api/webhooks/inbound",
            data={"recipient": "orders@taqueria.test", "body-plain": "   "},
        )
        assert response.status_code == 400


class TestCron:

    def test_requires_secret(self, client):
        assert client.get("/api/cron/archive-inactive-orders").status_code == 401
        response = client.get(
            "/api/cron/archive-inactive-orders", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 401

    def test_runs_sweep(self, client, seed_tenant):
        response = client.get(
            "/api/cron/archive-inactive-orders",
            headers={"Authorization": "Bearer test-cron-secret"},
        )
        assert response.status_code == 200
        assert response.json() == {"archived": 0, "tenants": 1}


class TestVisualCallback:

    def test_records_result(self, client, tenant_headers, make_order):
        order = make_order()

        response = client.post(
            f"/api/workflow/orders/{order.id}/visual-result",
            json={"result": {"match": True, "confidence": 95}, "images": ["a"]},
            headers=tenant_headers,
        )

        assert response.json() == {"order_id": order.id, "status": "verified", "confidence": 95.0}
        order_body = client.get(f"/api/orders/{order.id}", headers=tenant_headers).json()
        assert order_body["visual_status"] == "verified"
