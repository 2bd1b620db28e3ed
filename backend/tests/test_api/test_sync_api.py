"""
API tests for sync, tenant, event and webhook endpoints

FastAPI TestClient with the store and the remote API swapped in through
app.dependency_overrides.
"""
import json

import pytest
from fastapi.testclient import TestClient

from shopsync.api.dependencies import get_ingestion_service_factory, get_session_factory
from shopsync.main import app
from shopsync.services.webhook_service import compute_webhook_signature
from shopify_fakes import FakeShopify, customer_payload, order_payload, product_payload

SYNC_HEADERS = {"X-Sync-Key": "test-sync-key"}


@pytest.fixture
def shops():
    """shop domain -> FakeShopify; unknown domains get an empty shop"""
    return {}


@pytest.fixture
def client(session_factory, make_service, shops):
    def service_factory(tenant):
        shop = shops.setdefault(tenant.shop_domain, FakeShopify(tenant.shop_domain))
        return make_service(tenant, shop)

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_ingestion_service_factory] = lambda: service_factory
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "online"

    def test_health_probes_database(self, client):
        response = client.get("/health")

        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "healthy"
        assert data["database"]["status"] == "connected"

    def test_sync_health(self, client):
        assert client.get("/api/v1/sync/health").json()["status"] == "healthy"


class TestTenantsAPI:

    def test_register_tenant(self, client):
        response = client.post("/api/v1/tenants", headers=SYNC_HEADERS, json={
            "shop_domain": "Initech.myshopify.com",
            "access_token": "shpat_initech",
            "name": "Initech",
            "email": "it@initech.test",
        })

        data = response.json()
        assert response.status_code == 201
        assert data["shop_domain"] == "initech.myshopify.com"
        assert "access_token" not in data

    def test_register_duplicate(self, client, tenant):
        response = client.post("/api/v1/tenants", headers=SYNC_HEADERS, json={
            "shop_domain": tenant.shop_domain,
            "access_token": "x",
            "name": "Dup",
            "email": "dup@test",
        })
        assert response.status_code == 409

    @pytest.mark.parametrize("headers", [{}, {"X-Sync-Key": "wrong"}])
    def test_requires_sync_key(self, client, headers):
        response = client.post("/api/v1/tenants", headers=headers, json={
            "shop_domain": "a.myshopify.com", "access_token": "x", "name": "A", "email": "a@test",
        })
        assert response.status_code == 401

    def test_rotate_access_token(self, client, tenant):
        response = client.put(
            f"/api/v1/tenants/{tenant.id}/access-token", headers=SYNC_HEADERS, json={"access_token": "shpat_new"}
        )
        assert response.status_code == 200
        assert response.json()["id"] == tenant.id

    def test_rotate_unknown_tenant(self, client):
        response = client.put("/api/v1/tenants/999/access-token", headers=SYNC_HEADERS, json={"access_token": "x"})
        assert response.status_code == 404

    def test_connection(self, client, tenant):
        response = client.get(f"/api/v1/tenants/{tenant.id}/connection", headers=SYNC_HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["shop_name"] == "Acme Store"

    def test_connection_failure(self, client, tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(tenant.shop_domain, failures={"shop": 401})

        response = client.get(f"/api/v1/tenants/{tenant.id}/connection", headers=SYNC_HEADERS)

        assert response.json()["success"] is False


class TestEventsAPI:

    def test_record_event(self, client, tenant):
        response = client.post(
            f"/api/v1/tenants/{tenant.id}/events",
            headers=SYNC_HEADERS,
            json={"event_type": "page_view", "metadata": {"path": "/"}},
        )

        assert response.status_code == 201
        assert response.json()["event_id"] > 0

    def test_empty_event_type(self, client, tenant):
        response = client.post(f"/api/v1/tenants/{tenant.id}/events", headers=SYNC_HEADERS, json={"event_type": " "})
        assert response.status_code == 400

    def test_unknown_tenant(self, client):
        response = client.post("/api/v1/tenants/999/events", headers=SYNC_HEADERS, json={"event_type": "login"})
        assert response.status_code == 404

    def test_unknown_order(self, client, tenant):
        response = client.post(
            f"/api/v1/tenants/{tenant.id}/events", headers=SYNC_HEADERS, json={"event_type": "refund", "order_id": 42}
        )
        assert response.status_code == 404


class TestSyncAPI:

    def test_sync_customers(self, client, tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(tenant.shop_domain, customers=[customer_payload(1), customer_payload(2)])

        response = client.post(f"/api/v1/sync/tenants/{tenant.id}/customers", headers=SYNC_HEADERS)

        data = response.json()
        assert response.status_code == 200
        assert data["success"] is True
        assert (data["created"], data["updated"]) == (2, 0)

    def test_sync_reports_remote_failure(self, client, tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(tenant.shop_domain, failures={"products": 401})

        response = client.post(f"/api/v1/sync/tenants/{tenant.id}/products", headers=SYNC_HEADERS)

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["errors"]

    def test_unknown_entity(self, client, tenant):
        response = client.post(f"/api/v1/sync/tenants/{tenant.id}/collections", headers=SYNC_HEADERS)
        assert response.status_code == 422

    def test_unknown_tenant(self, client):
        assert client.post("/api/v1/sync/tenants/999/orders", headers=SYNC_HEADERS).status_code == 404
        assert client.post("/api/v1/sync/tenants/999/all", headers=SYNC_HEADERS).status_code == 404

    def test_requires_sync_key(self, client, tenant):
        assert client.post(f"/api/v1/sync/tenants/{tenant.id}/all").status_code == 401

    def test_sync_all_and_status(self, client, tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(
            tenant.shop_domain,
            customers=[customer_payload("C1")],
            products=[product_payload("P1")],
            orders=[order_payload(1, customer_id="C1")],
        )

        response = client.post(f"/api/v1/sync/tenants/{tenant.id}/all", headers=SYNC_HEADERS)

        data = response.json()
        assert data["success"] is True
        assert data["orders"]["created"] == 1

        status = client.get(f"/api/v1/sync/tenants/{tenant.id}/status").json()
        assert status["customers"] == 1
        assert status["products"] == 1
        assert status["orders"] == 1
        assert status["order_items"] == 1

    def test_status_unknown_tenant(self, client):
        assert client.get("/api/v1/sync/tenants/999/status").status_code == 404

    def test_cycle(self, client, tenant, other_tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(tenant.shop_domain, failures={"customers": 401})

        response = client.post("/api/v1/sync/cycle", headers=SYNC_HEADERS)

        data = response.json()
        assert data["success"] is False
        assert (data["tenants_synced"], data["tenants_failed"]) == (1, 1)


class TestWebhooksAPI:

    def _post(self, client, body, **headers):
        return client.post("/api/v1/webhooks/shopify", content=body, headers=headers)

    def test_missing_headers(self, client):
        assert self._post(client, b"{}").status_code == 400

    def test_unknown_shop(self, client):
        response = self._post(client, b"{}", **{
            "X-Shopify-Hmac-Sha256": "x",
            "X-Shopify-Shop-Domain": "nobody.myshopify.com",
            "X-Shopify-Topic": "orders/create",
        })
        assert response.status_code == 404

    def test_bad_signature(self, client, tenant):
        response = self._post(client, b'{"id": 1}', **{
            "X-Shopify-Hmac-Sha256": compute_webhook_signature(b'{"id": 2}', tenant.access_token),
            "X-Shopify-Shop-Domain": tenant.shop_domain,
            "X-Shopify-Topic": "orders/updated",
        })
        assert response.status_code == 401

    def test_signed_delivery(self, client, tenant, shops):
        shops[tenant.shop_domain] = FakeShopify(tenant.shop_domain, orders=[order_payload(1)])
        body = json.dumps(order_payload(1)).encode()

        response = self._post(client, body, **{
            "X-Shopify-Hmac-Sha256": compute_webhook_signature(body, tenant.access_token),
            "X-Shopify-Shop-Domain": tenant.shop_domain,
            "X-Shopify-Topic": "orders/updated",
        })

        data = response.json()
        assert response.status_code == 200
        assert data["received"] is True
        assert data["ingestion"]["created"] == 1

    def test_unrecognized_topic_acknowledged(self, client, tenant):
        body = b'{"id": 1}'
        response = self._post(client, body, **{
            "X-Shopify-Hmac-Sha256": compute_webhook_signature(body, tenant.access_token),
            "X-Shopify-Shop-Domain": tenant.shop_domain,
            "X-Shopify-Topic": "app/uninstalled",
        })

        assert response.status_code == 200
        assert response.json()["status"] == "ignored"
