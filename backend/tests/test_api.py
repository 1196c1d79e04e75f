"""
API Endpoint Tests

Exercises the /api/v1 routes through FastAPI's TestClient with the
in-memory database and the fake gateway wired in.
"""
import json
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from motopay.database import get_db
from motopay.dependencies import get_actor
from motopay.main import app
from motopay.services import Actor
from motopay.utils.hashing import sign_payload
from motopay.utils.rate_limiter import reset_rate_limits


@pytest.fixture(name="client")
def client_fixture(db, services):
    original = app.state.services
    app.state.services = services
    app.dependency_overrides[get_db] = lambda: db
    reset_rate_limits()
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.services = original


def _webhook(client, reference, secret="sk_test_motopay"):
    body = json.dumps({"event": "charge.success", "data": {"reference": reference}}).encode()
    return client.post(
        "/api/v1/payments/webhook",
        content=body,
        headers={"x-paystack-signature": sign_payload(body, secret), "content-type": "application/json"},
    )


# ============================================
# Payments
# ============================================

class TestPaymentEndpoints:
    """Payment endpoints"""

    def test_full_payment_flow(self, client, gateway, catalog, vehicle):
        response = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id,
            "compliance_items": [catalog["license"].id],
            "email": "owner@example.com",
        })
        assert response.status_code == 200
        init = response.json()
        assert Decimal(init["total_amount"]) == Decimal("12687.50")
        assert init["authorization_url"].endswith(init["reference"])

        gateway.pay(init["reference"])
        assert _webhook(client, init["reference"]).json()["status"] == "SUCCESS"

        verify = client.post(f"/api/v1/payments/verify/{init['reference']}")
        assert verify.status_code == 200
        assert verify.json()["success"] is True
        assert verify.json()["data"]["status"] == "SUCCESS"

        transaction = client.get(f"/api/v1/payments/transaction/{init['transaction_id']}").json()
        assert transaction["receipt"]["receipt_number"].startswith("RCP-")
        assert [item["name"] for item in transaction["items"]] == ["Vehicle License"]

    def test_verify_before_payment(self, client, catalog, vehicle):
        init = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com",
        }).json()

        body = client.post(f"/api/v1/payments/verify/{init['reference']}").json()

        assert body["success"] is False
        assert body["awaiting_payment"] is True

    def test_stale_item_is_400(self, client, catalog, vehicle):
        response = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": ["gone"], "email": "owner@example.com",
        })
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_empty_selection_is_422(self, client, vehicle):
        response = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [], "email": "owner@example.com",
        })
        assert response.status_code == 422

    def test_gateway_outage_is_503(self, client, gateway, catalog, vehicle):
        gateway.fail_initialize = True
        response = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com",
        })
        assert response.status_code == 503
        assert response.json() == {
            "success": False, "error_code": "GATEWAY_UNAVAILABLE", "detail": "Payment gateway timed out",
        }

    def test_webhook_with_wrong_secret_is_401(self, client, catalog, vehicle):
        response = _webhook(client, "TXN-ANY-00000", secret="not-the-secret")
        assert response.status_code == 401

    def test_unknown_transaction_is_404(self, client):
        response = client.get("/api/v1/payments/transaction/missing")
        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_webhook_with_wrong_shape_is_400(self, client):
        body = json.dumps({"event": "charge.success", "data": "oops"}).encode()
        response = client.post(
            "/api/v1/payments/webhook",
            content=body,
            headers={"x-paystack-signature": sign_payload(body, "sk_test_motopay"), "content-type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_REQUEST"

    def test_error_envelope_is_documented(self, client):
        schema = client.get("/openapi.json").json()
        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/api/v1/payments/verify/{reference}"]["post"]["responses"]
        assert responses["404"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")

    def test_refund_pending_is_409(self, client, catalog, vehicle):
        init = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com",
        }).json()

        response = client.post(f"/api/v1/payments/refund/{init['transaction_id']}", json={"reason": "Changed mind"})

        assert response.status_code == 409

    def test_initialize_is_rate_limited(self, client, catalog, vehicle):
        payload = {"vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com"}
        codes = [client.post("/api/v1/payments/initialize", json=payload).status_code for _ in range(11)]
        assert codes[:10] == [200] * 10
        assert codes[10] == 429


# ============================================
# Catalog & vehicles
# ============================================

class TestCatalogEndpoints:
    def test_list_by_category(self, client, catalog):
        response = client.get("/api/v1/compliance/items", params={"vehicle_category": "COMMERCIAL"})
        assert response.status_code == 200
        assert [item["name"] for item in response.json()] == ["Hackney Permit"]

    def test_locked_price_is_403(self, client, catalog):
        response = client.put(
            f"/api/v1/compliance/items/{catalog['registration'].id}/price",
            json={"new_price": "30000.00", "reason": "Tariff review"},
            headers={"x-user-id": "admin-1", "x-user-role": "ADMIN"},
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    def test_price_update_and_history(self, client, catalog):
        item_id = catalog["license"].id
        response = client.put(
            f"/api/v1/compliance/items/{item_id}/price",
            json={"new_price": "13000.00", "reason": "Tariff review"},
            headers={"x-user-id": "admin-1"},
        )
        assert response.status_code == 200
        assert Decimal(response.json()["price"]) == Decimal("13000.00")

        history = client.get(f"/api/v1/compliance/items/{item_id}/history").json()
        assert history[0]["changed_by"] == "admin-1"


class TestVehicleEndpoints:
    def test_lookup_by_plate(self, client, vehicle):
        response = client.get("/api/v1/vehicles/lookup", params={"plate_number": "PL-582-KN"})
        assert response.status_code == 200
        assert response.json()["id"] == vehicle.id

    def test_lookup_without_identifier_is_400(self, client):
        assert client.get("/api/v1/vehicles/lookup").status_code == 400

    def test_register(self, client):
        response = client.post("/api/v1/vehicles", json={
            "plate_number": "kja-554-ab",
            "chassis_number": "JTDKB20U093512345",
            "vehicle_type": "PRIVATE",
            "owner_name": "Tunde Bakare",
            "owner_contact": "tunde@example.com",
        })
        assert response.status_code == 201
        assert response.json()["plate_number"] == "KJA-554-AB"

    def test_compliance_status(self, client, catalog, vehicle):
        body = client.get(f"/api/v1/vehicles/{vehicle.id}/compliance").json()
        assert body["is_compliant"] is False
        assert len(body["missing_mandatory"]) == 2

    def test_recommendations(self, client, catalog, vehicle):
        body = client.get(f"/api/v1/vehicles/{vehicle.id}/recommendations").json()
        assert {r["reason"] for r in body} == {"Not registered"}

    def test_payment_history(self, client, gateway, catalog, vehicle):
        init = client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com",
        }).json()
        gateway.pay(init["reference"])
        client.post(f"/api/v1/payments/verify/{init['reference']}")

        body = client.get(f"/api/v1/vehicles/{vehicle.id}/history", params={"limit": 5}).json()

        assert body["pagination"] == {"page": 1, "limit": 5, "total": 1, "total_pages": 1}
        assert body["transactions"][0]["reference"] == init["reference"]
        assert body["transactions"][0]["receipt"]["receipt_number"].startswith("RCP-")

    def test_history_of_unknown_vehicle_is_404(self, client):
        assert client.get("/api/v1/vehicles/missing/history").status_code == 404


# ============================================
# Agents & admin
# ============================================

class TestAgentAndAdminEndpoints:
    def _paid_agent_sale(self, client, gateway, catalog, vehicle):
        init = client.post(
            "/api/v1/payments/initialize",
            json={"vehicle_id": vehicle.id, "compliance_items": [catalog["license"].id], "email": "owner@example.com"},
            headers={"x-user-id": "agent-7", "x-user-role": "agent"},
        ).json()
        gateway.pay(init["reference"])
        client.post(f"/api/v1/payments/verify/{init['reference']}")
        return init

    def test_agent_commission_flow(self, client, gateway, catalog, vehicle):
        self._paid_agent_sale(client, gateway, catalog, vehicle)

        summary = client.get("/api/v1/agents/agent-7/summary").json()
        assert Decimal(summary["total_earnings"]) == Decimal("312.50")

        commissions = client.get("/api/v1/agents/agent-7/commissions").json()
        commission_id = commissions["commissions"][0]["id"]
        paid = client.post(f"/api/v1/agents/commissions/{commission_id}/pay", headers={"x-user-id": "finance-1"})
        assert paid.json()["status"] == "PAID"

    def test_actor_comes_from_forwarded_headers(self):
        assert get_actor(user_id="agent-7", role="agent") == Actor("agent-7", "AGENT")
        assert get_actor(user_id=None, role=None) == Actor(None, "PUBLIC")
        assert not get_actor(user_id=None, role="AGENT").is_agent

    def test_dashboard_and_audit(self, client, gateway, catalog, vehicle):
        init = self._paid_agent_sale(client, gateway, catalog, vehicle)

        dashboard = client.get("/api/v1/admin/dashboard").json()
        assert dashboard["transactions_by_status"]["SUCCESS"] == 1
        assert Decimal(dashboard["revenue"]) == Decimal("12500.00")
        assert Decimal(dashboard["fees_collected"]) == Decimal("187.50")

        trail = client.get(f"/api/v1/admin/audit/transaction/{init['reference']}").json()
        assert [entry["action"] for entry in trail] == ["PAYMENT_INITIATED", "PAYMENT_SUCCESS"]
        assert client.get(f"/api/v1/admin/audit/transaction/{init['reference']}/verify").json()["valid"] is True

    def test_admin_transaction_list(self, client, gateway, catalog, vehicle):
        sale = self._paid_agent_sale(client, gateway, catalog, vehicle)
        client.post("/api/v1/payments/initialize", json={
            "vehicle_id": vehicle.id, "compliance_items": [catalog["insurance"].id], "email": "owner@example.com",
        })

        everything = client.get("/api/v1/admin/transactions").json()
        assert everything["pagination"]["total"] == 2

        agent_sales = client.get(
            "/api/v1/admin/transactions",
            params={"status": "SUCCESS", "channel": "AGENT", "start_date": "2000-01-01T00:00:00"},
        ).json()
        assert [t["reference"] for t in agent_sales["transactions"]] == [sale["reference"]]

        future = client.get("/api/v1/admin/transactions", params={"start_date": "2999-01-01T00:00:00"}).json()
        assert future["transactions"] == []

        response = client.get("/api/v1/admin/transactions", params={"status": "LOST"})
        assert response.status_code == 400

    def test_maintenance_endpoints(self, client):
        assert client.post("/api/v1/admin/maintenance/expire").json() == {"expired_count": 0}
        assert client.post("/api/v1/admin/maintenance/reminders").json() == {"processed": 0, "reminded": 0}
        assert client.post("/api/v1/admin/maintenance/reconcile").json()["checked"] == 0
