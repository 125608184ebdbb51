"""
==============================================================================
API Integration Tests
==============================================================================

Tests for REST API endpoints.

==============================================================================
"""

from typing import Dict

from fastapi.testclient import TestClient

from app.services.session_service import SessionRegistry

from tests.conftest import ULTRASEAL


def _start_cart(client: TestClient, headers: Dict[str, str], role: str = "applicator") -> dict:
    """Select a role and scan one item; returns the resulting state."""
    client.post("/api/v1/session/role", json={"role": role}, headers=headers)
    response = client.post("/api/v1/session/scan", json={"text": ULTRASEAL}, headers=headers)
    assert response.status_code == 200
    return response.json()["state"]


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        """Test health check returns status."""
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ["healthy", "degraded"]
        assert "live_sessions" in data["details"]

    def test_readiness_probe(self, client: TestClient):
        """Test readiness probe."""
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_probe(self, client: TestClient):
        """Test liveness probe."""
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True

    def test_root(self, client: TestClient):
        """Test root endpoint describes the service."""
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


class TestSessionLifecycle:
    """Tests for opening, reading and ending sessions."""

    def test_create_session(self, client: TestClient, registry: SessionRegistry):
        """Test create session."""
        response = client.post("/api/v1/sessions")
        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["expires_in"] > 0
        assert data["state"]["view"] == "welcome"
        assert len(registry) == 1

    def test_get_state(self, client: TestClient, session_headers: dict):
        """Test get state."""
        response = client.get("/api/v1/session", headers=session_headers)
        assert response.status_code == 200
        state = response.json()["state"]
        assert state["view"] == "welcome"
        assert state["cart"] == []
        assert state["role"] is None

    def test_missing_token(self, client: TestClient):
        """Test missing token."""
        response = client.get("/api/v1/session")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_MISSING"

    def test_invalid_token(self, client: TestClient):
        """Test invalid token."""
        response = client.get(
            "/api/v1/session",
            headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    def test_end_session(self, client: TestClient, session_headers: dict, registry: SessionRegistry):
        """Test end session."""
        response = client.delete("/api/v1/session", headers=session_headers)
        assert response.status_code == 200
        assert len(registry) == 0

        response = client.get("/api/v1/session", headers=session_headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"


class TestScanFlow:
    """Tests for role selection, scanning and cart edits."""

    def test_select_role(self, client: TestClient, session_headers: dict):
        """Test select role."""
        response = client.post(
            "/api/v1/session/role", json={"role": "customer"}, headers=session_headers
        )
        assert response.status_code == 200
        state = response.json()["state"]
        assert state["view"] == "scanner"
        assert state["role"] == "customer"

    def test_invalid_role(self, client: TestClient, session_headers: dict):
        """Test invalid role."""
        response = client.post(
            "/api/v1/session/role", json={"role": "manager"}, headers=session_headers
        )
        assert response.status_code == 422

    def test_scan_adds_item(self, client: TestClient, session_headers: dict):
        """Test scan adds item."""
        state = _start_cart(client, session_headers)

        assert state["view"] == "cart"
        assert state["cart_count"] == 1
        item = state["cart"][0]
        assert item["name"] == "UltraSeal"
        assert item["qty"] == "5KG"
        assert item["temp_id"]
        assert state["notifications"][0]["message"] == "Item scanned!"

    def test_scan_garbage(self, client: TestClient, session_headers: dict):
        """Test scan garbage."""
        client.post("/api/v1/session/role", json={"role": "applicator"}, headers=session_headers)
        response = client.post(
            "/api/v1/session/scan", json={"text": "not-json-garbage"}, headers=session_headers
        )
        item = response.json()["state"]["cart"][0]
        assert item["name"] == "Unknown Item"
        assert item["id"] == "not-json-garbage"

    def test_role_on_cart_conflicts(self, client: TestClient, session_headers: dict):
        """Test choosing a role on the cart view is rejected and keeps the cart."""
        _start_cart(client, session_headers)

        response = client.post(
            "/api/v1/session/role", json={"role": "customer"}, headers=session_headers
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

        state = client.get("/api/v1/session", headers=session_headers).json()["state"]
        assert state["cart_count"] == 1
        assert state["role"] == "applicator"

    def test_scan_deeply_nested_payload(self, client: TestClient, session_headers: dict):
        """Test a deeply nested payload becomes a placeholder item."""
        client.post("/api/v1/session/role", json={"role": "applicator"}, headers=session_headers)
        response = client.post(
            "/api/v1/session/scan", json={"text": "[" * 3000}, headers=session_headers
        )
        assert response.status_code == 200
        item = response.json()["state"]["cart"][0]
        assert item["name"] == "Unknown Item"

    def test_scan_outside_scanner_conflicts(self, client: TestClient, session_headers: dict):
        """Test scan outside scanner conflicts."""
        response = client.post(
            "/api/v1/session/scan", json={"text": ULTRASEAL}, headers=session_headers
        )
        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"

    def test_invalid_transition(self, client: TestClient, session_headers: dict):
        """Test invalid transition."""
        response = client.post("/api/v1/session/cart/scan-another", headers=session_headers)
        assert response.status_code == 409

    def test_cancel_scan_empty_cart(self, client: TestClient, session_headers: dict):
        """Test cancel scan empty cart."""
        client.post("/api/v1/session/role", json={"role": "applicator"}, headers=session_headers)
        response = client.post("/api/v1/session/scan/cancel", headers=session_headers)
        assert response.json()["state"]["view"] == "welcome"

    def test_view_cart_and_scan_another(self, client: TestClient, session_headers: dict):
        """Test view cart and scan another."""
        client.post("/api/v1/session/role", json={"role": "applicator"}, headers=session_headers)
        response = client.post("/api/v1/session/cart/view", headers=session_headers)
        assert response.json()["state"]["view"] == "cart"

        response = client.post("/api/v1/session/cart/scan-another", headers=session_headers)
        assert response.json()["state"]["view"] == "scanner"

    def test_camera_error(self, client: TestClient, session_headers: dict):
        """Test camera error."""
        client.post("/api/v1/session/role", json={"role": "applicator"}, headers=session_headers)
        response = client.post(
            "/api/v1/session/scan/camera-error",
            json={"name": "NotAllowedError"},
            headers=session_headers
        )
        state = response.json()["state"]
        assert state["view"] == "scanner"
        assert state["notifications"][-1]["severity"] == "error"

    def test_remove_item(self, client: TestClient, session_headers: dict):
        """Test remove item."""
        state = _start_cart(client, session_headers)
        temp_id = state["cart"][0]["temp_id"]

        response = client.delete(f"/api/v1/session/cart/{temp_id}", headers=session_headers)
        assert response.json()["state"]["cart"] == []

        response = client.delete(f"/api/v1/session/cart/{temp_id}", headers=session_headers)
        assert response.status_code == 200

    def test_dismiss_notification(self, client: TestClient, session_headers: dict):
        """Test dismiss notification."""
        state = _start_cart(client, session_headers)
        note_id = state["notifications"][0]["id"]

        response = client.delete(
            f"/api/v1/session/notifications/{note_id}", headers=session_headers
        )
        assert response.json()["state"]["notifications"] == []


class TestSubmit:
    """Tests for cart submission."""

    def test_submit_success(self, client: TestClient, session_headers: dict, registry: SessionRegistry):
        """Test submit success."""
        _start_cart(client, session_headers)
        client.post("/api/v1/session/cart/scan-another", headers=session_headers)
        client.post("/api/v1/session/scan", json={"text": ULTRASEAL}, headers=session_headers)
        client.put(
            "/api/v1/session/form",
            json={"member_name": " Ravi ", "member_id": "m-001"},
            headers=session_headers
        )

        response = client.post("/api/v1/session/submit", headers=session_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["submitted"] == 2
        assert data["state"]["view"] == "welcome"
        assert data["state"]["cart"] == []
        assert data["state"]["member_id"] == ""

        stored = registry.gateway.snapshot()
        assert len(stored) == 2
        assert {r.member_id for r in stored} == {"M-001"}
        assert {r.member_name for r in stored} == {"Ravi"}

    def test_submit_missing_member(self, client: TestClient, session_headers: dict, registry: SessionRegistry):
        """Test submit missing member."""
        _start_cart(client, session_headers)
        client.put("/api/v1/session/form", json={"member_name": "Ravi"}, headers=session_headers)

        response = client.post("/api/v1/session/submit", headers=session_headers)
        data = response.json()
        assert data["success"] is False
        assert data["submitted"] == 0
        assert data["state"]["view"] == "cart"
        assert data["state"]["notifications"][-1]["message"] == (
            "Please enter Member Name and Member ID."
        )
        assert registry.gateway.snapshot() == []


class TestAdmin:
    """Tests for the admin view over REST."""

    def test_toggle_and_list(self, client: TestClient, session_headers: dict):
        """Test toggle and list."""
        _start_cart(client, session_headers)
        client.put(
            "/api/v1/session/form",
            json={"member_name": "Ravi", "member_id": "M1"},
            headers=session_headers
        )
        client.post("/api/v1/session/submit", headers=session_headers)

        response = client.post("/api/v1/session/admin/toggle", headers=session_headers)
        assert response.json()["state"]["view"] == "admin"

        response = client.get("/api/v1/session/admin/records", headers=session_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["records"][0]["product_name"] == "UltraSeal"
        assert data["records"][0]["role"] == "applicator"

        response = client.post("/api/v1/session/admin/toggle", headers=session_headers)
        assert response.json()["state"]["view"] == "welcome"

    def test_records_require_admin_view(self, client: TestClient, session_headers: dict):
        """Test records require admin view."""
        response = client.get("/api/v1/session/admin/records", headers=session_headers)
        assert response.status_code == 409

    def test_admin_round_trip_returns_to_cart(self, client: TestClient, session_headers: dict):
        """Test leaving admin returns to the cart it was entered from."""
        _start_cart(client, session_headers)

        client.post("/api/v1/session/admin/toggle", headers=session_headers)
        response = client.post("/api/v1/session/admin/toggle", headers=session_headers)

        state = response.json()["state"]
        assert state["view"] == "cart"
        assert state["cart_count"] == 1
