"""Tests for the HTTP routes."""

from fastapi.testclient import TestClient

from app import create_app
from errors import TIMEOUT_MESSAGE
from helpers import GatedStore, make_settings, make_store

JANE = {"fullName": "Jane Doe", "email": "jane@example.com", "phone": "0800000000"}
UNREACHABLE_URL = "sqlite:////nonexistent-lamaran-dir/lamaran.db"


class TestHealthEndpoint:
    """Tests for GET /api/health."""

    def test_reports_connected_store(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["timestamp"]

    def test_unreachable_store_still_answers(self) -> None:
        app = create_app(make_settings(), store=make_store(url=UNREACHABLE_URL))
        with TestClient(app) as client:
            response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["database"] == "disconnected"

    def test_route_prefix_is_configurable(self) -> None:
        app = create_app(make_settings(api_prefix=""), store=make_store())
        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert client.get("/api/health").status_code == 404


class TestSubmitEndpoint:
    """Tests for POST /api/submit-lamaran."""

    def test_creates_record(self, client: TestClient) -> None:
        response = client.post("/api/submit-lamaran", json=JANE)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Lamaran berhasil disimpan!"
        assert body["data"]["fullName"] == "Jane Doe"
        assert body["data"]["id"]
        assert body["data"]["createdAt"]

        stored = client.app.state.store.get(body["data"]["id"])
        assert stored.email == "jane@example.com"

    def test_accepts_form_encoded_body(self, client: TestClient) -> None:
        response = client.post("/api/submit-lamaran", data=JANE)

        assert response.status_code == 201
        assert response.json()["data"]["phone"] == "0800000000"

    def test_empty_object(self, client: TestClient) -> None:
        response = client.post("/api/submit-lamaran", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Request body cannot be empty"}

    def test_missing_body(self, client: TestClient) -> None:
        response = client.post("/api/submit-lamaran")

        assert response.status_code == 400
        assert response.json()["message"] == "Request body cannot be empty"

    def test_missing_fields_are_listed(self, client: TestClient) -> None:
        response = client.post("/api/submit-lamaran", json={"fullName": "Jane"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["errorType"] == "ValidationError"
        assert "email" in body["message"]
        assert "phone" in body["message"]
        assert "fullName" not in body["message"]

    def test_malformed_json(self, client: TestClient) -> None:
        response = client.post(
            "/api/submit-lamaran",
            content=b'{"fullName": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["errorType"] == "MalformedBodyError"

    def test_oversized_body(self) -> None:
        app = create_app(make_settings(max_body_bytes=32), store=make_store())
        with TestClient(app) as client:
            response = client.post("/api/submit-lamaran", json=JANE)

        assert response.status_code == 413
        assert response.json()["success"] is False

    def test_store_down_is_server_error(self) -> None:
        app = create_app(make_settings(), store=make_store(url=UNREACHABLE_URL))
        with TestClient(app) as client:
            response = client.post("/api/submit-lamaran", json=JANE)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["errorType"] == "StoreError"
        assert body["message"]

    def test_slow_store_times_out(self) -> None:
        store = make_store(GatedStore)
        app = create_app(make_settings(submit_timeout=0.05), store=store)
        with TestClient(app) as client:
            try:
                response = client.post("/api/submit-lamaran", json=JANE)
            finally:
                store.release.set()
            assert store.done.wait(timeout=5)

        assert response.status_code == 500
        assert response.json()["message"] == TIMEOUT_MESSAGE
        assert response.json()["errorType"] == "TimeoutError"

    def test_development_mode_adds_stack(self) -> None:
        app = create_app(make_settings(environment="development"), store=make_store())
        with TestClient(app) as client:
            response = client.post("/api/submit-lamaran", json={"email": "jane@example.com"})

        assert response.status_code == 400
        assert "SchemaValidationError" in response.json()["stack"]


class TestCors:
    """Tests for the CORS policy."""

    ORIGIN = "https://www.lokerjkt.org"

    def make_client(self) -> TestClient:
        app = create_app(make_settings(allowed_origins=[self.ORIGIN]), store=make_store())
        return TestClient(app)

    def test_allowed_origin_preflight(self) -> None:
        with self.make_client() as client:
            response = client.options(
                "/api/submit-lamaran",
                headers={"Origin": self.ORIGIN, "Access-Control-Request-Method": "POST"},
            )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == self.ORIGIN
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_unknown_origin_gets_no_allow_header(self) -> None:
        with self.make_client() as client:
            response = client.post(
                "/api/submit-lamaran", json=JANE, headers={"Origin": "https://evil.example"}
            )

        assert "access-control-allow-origin" not in response.headers
