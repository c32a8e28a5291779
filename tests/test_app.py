from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from sitefleet.config import settings
from sitefleet.db import get_db
from sitefleet.main import app


def test_index_lists_endpoints(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["endpoints"]["employees"] == "/api/employees"


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "OK"
    assert body["database"] == "Connected"
    assert body["timestamp"].endswith("Z")


def test_unknown_route(client):
    r = client.get("/api/nowhere")
    assert r.status_code == 404
    body = r.json()
    assert body == {"success": False, "message": "Route not found", "timestamp": body["timestamp"]}


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert r.headers["X-Request-ID"] == "abc-123"
    assert client.get("/api/health").headers["X-Request-ID"]


def test_malformed_query_parameter(client):
    r = client.get("/api/users", params={"page": "first"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_page_size_is_capped(client, monkeypatch):
    monkeypatch.setattr(settings, "max_page_size", 5)
    r = client.get("/api/users", params={"limit": 50})
    assert r.json()["pagination"]["itemsPerPage"] == 5
    r = client.get("/api/users")
    assert r.json()["pagination"]["itemsPerPage"] == settings.default_page_size


def test_oversized_body(client, monkeypatch):
    monkeypatch.setattr(settings, "max_body_bytes", 32)
    r = client.post("/api/users", json={"id": 1, "email": "someone@example.com", "name": "A very long name"})
    assert r.status_code == 413
    assert r.json()["message"] == "Request body too large"


def test_database_failures_are_reported():
    def broken_db():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    app.dependency_overrides[get_db] = broken_db
    try:
        r = TestClient(app).get("/api/users")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.json()["message"].startswith("Database error:")


def test_unexpected_failures_are_hidden():
    def broken_db():
        raise RuntimeError("boom")

    app.dependency_overrides[get_db] = broken_db
    try:
        r = TestClient(app, raise_server_exceptions=False).get("/api/users")
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Something went wrong!", "timestamp": r.json()["timestamp"]}
