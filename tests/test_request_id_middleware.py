from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(make_app):
    client = TestClient(make_app())
    incoming_id = "test-request-id-123"

    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(make_app):
    client = TestClient(make_app())

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_error_envelope_carries_request_id(make_app):
    client = TestClient(make_app())

    resp = client.get("/missing", headers={"X-Request-ID": "req-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "req-404"


def test_module_level_app_is_importable():
    from app.main import app

    assert TestClient(app).get("/").status_code == 200
