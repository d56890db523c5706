"""Tests for global exception handlers.

Validates that all exception types are rendered with the same envelope,
the right HTTP status codes and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.errors import (
    AppError,
    AuthenticationAppError,
    NotFoundAppError,
    RateLimitExceededError,
    ValidationAppError,
)
from app.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers)


class TestAppErrorHandler:
    """Test handler for AppError and subclasses."""

    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (ValidationAppError(code="BAD_INPUT", message="Bad input"), 400),
            (AuthenticationAppError(code="INVALID_API_KEY", message="Invalid"), 401),
            (NotFoundAppError(code="NOT_FOUND", message="Missing"), 404),
            (RateLimitExceededError(), 429),
        ],
    )
    def test_status_code_follows_error_type(self, client, app_with_handlers, error, status):
        @app_with_handlers.get("/boom")
        async def boom():
            raise error

        response = client.get("/boom")

        assert response.status_code == status
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == error.code
        assert body["error"]["message"] == error.message
        assert "request_id" in body["error"]
        assert "details" not in body["error"]

    def test_rate_limit_error_carries_headers_and_details(self, client, app_with_handlers):
        @app_with_handlers.get("/limited")
        async def limited():
            raise RateLimitExceededError(
                details={"limit": 5, "remaining": 0},
                headers={"X-RateLimit-Limit": "5", "Retry-After": "12"},
            )

        response = client.get("/limited")

        assert response.status_code == 429
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["Retry-After"] == "12"
        assert response.json()["error"]["code"] == "RATE_LIMIT_EXCEEDED"
        assert response.json()["error"]["details"] == {"limit": 5, "remaining": 0}


class TestFrameworkErrors:
    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_method_not_allowed(self, client, app_with_handlers):
        @app_with_handlers.get("/only-get")
        async def only_get():
            return {}

        response = client.post("/only-get")

        assert response.status_code == 405
        assert response.json()["error"]["code"] == "METHOD_NOT_ALLOWED"

    def test_request_validation_error_returns_400(self, client, app_with_handlers):
        @app_with_handlers.get("/items")
        async def items(limit: int):
            return {"limit": limit}

        response = client.get("/items", params={"limit": "many"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestGeneralExceptionHandler:
    """Test fallback handler for unexpected exceptions."""

    def test_handler_registered(self, app_with_handlers: FastAPI):
        assert Exception in app_with_handlers.exception_handlers
        assert AppError in app_with_handlers.exception_handlers

    def test_never_leaks_internal_details(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        exc = RuntimeError("database connection failed at 10.0.0.3")
        response = asyncio.run(general_exception_handler(request, exc))

        text = bytes(response.body).decode()
        data = json.loads(text)
        assert response.status_code == 500
        assert data["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "database connection" not in text
        assert "RuntimeError" not in text
        assert "Traceback" not in text

    def test_unhandled_route_error_returns_500(self, app_with_handlers):
        @app_with_handlers.get("/crash")
        async def crash():
            raise RuntimeError("kaboom")

        client = TestClient(app_with_handlers, raise_server_exceptions=False)
        response = client.get("/crash")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"


def test_multiple_handler_setups_does_not_fail():
    app = FastAPI()

    setup_exception_handlers(app)
    setup_exception_handlers(app)

    assert AppError in app.exception_handlers
