"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any ``app`` import so the global
settings object is built with test values.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402


class FakeClock:
    """Deterministic epoch-millisecond clock used to test expiry logic."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, ms: float) -> None:
        self.current += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_app(clock):
    """Build an isolated app; keyword arguments override AppSettings fields."""

    from app.core.app_factory import create_app
    from app.core.config import AppSettings, Settings

    def _make(**overrides):
        settings = Settings(app=AppSettings(**overrides))
        return create_app(settings, clock=clock, configure_logs=False)

    return _make


@pytest.fixture
def valid_api_key_headers() -> dict[str, str]:
    return {"X-API-Key": "test-api-key-123"}
