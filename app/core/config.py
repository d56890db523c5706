"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_path = PROJECT_ROOT / ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_file = str(_env_path) if _env_path.is_file() else None

# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=False)


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    name: str = Field(
        "HTTP Backend Template",
        description="Service name reported by the root endpoint",
    )
    version: str = Field("1.0.0", description="Service version")
    debug: bool = Field(
        False,
        description="Enable debug mode (validation issues are echoed to clients)",
    )
    api_key_required: bool = Field(
        True,
        description="Whether API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid API keys for authentication",
    )
    cors_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable the global and auth rate limiters",
    )
    rate_limit_include_retry_after: bool = Field(
        True,
        description="Include a Retry-After header on 429 responses",
    )
    global_rate_limit_requests: int = Field(
        100,
        description="Requests allowed per window for all inbound traffic (per client)",
        ge=1,
    )
    global_rate_limit_window_ms: int = Field(
        60_000,
        description="Global rate limit window length in milliseconds",
        ge=1,
    )
    auth_rate_limit_requests: int = Field(
        5,
        description="Requests allowed per window on authentication endpoints (per client)",
        ge=1,
    )
    auth_rate_limit_window_ms: int = Field(
        60_000,
        description="Auth rate limit window length in milliseconds",
        ge=1,
    )

    cache_max_size: int = Field(
        1000,
        description="Maximum number of entries in the process cache",
        ge=1,
    )
    cache_default_ttl_ms: int = Field(
        60_000,
        description="TTL applied when a cache entry is stored without one",
        ge=1,
    )
    cache_cleanup_interval_ms: int = Field(
        60_000,
        description="Interval of the background sweep removing expired cache entries",
        ge=1,
    )
    session_cache_ttl_ms: int = Field(
        30_000,
        description="How long resolved sessions are memoized in the cache",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(
        None,
        description="Log file path when output=file (defaults to logs/app.log)",
    )
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated log files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Raises validation errors on startup if a value is invalid.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
