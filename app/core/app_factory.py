"""Application factory for the FastAPI app.

Builds the stateful resources (rate limiters, cache) explicitly per app and
ties their background sweeps to the app lifespan, so tests can create as
many isolated apps as they need.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import auth_router, health_router, meta_router
from app.core.auth import parse_api_keys
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import global_rate_limit_middleware
from app.core.resources import build_resources
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

EXPOSED_HEADERS = [
    "X-Request-ID",
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run the limiter sweeps and cache cleanup while the app is serving."""
    tasks = app.state.resources.sweep_tasks()
    for task in tasks:
        task.start()
    logger.info("app.started", extra={"background_tasks": [t.name for t in tasks]})
    try:
        yield
    finally:
        for task in tasks:
            await task.stop()
        logger.info("app.stopped")


def create_app(
    settings: Settings | None = None,
    *,
    clock: Clock = system_clock,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to use; defaults to the environment-derived ones.
        clock: Time source for the rate limiters and the cache (epoch ms).
        configure_logs: Install the root logging handlers.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    if cfg.app.api_key_required and not parse_api_keys(cfg.app.api_keys):
        logger.warning("auth.no_api_keys_configured")

    app = FastAPI(
        title=cfg.app.name,
        description=(
            "Minimal HTTP backend template: request correlation, API key "
            "authentication, fixed-window rate limiting and an in-memory TTL cache."
        ),
        version=cfg.app.version,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.resources = build_resources(cfg, clock)

    # Middleware, innermost first: the limiter runs inside request correlation
    app.middleware("http")(global_rate_limit_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in cfg.app.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key", cfg.log.request_id_header],
        expose_headers=EXPOSED_HEADERS,
        max_age=86400,
    )

    setup_exception_handlers(app)

    app.include_router(meta_router)
    app.include_router(health_router)
    app.include_router(auth_router)

    apply_openapi_customizations(app)

    return app
