"""Process-wide stateful components and their FastAPI dependencies.

The two rate limiters and the shared cache are built once per application by
:func:`build_resources` and stored on ``app.state.resources``. Handlers reach
them through the dependencies below instead of importing module globals, so
every test app gets fresh instances and its own clock.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request

from app.adapters.rate_limit import AbstractRateLimiter, InMemoryFixedWindowRateLimiter
from app.core.config import Settings
from app.utils.clock import Clock, system_clock
from app.utils.memory_cache import InMemoryCache
from app.utils.periodic import PeriodicTask


@dataclass
class AppResources:
    """Handles to the shared in-memory state of one application instance."""

    global_limiter: AbstractRateLimiter
    auth_limiter: AbstractRateLimiter
    cache: InMemoryCache[Any]
    clock: Clock = system_clock

    def sweep_tasks(self) -> list[PeriodicTask]:
        """Background sweeps keeping the limiters and the cache bounded."""
        return [
            PeriodicTask(
                f"rate_limit.{limiter.name}.sweep",
                limiter.sweep_interval_ms,
                limiter.sweep,
            )
            for limiter in (self.global_limiter, self.auth_limiter)
        ] + [
            PeriodicTask("cache.cleanup", self.cache.cleanup_interval_ms, self.cache.cleanup),
        ]


def build_resources(settings: Settings, clock: Clock = system_clock) -> AppResources:
    """Construct the limiters and cache from settings."""

    cfg = settings.app
    return AppResources(
        global_limiter=InMemoryFixedWindowRateLimiter(
            max_requests=cfg.global_rate_limit_requests,
            window_ms=cfg.global_rate_limit_window_ms,
            clock=clock,
            name="global",
        ),
        auth_limiter=InMemoryFixedWindowRateLimiter(
            max_requests=cfg.auth_rate_limit_requests,
            window_ms=cfg.auth_rate_limit_window_ms,
            clock=clock,
            name="auth",
        ),
        cache=InMemoryCache(
            cfg.cache_max_size,
            default_ttl_ms=cfg.cache_default_ttl_ms,
            cleanup_interval_ms=cfg.cache_cleanup_interval_ms,
            clock=clock,
        ),
        clock=clock,
    )


def get_resources(request: Request) -> AppResources:
    return request.app.state.resources


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
