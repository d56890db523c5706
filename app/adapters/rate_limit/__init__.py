"""Rate limiting adapters.

The HTTP layer depends on :class:`AbstractRateLimiter` only, so the in-memory
fixed-window limiter can later be replaced by a shared store (e.g. Redis)
without touching routes or middleware.
"""

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RateLimitResult"]
