"""Rate limiter interfaces."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from app.core.errors import RateLimitExceededError
from app.utils.clock import epoch_ms_to_iso


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the current window (0 when blocked).
        reset_at: Epoch milliseconds at which the current window ends.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int

    @property
    def reset_at_iso(self) -> str:
        return epoch_ms_to_iso(self.reset_at)

    def retry_after_seconds(self, now_ms: float) -> int:
        """Whole seconds until the window resets (never negative)."""
        return max(0, math.ceil((self.reset_at - now_ms) / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    name: str
    limit: int
    window_ms: int

    @property
    def sweep_interval_ms(self) -> int:
        """How often :meth:`sweep` should run in the background."""
        return self.window_ms

    @abstractmethod
    def check(self, identifier: str) -> RateLimitResult:
        """Count a request for ``identifier`` and decide whether it is allowed.

        Args:
            identifier: Opaque client identifier (e.g. client IP).

        Returns:
            RateLimitResult describing the decision and remaining quota.
        """
        raise NotImplementedError

    @abstractmethod
    def sweep(self) -> int:
        """Drop state for windows that already ended. Must never raise."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, Any]:
        raise NotImplementedError

    def enforce(self, identifier: str) -> None:
        """Like :meth:`check`, but raise when the request is not allowed.

        Raises:
            RateLimitExceededError: Quota exhausted for the current window.
        """
        result = self.check(identifier)
        if not result.allowed:
            raise RateLimitExceededError()
