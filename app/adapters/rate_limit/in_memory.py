"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- A window starts with the first request of an identifier and lasts
  ``window_ms``; it is not aligned to wall-clock boundaries.
- Thread-safe: uses a lock around shared state, so sync routes running in the
  threadpool can share an instance with the event loop.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Any

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


@dataclass
class _WindowState:
    count: int
    reset_at: int


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Counts requests per identifier inside fixed windows.

    Example: with ``max_requests=5`` and ``window_ms=60_000`` an identifier
    gets five allowed calls; the sixth is denied until 60 seconds after its
    first call, when a fresh window starts.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_ms: int,
        clock: Clock = system_clock,
        name: str = "default",
    ) -> None:
        """Initialize the limiter.

        Args:
            max_requests: Quota per window.
            window_ms: Window length in milliseconds.
            clock: Time source returning epoch milliseconds.
            name: Label used in logs and stats (e.g. ``global``, ``auth``).

        Raises:
            ValueError: If max_requests or window_ms are invalid.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")

        self.name = name
        self.limit = max_requests
        self.window_ms = window_ms
        self._clock = clock
        self._lock = threading.RLock()
        self._state_by_identifier: dict[str, _WindowState] = {}

    def __len__(self) -> int:
        return len(self._state_by_identifier)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryFixedWindowRateLimiter(name={self.name!r}, max_requests={self.limit}, "
            f"window_ms={self.window_ms}, tracked={len(self)})"
        )

    def check(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier`` and return the decision.

        - No state, or the window ended: start a new window with count 1.
        - Quota used up: deny without touching the state.
        - Otherwise: increment the count.
        """
        now = int(self._clock())

        with self._lock:
            state = self._state_by_identifier.get(identifier)

            if state is None or now >= state.reset_at:
                state = _WindowState(count=1, reset_at=now + self.window_ms)
                self._state_by_identifier[identifier] = state
                return RateLimitResult(
                    allowed=True,
                    limit=self.limit,
                    remaining=self.limit - 1,
                    reset_at=state.reset_at,
                )

            if state.count >= self.limit:
                logger.warning(
                    "rate_limit.exceeded",
                    extra={
                        "limiter": self.name,
                        "identifier_hash": _hash_identifier(identifier),
                        "limit": self.limit,
                        "window_ms": self.window_ms,
                        "reset_in_ms": state.reset_at - now,
                    },
                )
                return RateLimitResult(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    reset_at=state.reset_at,
                )

            state.count += 1
            return RateLimitResult(
                allowed=True,
                limit=self.limit,
                remaining=self.limit - state.count,
                reset_at=state.reset_at,
            )

    def sweep(self) -> int:
        """Remove identifiers whose window has ended.

        Returns:
            Number of identifiers removed.
        """
        now = int(self._clock())

        with self._lock:
            expired = [
                identifier
                for identifier, state in self._state_by_identifier.items()
                if now >= state.reset_at
            ]
            for identifier in expired:
                del self._state_by_identifier[identifier]

        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"limiter": self.name, "removed": len(expired), "tracked": len(self)},
            )
        return len(expired)

    def stats(self) -> dict[str, Any]:
        """Return limiter configuration and tracked identifier count."""
        with self._lock:
            return {
                "name": self.name,
                "limit": self.limit,
                "window_ms": self.window_ms,
                "tracked": len(self._state_by_identifier),
            }
