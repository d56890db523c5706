"""Time source shared by the rate limiters and the cache.

Components take a ``clock`` callable instead of reading the wall clock, so
tests can drive expiry with virtual time.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

# Returns "now" as epoch milliseconds
Clock = Callable[[], float]


def system_clock() -> float:
    return time.time() * 1000


def epoch_ms_to_iso(epoch_ms: float) -> str:
    """Render epoch milliseconds as ISO-8601 UTC, e.g. ``2024-01-01T00:00:00.000Z``."""

    moment = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
