from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.core.resources import AppResources, get_resources
from app.core.responses import success_response

router = APIRouter(tags=["Health"])

_STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check(
    resources: Annotated[AppResources, Depends(get_resources)],
) -> dict[str, Any]:
    """Health check endpoint.

    Reports liveness together with the size of the in-memory state (rate
    limiter identifiers and cache entries), which the background sweeps keep
    bounded.
    """
    started = time.perf_counter()

    health = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_s": round(time.monotonic() - _STARTED_AT, 3),
        "rate_limiters": [
            resources.global_limiter.stats(),
            resources.auth_limiter.stats(),
        ],
        "cache": resources.cache.stats(),
    }
    health["response_time_ms"] = round((time.perf_counter() - started) * 1000, 3)

    return success_response(health)
