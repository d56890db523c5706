"""Authentication endpoints.

Sit behind the stricter ``auth`` rate limiter on top of the global one.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.core.auth import ApiKey, hash_api_key
from app.core.config import Settings
from app.core.rate_limit import enforce_auth_rate_limit
from app.core.resources import AppResources, get_resources, get_settings
from app.core.responses import success_response
from app.utils.clock import epoch_ms_to_iso

router = APIRouter(
    prefix="/api/auth",
    tags=["Auth"],
    dependencies=[Depends(enforce_auth_rate_limit)],
)

ANONYMOUS_SESSION: dict[str, Any] = {
    "authenticated": False,
    "principal": "anonymous",
    "issued_at": None,
}


@router.get("/session")
async def get_session(
    api_key: ApiKey,
    resources: Annotated[AppResources, Depends(get_resources)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, Any]:
    """Describe the session attached to the presented API key.

    Sessions are memoized in the shared cache, so repeated calls within
    ``APP_SESSION_CACHE_TTL_MS`` return the same ``issued_at``.
    """
    if api_key is None:
        return success_response(ANONYMOUS_SESSION)

    principal = f"key:{hash_api_key(api_key)}"
    session = resources.cache.get_or_set(
        f"session:{principal}",
        lambda: {
            "authenticated": True,
            "principal": principal,
            "issued_at": epoch_ms_to_iso(resources.clock()),
        },
        settings.app.session_cache_ttl_ms,
    )
    return success_response(session)
