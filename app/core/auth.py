"""API key authentication.

Authentication is delegated: callers present an ``X-API-Key`` header that is
checked against the comma-separated ``APP_API_KEYS`` setting. Failures raise
:class:`AuthenticationAppError`, rendered as 401 by the exception handlers.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, Header, Request

from app.core.config import AppSettings
from app.core.errors import AuthenticationAppError
from app.core.resources import get_settings

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ") == {"key1", "key2", "key3"}
        True
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def hash_api_key(api_key: str) -> str:
    """Short stable fingerprint of a key, safe to log and to use as a cache key."""
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str | None, app_settings: AppSettings) -> None:
    """Check a key against the configured ones.

    Args:
        provided_key: Key sent by the client, if any.
        app_settings: Settings holding ``api_key_required`` and ``api_keys``.

    Raises:
        AuthenticationAppError: Missing or unknown key, or no keys configured
            while authentication is required.
    """
    if not app_settings.api_key_required:
        return

    if not provided_key:
        logger.warning("auth.missing_key", extra={"auth_required": True})
        raise AuthenticationAppError(
            code="MISSING_API_KEY",
            message="Missing API key. Provide X-API-Key header.",
        )

    valid_keys = parse_api_keys(app_settings.api_keys)
    if not valid_keys:
        logger.error(
            "auth.failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="API_KEYS_NOT_CONFIGURED",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.failed",
            extra={"reason": "invalid_api_key", "api_key_hash": hash_api_key(provided_key)},
        )
        raise AuthenticationAppError(
            code="INVALID_API_KEY",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> str | None:
    """FastAPI dependency for API key authentication.

    Usage:
        @router.get("/protected", dependencies=[Depends(verify_api_key)])

    Returns:
        The validated key, or None when authentication is disabled.
    """
    app_settings = get_settings(request).app
    if not app_settings.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return None

    validate_api_key(x_api_key, app_settings)
    logger.info("auth.success", extra={"api_key_hash": hash_api_key(x_api_key or "")})
    return x_api_key


ApiKey = Annotated[str | None, Depends(verify_api_key)]
