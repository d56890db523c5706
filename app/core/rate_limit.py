"""Rate limiting for the HTTP layer.

Two limiters guard the API:
- ``global``: loose per-client bound, applied by :func:`global_rate_limit_middleware`
  to every inbound request, including unknown paths and the docs.
- ``auth``: tighter bound for authentication endpoints, applied by the
  :data:`enforce_auth_rate_limit` router dependency, separate state.

Every checked response carries ``X-RateLimit-Limit``, ``X-RateLimit-Remaining``
and ``X-RateLimit-Reset`` (ISO-8601), error responses included. The latest
check stores its headers on ``request.state`` and the middleware copies them
onto whatever response comes back. A denied request gets the 429 envelope.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Request, Response

from app.adapters.rate_limit import AbstractRateLimiter, RateLimitResult
from app.core.errors import RateLimitExceededError
from app.core.exception_handlers import app_error_handler
from app.core.resources import AppResources, get_resources, get_settings

UNKNOWN_CLIENT = "unknown"

LimiterSelector = Callable[[AppResources], AbstractRateLimiter]


def extract_client_identifier(request: Request) -> str:
    """Pick the identifier a request is counted under.

    Only the first ``X-Forwarded-For`` entry is used: it is the originating
    client, while later entries are proxies that vary per hop and would
    split one client across several counters.
    """

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    connecting_ip = request.headers.get("CF-Connecting-IP")
    if connecting_ip:
        return connecting_ip.strip()

    return UNKNOWN_CLIENT


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    return {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": result.reset_at_iso,
    }


def apply_rate_limit(request: Request, limiter: AbstractRateLimiter) -> None:
    """Count the request against ``limiter`` and record the response headers.

    Raises:
        RateLimitExceededError: Quota exhausted; carries the headers to send.
    """

    resources = get_resources(request)
    result = limiter.check(extract_client_identifier(request))

    headers = build_rate_limit_headers(result)
    request.state.rate_limit_headers = headers

    if result.allowed:
        return

    retry_after = result.retry_after_seconds(resources.clock())
    error_headers = dict(headers)
    if get_settings(request).app.rate_limit_include_retry_after:
        error_headers["Retry-After"] = str(retry_after)

    raise RateLimitExceededError(
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at_iso,
            "retry_after": retry_after,
        },
        headers=error_headers,
    )


async def global_rate_limit_middleware(request: Request, call_next) -> Response:
    """Apply the global limiter to every request and attach the limit headers.

    Usage:
        app.middleware("http")(global_rate_limit_middleware)
    """

    if not get_settings(request).app.rate_limit_enabled:
        return await call_next(request)

    try:
        apply_rate_limit(request, get_resources(request).global_limiter)
    except RateLimitExceededError as exc:
        return await app_error_handler(request, exc)

    response: Response = await call_next(request)
    for name, value in request.state.rate_limit_headers.items():
        response.headers.setdefault(name, value)
    return response


def rate_limit(selector: LimiterSelector) -> Callable[[Request], Awaitable[None]]:
    """Build a route dependency that counts the request against one limiter.

    Args:
        selector: Picks the limiter out of the application resources.

    Returns:
        A FastAPI dependency callable.
    """

    async def dependency(request: Request) -> None:
        if not get_settings(request).app.rate_limit_enabled:
            return
        apply_rate_limit(request, selector(get_resources(request)))

    return dependency


enforce_auth_rate_limit = rate_limit(lambda resources: resources.auth_limiter)
