"""HTTP middleware for request correlation and access logging.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from app.core.config import settings
from app.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


def _request_id_header(request: Request) -> str:
    app_settings = getattr(request.app.state, "settings", settings)
    return app_settings.log.request_id_header


async def request_id_middleware(request: Request, call_next) -> Response:
    """Tag the request with a correlation id and log its lifecycle.

    The id comes from the incoming ``X-Request-ID`` header (configurable via
    ``LOG_REQUEST_ID_HEADER``) or is a fresh UUID. It is stored in a context
    variable for log correlation while the request runs and echoed back in
    the response together with ``X-Request-Duration-ms``.

    Example:
        >>> # Headers: {"X-Request-ID": "req-abc-123"}
        >>> # Response: {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "4.12"}
    """

    header_name = _request_id_header(request)
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)

    method = request.method
    path = request.url.path
    logger.info("http.request.started", extra={"method": method, "path": path})

    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "http.request.completed",
            extra={
                "method": method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
