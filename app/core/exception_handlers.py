"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses -> their own HTTP status (400, 401, 404, 429)
- Framework HTTP errors (unknown routes, wrong method) -> same envelope
- Request validation errors -> 400 VALIDATION_ERROR
- Unexpected Exception -> generic 500 (safety net, nothing leaked)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import get_request_id
from app.core.responses import error_response

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    429: "RATE_LIMIT_EXCEEDED",
}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError with its status code, details and headers.

    Rate limit errors already carry the X-RateLimit-* headers computed
    by the limiter dependency; they are copied onto the response.
    """
    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": exc.http_status,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
            "request_id": get_request_id(),
        },
    )

    return error_response(
        exc.code,
        exc.message,
        exc.http_status,
        details=exc.details,
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (404, 405, ...) in the error envelope."""
    code = _HTTP_ERROR_CODES.get(exc.status_code, f"HTTP_{exc.status_code}")
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"

    if exc.status_code == 404:
        message = "Not Found"

    return error_response(
        code,
        message,
        exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 for invalid request data; issues are only echoed in debug mode."""
    logger.warning(
        "request_validation_failed",
        extra={
            "request_path": request.url.path,
            "issue_count": len(exc.errors()),
        },
    )

    debug = getattr(request.app.state, "settings", settings).app.debug
    return error_response(
        "VALIDATION_ERROR",
        "Invalid request data",
        400,
        details={"issues": jsonable_encoder(exc.errors())} if debug else None,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure with context and returns a generic message, so no
    implementation details or stack traces reach the client.
    """
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": get_request_id(),
        },
        exc_info=exc,
    )

    return error_response(
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
        500,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance.
    """
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(StarletteHTTPException)(http_exception_handler)
    app.exception_handler(RequestValidationError)(validation_exception_handler)
    app.exception_handler(Exception)(general_exception_handler)
