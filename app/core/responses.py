"""Response envelope shared by every endpoint.

Success: ``{"success": true, "data": ...}``
Error:   ``{"success": false, "error": {"code", "message", "request_id", "details"?}}``

Routes return the plain dict from :func:`success_response` (not a Response
object) so headers set by dependencies, such as the rate limit headers, are
merged into the final response.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from app.core.logging import get_request_id


def success_response(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_response(
    code: str,
    message: str,
    status_code: int = 500,
    *,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error envelope.

    Args:
        code: Machine-readable error code.
        message: Human-readable message.
        status_code: HTTP status of the response.
        details: Optional structured context, omitted when empty.
        headers: Extra response headers.

    Returns:
        JSONResponse carrying the error envelope.
    """

    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "request_id": get_request_id(),
    }
    if details:
        error["details"] = details

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers or None,
    )
