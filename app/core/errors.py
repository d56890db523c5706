"""Application-level exception types.

Every error carries a stable machine-readable ``code`` and the HTTP status the
exception handlers translate it to, so routes and dependencies only raise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    limit: int
    remaining: int
    reset_at: str
    retry_after: int
    issues: list[Any]
    context: NotRequired[dict[str, Any]]


@dataclass(eq=False)
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details returned to the client.
        headers: Extra response headers the error response must carry.
    """

    code: str
    message: str
    details: ErrorDetails | None = None
    headers: dict[str, str] = field(default_factory=dict)

    http_status: ClassVar[int] = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input validation fails."""


class AuthenticationAppError(AppError):
    """Raised when the caller cannot be authenticated."""

    http_status = 401


class NotFoundAppError(AppError):
    """Raised when a requested resource does not exist."""

    http_status = 404


@dataclass(eq=False)
class RateLimitExceededError(AppError):
    """Raised when a client exhausted its quota for the current window."""

    code: str = "RATE_LIMIT_EXCEEDED"
    message: str = "Too many requests, please try again later"

    http_status = 429
