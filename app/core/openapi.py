"""OpenAPI customizations.

Adds the ``X-API-Key`` security scheme to the auth endpoints only, documents
the rate limit response headers and registers tag metadata.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

_RATE_LIMIT_HEADERS = {
    "X-RateLimit-Limit": {
        "description": "Requests allowed per window for this client.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Remaining": {
        "description": "Requests left in the current window.",
        "schema": {"type": "integer"},
    },
    "X-RateLimit-Reset": {
        "description": "ISO-8601 timestamp at which the current window ends.",
        "schema": {"type": "string", "format": "date-time"},
    },
}

_TAGS = [
    {"name": "Meta", "description": "Service information."},
    {"name": "Health", "description": "Liveness and in-memory state size."},
    {"name": "Auth", "description": "API key sessions (stricter rate limit)."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation with security, headers and tags."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        components.setdefault("securitySchemes", {}).setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Provide your API key via the X-API-Key header.",
            },
        )

        tags = schema.setdefault("tags", [])
        existing = {t.get("name") for t in tags}
        tags.extend(tag for tag in _TAGS if tag["name"] not in existing)

        for path, methods in schema.get("paths", {}).items():
            for operation in methods.values():
                if not isinstance(operation, dict):
                    continue
                if path.startswith("/api/auth"):
                    operation["security"] = [{"ApiKeyAuth": []}]
                responses = operation.setdefault("responses", {})
                responses.setdefault("429", {"description": "Rate limit exceeded"})
                for response in responses.values():
                    response.setdefault("headers", {}).update(_RATE_LIMIT_HEADERS)

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
