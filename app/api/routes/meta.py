from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from app.core.config import Settings
from app.core.resources import get_settings

router = APIRouter(tags=["Meta"])


@router.get("/")
async def root(settings: Annotated[Settings, Depends(get_settings)]) -> dict[str, Any]:
    """Service banner."""
    return {
        "name": settings.app.name,
        "version": settings.app.version,
        "status": "running",
    }
