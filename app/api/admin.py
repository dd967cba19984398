"""Admin API — cache maintenance."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from app.infra.cache import MemoryCache, get_cache

logger = logging.getLogger("knockoff-kitchen.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/cache")
async def cache_status(cache: Annotated[MemoryCache, Depends(get_cache)]) -> dict:
    """Entries currently held, expired-but-unread ones included."""
    return {"entries": len(cache)}


@router.api_route("/clear-cache", methods=["GET", "POST"])
async def clear_cache(cache: Annotated[MemoryCache, Depends(get_cache)]) -> dict:
    cleared = cache.clear()
    logger.info("Cache cleared via admin endpoint")
    return {"message": "Cache cleared successfully", "cleared": cleared}
