"""Public site API — homepage, listings, recipes, search and ratings.

Every payload carries ``counts`` (site stats), which degrade to fixed
fallback numbers when the store is down. Content endpoints answer 503
with an empty result instead of failing outright.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain import catalog, ratings
from app.infra.cache import MemoryCache, get_cache
from app.infra.db import get_db

logger = logging.getLogger("knockoff-kitchen.site")

router = APIRouter(tags=["site"])

DB = Annotated[AsyncSession, Depends(get_db)]
Cache = Annotated[MemoryCache, Depends(get_cache)]
Page = Annotated[int, Query(ge=1)]


# --- Request schemas ---

class RatingRequest(BaseModel):
    value: int = Field(ge=1, le=5)
    user_id: str | None = None


async def _degraded(db: AsyncSession, cache: MemoryCache, error: str, **empty) -> JSONResponse:
    """Empty-but-valid payload for when the store failed mid-request."""
    await db.rollback()
    counts = await catalog.get_stats_or_fallback(db, cache)
    return JSONResponse({**empty, "counts": counts, "error": error}, status_code=503)


# --- Endpoints ---

@router.get("/")
async def homepage(db: DB, cache: Cache) -> dict:
    try:
        data = await catalog.get_homepage_data(db, cache)
    except SQLAlchemyError:
        logger.exception("Error loading homepage")
        return await _degraded(
            db, cache, "Failed to load homepage. Please try again later.",
            featured_recipes=[], recent_recipes=[],
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {**data, "counts": counts}


@router.get("/recipes")
async def list_recipes(
    db: DB,
    cache: Cache,
    brand: str | None = None,
    category: str | None = None,
    page: Page = 1,
) -> dict:
    try:
        listing = await catalog.get_recipe_listing(db, cache, brand, category, page)
        brands = await catalog.get_brands(db, cache)
        categories = await catalog.get_categories(db, cache)
    except SQLAlchemyError:
        logger.exception("Error fetching recipes")
        return await _degraded(
            db, cache, "Failed to load recipes. Please try again later.",
            recipes=[], total_recipes=0, total_pages=0, current_page=page,
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {
        **listing,
        "brands": [b["name"] for b in brands],
        "categories": [c["name"] for c in categories],
        "selected_brand": brand or "",
        "selected_category": category or "",
        "counts": counts,
    }


@router.get("/recipes/{brand_slug}/{slug}")
async def recipe_detail(brand_slug: str, slug: str, db: DB, cache: Cache) -> dict:
    try:
        data = await catalog.get_recipe_detail(db, cache, brand_slug, slug)
    except SQLAlchemyError:
        logger.exception("Error fetching recipe %s/%s", brand_slug, slug)
        return await _degraded(
            db, cache, "Failed to load recipe. Please try again later.",
            recipe=None, related_recipes=[],
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {**data, "counts": counts}


@router.post("/recipes/{brand_slug}/{slug}/ratings")
async def rate_recipe(
    brand_slug: str, slug: str, req: RatingRequest, db: DB, cache: Cache
) -> dict:
    return await ratings.submit_rating(
        db, cache, brand_slug, slug, value=req.value, user_id=req.user_id
    )


@router.get("/brands")
async def list_brands(db: DB, cache: Cache) -> dict:
    try:
        brands = await catalog.get_brands(db, cache)
    except SQLAlchemyError:
        logger.exception("Error fetching brands")
        return await _degraded(
            db, cache, "Failed to load brands. Please try again later.", brands=[]
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {"brands": brands, "counts": counts}


@router.get("/brands/{brand_slug}")
async def brand_recipes(brand_slug: str, db: DB, cache: Cache, page: Page = 1) -> dict:
    try:
        data = await catalog.get_brand_recipes(db, cache, brand_slug, page)
    except SQLAlchemyError:
        logger.exception("Error fetching brand recipes for %s", brand_slug)
        return await _degraded(
            db, cache, "Failed to load brand recipes. Please try again later.",
            recipes=[], total_recipes=0, total_pages=0, current_page=page,
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {**data, "counts": counts}


@router.get("/categories")
async def list_categories(db: DB, cache: Cache) -> dict:
    try:
        categories = await catalog.get_categories(db, cache)
    except SQLAlchemyError:
        logger.exception("Error fetching categories")
        return await _degraded(
            db, cache, "Failed to load categories. Please try again later.", categories=[]
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {"categories": categories, "counts": counts}


@router.get("/categories/{category_slug}")
async def category_recipes(
    category_slug: str, db: DB, cache: Cache, page: Page = 1
) -> dict:
    try:
        data = await catalog.get_category_recipes(db, cache, category_slug, page)
    except SQLAlchemyError:
        logger.exception("Error fetching category recipes for %s", category_slug)
        return await _degraded(
            db, cache, "Failed to load category recipes. Please try again later.",
            recipes=[], total_recipes=0, total_pages=0, current_page=page,
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {**data, "counts": counts}


@router.get("/search")
async def search(db: DB, cache: Cache, q: str = "") -> dict:
    try:
        data = await catalog.search_recipes(db, cache, q)
    except SQLAlchemyError:
        logger.exception("Error performing search for %r", q)
        return await _degraded(
            db, cache, "Search failed. Please try again later.",
            recipes=[], total_results=0, query=q,
        )
    counts = await catalog.get_stats_or_fallback(db, cache)
    return {**data, "query": q, "counts": counts}


@router.get("/about")
async def about(db: DB, cache: Cache) -> dict:
    return {"page": "about", "counts": await catalog.get_stats_or_fallback(db, cache)}


@router.get("/contact")
async def contact(db: DB, cache: Cache) -> dict:
    return {"page": "contact", "counts": await catalog.get_stats_or_fallback(db, cache)}
