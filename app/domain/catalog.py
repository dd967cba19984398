"""Cache-aside reads for every page the site serves.

Each function derives a key, returns a hit as-is, and on a miss runs the
store query, formats the result, caches it under the endpoint's TTL and
returns it. Store errors are never cached; they propagate to the caller.

Two concurrent misses on the same key both compute and both write; the
last write wins with an equivalent value.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain import cache_keys
from app.domain import recipes as store
from app.infra.cache import MemoryCache
from app.infra.config import settings
from app.infra.errors import RecipeNotFoundError

logger = logging.getLogger("knockoff-kitchen.catalog")

# Served when the store is unreachable and nothing is cached.
FALLBACK_STATS = {"total_recipes": 23211, "total_brands": 268, "total_categories": 373}


async def get_stats(db: AsyncSession, cache: MemoryCache) -> dict:
    """Site-wide recipe, brand and category totals."""
    stats = cache.get(cache_keys.SITE_STATS)
    if stats is not None:
        return stats

    logger.info("Fetching fresh stats from database")
    stats = await store.count_stats(db)
    cache.set(cache_keys.SITE_STATS, stats, settings.cache_ttl_stats_minutes)
    return stats


async def get_stats_or_fallback(db: AsyncSession, cache: MemoryCache) -> dict:
    """Like get_stats, but degrades to FALLBACK_STATS instead of raising."""
    try:
        return await get_stats(db, cache)
    except SQLAlchemyError:
        logger.exception("Stats query failed, serving fallback counts")
        return dict(FALLBACK_STATS)


async def get_homepage_data(db: AsyncSession, cache: MemoryCache) -> dict:
    data = cache.get(cache_keys.HOMEPAGE_DATA)
    if data is not None:
        return data

    logger.info("Fetching fresh homepage data")
    featured, recent = await store.featured_and_recent(
        db, settings.featured_limit, settings.recent_limit
    )
    data = {
        "featured_recipes": [store.recipe_summary(r) for r in featured],
        "recent_recipes": [store.recipe_summary(r) for r in recent],
    }
    cache.set(cache_keys.HOMEPAGE_DATA, data, settings.cache_ttl_homepage_minutes)
    return data


async def get_brands(db: AsyncSession, cache: MemoryCache) -> list[dict]:
    brands = cache.get(cache_keys.BRANDS_LIST)
    if brands is not None:
        return brands

    logger.info("Fetching fresh brands data")
    brands = await store.brand_counts(db)
    cache.set(cache_keys.BRANDS_LIST, brands, settings.cache_ttl_brands_minutes)
    return brands


async def get_categories(db: AsyncSession, cache: MemoryCache) -> list[dict]:
    categories = cache.get(cache_keys.CATEGORIES_LIST)
    if categories is not None:
        return categories

    logger.info("Fetching fresh categories data")
    categories = await store.category_counts(db)
    cache.set(cache_keys.CATEGORIES_LIST, categories, settings.cache_ttl_categories_minutes)
    return categories


async def _load_page(
    db: AsyncSession,
    page: int,
    brand_slug: str | None = None,
    food_type_slug: str | None = None,
) -> dict:
    rows, total = await store.recipe_page(
        db,
        page,
        settings.page_size,
        brand_slug=brand_slug,
        food_type_slug=food_type_slug,
    )
    return {
        "recipes": [store.recipe_summary(r) for r in rows],
        "total_recipes": total,
        "total_pages": math.ceil(total / settings.page_size),
        "current_page": page,
    }


async def get_recipe_listing(
    db: AsyncSession,
    cache: MemoryCache,
    brand: str | None = None,
    category: str | None = None,
    page: int = 1,
) -> dict:
    """Newest recipes, optionally filtered by brand slug and category slug."""
    key = cache_keys.recipe_listing_key(brand, category, page)
    data = cache.get(key)
    if data is not None:
        return data

    logger.info(
        "Fetching fresh recipes data (brand=%s category=%s page=%d)", brand, category, page
    )
    data = await _load_page(db, page, brand_slug=brand or None, food_type_slug=category or None)
    cache.set(key, data, settings.cache_ttl_listing_minutes)
    return data


async def get_brand_recipes(
    db: AsyncSession, cache: MemoryCache, brand_slug: str, page: int = 1
) -> dict:
    key = cache_keys.brand_page_key(brand_slug, page)
    data = cache.get(key)
    if data is not None:
        return data

    logger.info("Fetching fresh recipes for brand: %s", brand_slug)
    data = await _load_page(db, page, brand_slug=brand_slug)
    data["brand_name"] = (
        data["recipes"][0]["brand"] if data["recipes"] else store.display_name(brand_slug)
    )
    cache.set(key, data, settings.cache_ttl_brand_page_minutes)
    return data


async def get_category_recipes(
    db: AsyncSession, cache: MemoryCache, category_slug: str, page: int = 1
) -> dict:
    key = cache_keys.category_page_key(category_slug, page)
    data = cache.get(key)
    if data is not None:
        return data

    logger.info("Fetching fresh recipes for category: %s", category_slug)
    data = await _load_page(db, page, food_type_slug=category_slug)
    data["category_name"] = (
        data["recipes"][0]["category"] if data["recipes"] else store.display_name(category_slug)
    )
    cache.set(key, data, settings.cache_ttl_category_page_minutes)
    return data


async def get_recipe_detail(
    db: AsyncSession, cache: MemoryCache, brand_slug: str, slug: str
) -> dict:
    """A single recipe plus related recipes from the same brand.

    Raises RecipeNotFoundError (uncached) when no such recipe exists.
    """
    key = cache_keys.recipe_key(brand_slug, slug)
    data = cache.get(key)
    if data is not None:
        return data

    logger.info("Fetching fresh recipe data: %s/%s", brand_slug, slug)
    recipe = await store.find_recipe(db, brand_slug, slug)
    if recipe is None:
        raise RecipeNotFoundError(brand_slug, slug)
    related = await store.related_recipes(db, recipe, settings.related_limit)
    data = {
        "recipe": store.recipe_detail(recipe),
        "related_recipes": [store.recipe_summary(r) for r in related],
    }
    cache.set(key, data, settings.cache_ttl_recipe_minutes)
    return data


async def search_recipes(db: AsyncSession, cache: MemoryCache, query: str) -> dict:
    """Ranked search results for the trimmed query text.

    A blank query returns an empty result without touching the cache or the store.
    """
    query = query.strip()
    if not query:
        return {"recipes": [], "total_results": 0}

    limit = settings.search_limit
    key = cache_keys.search_key(query, limit)
    data = cache.get(key)
    if data is not None:
        return data

    logger.info("Performing fresh search: %r", query)
    rows = await store.search(db, query, limit)
    recipes = [store.recipe_summary(r) for r in rows]
    data = {"recipes": recipes, "total_results": len(recipes)}
    cache.set(key, data, settings.cache_ttl_search_minutes)
    return data
