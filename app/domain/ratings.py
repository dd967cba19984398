"""User rating submission — the one public write path, and what it invalidates."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain import recipes as store
from app.infra.cache import MemoryCache
from app.infra.errors import RecipeNotFoundError
from app.models.db_models import DEFAULT_RATING, Recipe, RecipeRating

logger = logging.getLogger("knockoff-kitchen.ratings")


async def refresh_rating_aggregate(db: AsyncSession, recipe: Recipe) -> Recipe:
    """Recompute a recipe's rating mean and count from its user ratings.

    The mean is rounded half up to one decimal. A recipe left with no
    ratings goes back to DEFAULT_RATING.
    """
    result = await db.execute(
        select(func.avg(RecipeRating.value), func.count(RecipeRating.id))
        .where(RecipeRating.recipe_id == recipe.id)
    )
    average, count = result.one()
    if count:
        recipe.rating_value = float(
            Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        )
    else:
        recipe.rating_value = DEFAULT_RATING
    recipe.rating_count = count
    await db.flush()
    return recipe


async def submit_rating(
    db: AsyncSession,
    cache: MemoryCache,
    brand_slug: str,
    slug: str,
    value: int,
    user_id: str | None = None,
) -> dict:
    """Record a rating, update the recipe aggregate, then clear the cache.

    Any listing, search result or detail page may embed the recipe's
    rating, and which keys those are is not tracked, so every entry goes.
    The clear happens only after the commit; a failed write leaves the
    cache alone.
    """
    if not 1 <= value <= 5:
        raise ValueError(f"Rating must be between 1 and 5, got {value}")

    recipe = await store.find_recipe(db, brand_slug, slug)
    if recipe is None:
        raise RecipeNotFoundError(brand_slug, slug)

    db.add(RecipeRating(recipe_id=recipe.id, user_id=user_id, value=value))
    await db.flush()
    await refresh_rating_aggregate(db, recipe)
    await db.commit()

    cleared = cache.clear()
    logger.info(
        "Rating %d recorded for %s/%s; invalidated %d cache entries",
        value, brand_slug, slug, cleared,
    )
    return {
        "recipe_id": recipe.id,
        "rating": {"value": recipe.rating_value, "count": recipe.rating_count},
    }
