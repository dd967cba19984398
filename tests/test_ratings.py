"""Tests for rating submission and the invalidation it triggers."""

import pytest
from sqlalchemy import delete, func, select

from app.domain import cache_keys, catalog
from app.domain.ratings import refresh_rating_aggregate, submit_rating
from app.infra.errors import RecipeNotFoundError
from app.models.db_models import Recipe, RecipeRating
from tests.conftest import add_recipe, seed_catalog


@pytest.mark.asyncio
async def test_rating_updates_aggregate(db_session, session_factory, cache):
    await seed_catalog(session_factory)

    await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 5, user_id="u1")
    result = await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 4, user_id="u2")

    assert result["rating"] == {"value": 4.5, "count": 2}

    result = await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 1)
    assert result["rating"] == {"value": 3.3, "count": 3}


@pytest.mark.asyncio
async def test_rating_clears_every_cached_view(db_session, session_factory, cache):
    await seed_catalog(session_factory)
    before = await catalog.get_recipe_detail(db_session, cache, "acme-foods", "tomato-soup")
    await catalog.get_stats(db_session, cache)
    await catalog.get_recipe_listing(db_session, cache, brand="acme-foods")
    await catalog.search_recipes(db_session, cache, "soup")
    assert len(cache) == 4

    await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 2)

    assert len(cache) == 0
    after = await catalog.get_recipe_detail(db_session, cache, "acme-foods", "tomato-soup")
    assert before["recipe"]["rating"] == {"value": 4.5, "count": 0}
    assert after["recipe"]["rating"] == {"value": 2.0, "count": 1}


@pytest.mark.asyncio
async def test_invalid_rating_leaves_cache_alone(db_session, session_factory, cache):
    await seed_catalog(session_factory)
    await catalog.get_stats(db_session, cache)

    with pytest.raises(ValueError):
        await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 6)
    assert cache.get(cache_keys.SITE_STATS) is not None


@pytest.mark.asyncio
async def test_rating_unknown_recipe(db_session, cache):
    cache.set("keep", 1, 60)
    with pytest.raises(RecipeNotFoundError):
        await submit_rating(db_session, cache, "acme-foods", "missing", 3)
    assert cache.get("keep") == 1


@pytest.mark.asyncio
async def test_refresh_without_ratings_keeps_default(db_session):
    recipe = await add_recipe(db_session, "Unrated")
    await refresh_rating_aggregate(db_session, recipe)
    assert recipe.rating_value == 4.5
    assert recipe.rating_count == 0


@pytest.mark.asyncio
async def test_rating_mean_rounds_half_up(db_session, session_factory, cache):
    await seed_catalog(session_factory)
    for value in (3, 3, 4, 3):
        result = await submit_rating(db_session, cache, "acme-foods", "tomato-soup", value)
    assert result["rating"] == {"value": 3.3, "count": 4}


@pytest.mark.asyncio
async def test_deleting_recipe_cascades_to_ratings(db_session, session_factory, cache):
    recipes = await seed_catalog(session_factory)
    await submit_rating(db_session, cache, "acme-foods", "tomato-soup", 4)

    await db_session.execute(delete(Recipe).where(Recipe.id == recipes["soup"].id))
    await db_session.commit()

    remaining = await db_session.scalar(select(func.count(RecipeRating.id)))
    assert remaining == 0
