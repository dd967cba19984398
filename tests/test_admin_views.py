"""Tests for the editorial dashboard's cache invalidation hooks."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from starlette.routing import Mount

from app.admin.views import RecipeAdmin, RecipeRatingAdmin
from app.main import app
from app.models.db_models import Recipe, RecipeRating
from tests.conftest import seed_catalog


def _request(cache=None):
    state = SimpleNamespace(cache=cache) if cache is not None else SimpleNamespace()
    return SimpleNamespace(state=state)


def test_dashboard_is_mounted():
    assert any(isinstance(r, Mount) and r.path == "/admin" for r in app.routes)


@pytest.mark.asyncio
async def test_recipe_edit_clears_cache(cache):
    cache.set("site_stats", {"total_recipes": 1}, 60)
    cache.set("brands_list", [], 60)
    recipe = Recipe(title="Edited", brand="Acme Foods", food_type="Snacks")

    await RecipeAdmin().after_model_change({}, recipe, False, _request(cache))
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_recipe_delete_clears_cache(cache):
    cache.set("recipe:acme-foods:edited", {}, 60)
    recipe = Recipe(title="Edited", brand="Acme Foods", food_type="Snacks")

    await RecipeAdmin().after_model_delete(recipe, _request(cache))
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_hook_without_cache_in_state():
    recipe = Recipe(title="Orphan", brand="Acme Foods", food_type="Snacks")
    await RecipeAdmin().after_model_change({}, recipe, True, _request())


@pytest.mark.asyncio
async def test_rating_change_refreshes_aggregate(session_factory, cache):
    recipes = await seed_catalog(session_factory)
    recipe_id = recipes["soup"].id
    async with session_factory() as db:
        rating = RecipeRating(recipe_id=recipe_id, user_id="editor", value=1)
        db.add(rating)
        await db.commit()

    cache.set("site_stats", {}, 60)
    with patch("app.admin.views.recipe.async_session_factory", session_factory):
        await RecipeRatingAdmin().after_model_change({}, rating, True, _request(cache))

    assert len(cache) == 0
    async with session_factory() as db:
        soup = await db.get(Recipe, recipe_id)
        assert soup.rating_value == 1.0
        assert soup.rating_count == 1


@pytest.mark.asyncio
async def test_deleting_last_rating_restores_default(session_factory, cache):
    recipes = await seed_catalog(session_factory)
    recipe_id = recipes["soup"].id
    async with session_factory() as db:
        rating = RecipeRating(recipe_id=recipe_id, user_id="editor", value=1)
        db.add(rating)
        await db.commit()

    with patch("app.admin.views.recipe.async_session_factory", session_factory):
        await RecipeRatingAdmin().after_model_change({}, rating, True, _request(cache))
        async with session_factory() as db:
            await db.delete(await db.get(RecipeRating, rating.id))
            await db.commit()
        await RecipeRatingAdmin().after_model_delete(rating, _request(cache))

    async with session_factory() as db:
        soup = await db.get(Recipe, recipe_id)
        assert soup.rating_value == 4.5
        assert soup.rating_count == 0


@pytest.mark.asyncio
async def test_moving_rating_refreshes_both_recipes(session_factory, cache):
    recipes = await seed_catalog(session_factory)
    soup_id, burger_id = recipes["soup"].id, recipes["burger"].id
    async with session_factory() as db:
        rating = RecipeRating(recipe_id=soup_id, user_id="editor", value=2)
        db.add(rating)
        await db.commit()

    view = RecipeRatingAdmin()
    request = _request(cache)
    with patch("app.admin.views.recipe.async_session_factory", session_factory):
        await view.after_model_change({}, rating, True, _request(cache))

        await view.on_model_change({}, rating, False, request)
        async with session_factory() as db:
            moved = await db.get(RecipeRating, rating.id)
            moved.recipe_id = burger_id
            await db.commit()
        await view.after_model_change({}, moved, False, request)

    async with session_factory() as db:
        soup = await db.get(Recipe, soup_id)
        burger = await db.get(Recipe, burger_id)
        assert (soup.rating_value, soup.rating_count) == (4.5, 0)
        assert (burger.rating_value, burger.rating_count) == (2.0, 1)
