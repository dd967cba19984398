"""Admin views for Recipe and RecipeRating models.

Editorial writes can change anything a cached page shows, so every
create, edit or delete made here clears the whole cache.
"""

from __future__ import annotations

import logging
from typing import Any

from sqladmin import ModelView
from sqlalchemy import select
from starlette.requests import Request

from app.domain.ratings import refresh_rating_aggregate
from app.infra.db import async_session_factory
from app.models.db_models import Recipe, RecipeRating

logger = logging.getLogger("knockoff-kitchen.admin")


class CacheClearingView(ModelView):
    """ModelView whose writes invalidate the process cache from lifespan state."""

    def _clear_cache(self, request: Request, action: str, model: Any) -> None:
        cache = getattr(request.state, "cache", None)
        if cache is None:
            logger.warning("No cache in request state; %s of %s not invalidated", action, model)
            return
        cleared = cache.clear()
        logger.info("Admin %s of %s invalidated %d cache entries", action, model, cleared)

    async def after_model_change(
        self, data: dict, model: Any, is_created: bool, request: Request
    ) -> None:
        self._clear_cache(request, "create" if is_created else "edit", model)

    async def after_model_delete(self, model: Any, request: Request) -> None:
        self._clear_cache(request, "delete", model)


class RecipeAdmin(CacheClearingView, model=Recipe):
    name = "Recipe"
    name_plural = "Recipes"
    icon = "fa-solid fa-utensils"

    column_list = [
        Recipe.id,
        Recipe.title,
        Recipe.brand,
        Recipe.food_type,
        Recipe.featured,
        Recipe.rating_value,
        Recipe.rating_count,
        Recipe.created_at,
    ]
    column_searchable_list = [Recipe.title, Recipe.brand, Recipe.food_type]
    column_sortable_list = [Recipe.title, Recipe.brand, Recipe.rating_value, Recipe.created_at]
    column_default_sort = ("created_at", True)

    form_columns = [
        "title",
        "slug",
        "brand",
        "brand_slug",
        "food_type",
        "food_type_slug",
        "product",
        "description",
        "prep_time",
        "cook_time",
        "total_time",
        "difficulty",
        "ingredients",
        "instructions",
        "tips",
        "notes",
        "content_markdown",
        "image",
        "image_alt",
        "tags",
        "seo",
        "featured",
    ]

    can_export = True
    export_types = ["csv", "json"]


class RecipeRatingAdmin(CacheClearingView, model=RecipeRating):
    name = "Rating"
    name_plural = "Ratings"
    icon = "fa-solid fa-star"

    column_list = [
        RecipeRating.id,
        "recipe",
        RecipeRating.user_id,
        RecipeRating.value,
        RecipeRating.created_at,
    ]
    column_searchable_list = [RecipeRating.recipe_id, RecipeRating.user_id]
    column_sortable_list = [RecipeRating.value, RecipeRating.created_at]
    column_default_sort = ("created_at", True)

    form_columns = ["recipe", "user_id", "value"]

    async def _refresh_aggregate(self, recipe_id: str) -> None:
        async with async_session_factory() as db:
            recipe = await db.get(Recipe, recipe_id)
            if recipe is not None:
                await refresh_rating_aggregate(db, recipe)
                await db.commit()

    async def on_model_change(
        self, data: dict, model: Any, is_created: bool, request: Request
    ) -> None:
        # An edit may move the rating to another recipe; remember where it was.
        if not is_created:
            async with async_session_factory() as db:
                request.state.previous_recipe_id = await db.scalar(
                    select(RecipeRating.recipe_id).where(RecipeRating.id == model.id)
                )

    async def after_model_change(
        self, data: dict, model: Any, is_created: bool, request: Request
    ) -> None:
        previous = getattr(request.state, "previous_recipe_id", None)
        if previous is not None and previous != model.recipe_id:
            await self._refresh_aggregate(previous)
        await self._refresh_aggregate(model.recipe_id)
        await super().after_model_change(data, model, is_created, request)

    async def after_model_delete(self, model: Any, request: Request) -> None:
        await self._refresh_aggregate(model.recipe_id)
        await super().after_model_delete(model, request)
