"""Admin model view configurations."""

from app.admin.views.recipe import CacheClearingView, RecipeAdmin, RecipeRatingAdmin

__all__ = [
    "CacheClearingView",
    "RecipeAdmin",
    "RecipeRatingAdmin",
]
