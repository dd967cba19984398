"""Editorial dashboard — setup and configuration for sqladmin."""

from __future__ import annotations

from fastapi import FastAPI
from sqladmin import Admin

from app.admin.views import RecipeAdmin, RecipeRatingAdmin
from app.infra.db import engine


def setup_admin(app: FastAPI) -> Admin:
    """Configure and mount the sqladmin dashboard on the FastAPI app."""
    admin = Admin(
        app=app,
        engine=engine,
        base_url="/admin",
        title="Knockoff Kitchen Admin",
    )

    admin.add_view(RecipeAdmin)
    admin.add_view(RecipeRatingAdmin)

    return admin
