"""Custom exceptions and centralized FastAPI error handlers."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("knockoff-kitchen.errors")


class KitchenError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecipeNotFoundError(KitchenError):
    def __init__(self, brand_slug: str, slug: str) -> None:
        super().__init__(
            f"Recipe not found: {brand_slug}/{slug}. It may have been moved or deleted.",
            status_code=404,
        )
        self.brand_slug = brand_slug
        self.slug = slug


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(KitchenError)
    async def handle_kitchen_error(_request: Request, exc: KitchenError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(ValueError)
    async def handle_value_error(_request: Request, exc: ValueError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)
