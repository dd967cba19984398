"""Knockoff Kitchen — FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager
from importlib.metadata import version, PackageNotFoundError

from fastapi import FastAPI

from app.admin import setup_admin
from app.api import admin, site
from app.infra.cache import MemoryCache
from app.infra.config import settings
from app.infra.db import init_db
from app.infra.errors import register_error_handlers

# JSON lines for production log shipping, human-readable otherwise
if settings.log_json:
    logging.basicConfig(
        level=settings.log_level,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger("knockoff-kitchen")

try:
    __version__ = version("knockoff-kitchen")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]
    if settings.db_auto_create:
        try:
            await init_db()
        except Exception:
            logger.warning("Could not create database tables.", exc_info=True)

    # One cache per process; reaches handlers (and mounted apps) via request.state.
    cache = MemoryCache(default_ttl_minutes=settings.cache_default_ttl_minutes)
    yield {"cache": cache}
    cache.clear()


app = FastAPI(
    title="knockoff-kitchen",
    description="Knockoff Kitchen — copycat recipe site with an in-process query cache",
    version=__version__,
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(admin.router)
app.include_router(site.router)

setup_admin(app)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": "knockoff-kitchen", "version": __version__}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
        reload=settings.app_debug,
    )
