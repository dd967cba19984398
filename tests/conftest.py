"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.infra.cache import MemoryCache, get_cache
from app.infra.db import enable_sqlite_foreign_keys, get_db
from app.main import app
from app.models.db_models import Base, Recipe

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced stand-in for time.time."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, minutes: float) -> None:
        self.now += minutes * 60


class BrokenSession:
    """AsyncSession stand-in whose every query fails like an unreachable store."""

    def __init__(self) -> None:
        self.calls = 0

    async def execute(self, *args, **kwargs):
        self.calls += 1
        raise OperationalError("SELECT 1", {}, ConnectionError("store unreachable"))

    async def scalar(self, *args, **kwargs):
        return await self.execute(*args, **kwargs)

    async def rollback(self) -> None:
        pass

    async def commit(self) -> None:
        pass


@pytest_asyncio.fixture
async def db_engine():
    engine = enable_sqlite_foreign_keys(create_async_engine(TEST_DB_URL, echo=False))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryCache(clock=clock)


@pytest.fixture
def statements(db_engine):
    """Every SQL statement sent to the test database while the test runs."""
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        seen.append(statement)

    event.listen(db_engine.sync_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(db_engine.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def client(session_factory, cache):
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def add_recipe(
    db: AsyncSession,
    title: str,
    brand: str = "Acme Foods",
    food_type: str = "Snacks",
    minutes_ago: int = 0,
    **fields,
) -> Recipe:
    """Insert a recipe created ``minutes_ago`` before BASE_TIME."""
    recipe = Recipe(
        title=title,
        brand=brand,
        food_type=food_type,
        created_at=BASE_TIME - timedelta(minutes=minutes_ago),
        **fields,
    )
    db.add(recipe)
    await db.flush()
    return recipe


async def seed_catalog(session_factory) -> dict[str, Recipe]:
    """A small committed catalog: two brands, three categories."""
    async with session_factory() as db:
        recipes = {
            "cookies": await add_recipe(
                db, "Chocolate Chip Cookies", "Acme Foods", "Snacks", 1,
                featured=True, description="Chewy copycat cookies",
            ),
            "crackers": await add_recipe(
                db, "Cheese Crackers", "Acme Foods", "Snacks", 2,
                description="Crispy cheddar squares",
            ),
            "soup": await add_recipe(
                db, "Tomato Soup", "Acme Foods", "Soups", 3,
            ),
            "burger": await add_recipe(
                db, "Big Burger", "Burger Barn", "Main Dishes", 4,
                featured=True, description="Double patty with cookie-cutter sauce",
            ),
        }
        await db.commit()
    return recipes
