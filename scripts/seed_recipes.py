"""Load recipes from a JSON file into the recipe store.

Usage:
    python scripts/seed_recipes.py <recipes.json>

The file holds a list of recipe objects using the Recipe column names
(``title``, ``brand``, ``food_type``, ``ingredients``, ...). Slugs are
derived when missing; recipes whose brand/slug pair already exists are
skipped.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

from sqlalchemy import select

from app.infra.db import async_session_factory, init_db
from app.models.db_models import Recipe, slugify

_COLUMNS = {c.key for c in Recipe.__mapper__.column_attrs}


def _to_recipe(data: dict) -> Recipe:
    fields = {k: v for k, v in data.items() if k in _COLUMNS}
    if "yield" in data:
        fields["yield_"] = data["yield"]
    return Recipe(**fields)


async def seed(path: Path) -> None:
    records = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(records, list):
        print(f"Error: {path} must contain a JSON list of recipes.")
        sys.exit(1)

    await init_db()
    added = skipped = 0
    async with async_session_factory() as db:
        for data in records:
            recipe = _to_recipe(data)
            brand_slug = recipe.brand_slug or slugify(recipe.brand or "unknown-brand")
            slug = recipe.slug or slugify(recipe.title or "recipe")
            result = await db.execute(
                select(Recipe.id).where(Recipe.brand_slug == brand_slug, Recipe.slug == slug)
            )
            if result.scalar_one_or_none() is not None:
                skipped += 1
                continue
            db.add(recipe)
            await db.flush()
            added += 1
        await db.commit()
    print(f"Seeded {added} recipes ({skipped} already present).")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/seed_recipes.py <recipes.json>")
        sys.exit(1)
    asyncio.run(seed(Path(sys.argv[1])))
