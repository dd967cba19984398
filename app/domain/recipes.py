"""Recipe store queries and the plain-data shapes they are served in.

Everything returned from here is JSON-ready (``dict``/``list`` of
primitives), so a cached copy serves byte-for-byte what the miss produced.
"""

from __future__ import annotations

import operator
from functools import reduce

from sqlalchemy import case, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.db_models import Recipe

SEARCH_COLUMNS = (Recipe.title, Recipe.description, Recipe.brand, Recipe.food_type)


# --- Formatting ---

def recipe_summary(recipe: Recipe) -> dict:
    """Card-sized view used by listings, search results and related recipes."""
    return {
        "id": recipe.id,
        "title": recipe.title,
        "slug": recipe.slug,
        "brand": recipe.brand,
        "brand_slug": recipe.brand_slug,
        "category": recipe.food_type or "Recipe",
        "category_slug": recipe.food_type_slug,
        "description": recipe.description,
        "image": recipe.image,
        "image_alt": recipe.image_alt or recipe.title,
        "featured": recipe.featured,
        "rating": {"value": recipe.rating_value, "count": recipe.rating_count},
        "url": recipe.url,
        "created_at": recipe.created_at.isoformat() if recipe.created_at else None,
    }


def recipe_detail(recipe: Recipe) -> dict:
    data = recipe_summary(recipe)
    data.update(
        product=recipe.product,
        prep_time=recipe.prep_time,
        cook_time=recipe.cook_time,
        total_time=recipe.total_time,
        difficulty=recipe.difficulty,
        ingredients=list(recipe.ingredients or []),
        instructions=list(recipe.instructions or []),
        variations=list(recipe.variations or []),
        tips=list(recipe.tips or []),
        nutrition=dict(recipe.nutrition or {}),
        notes=recipe.notes,
        content_markdown=recipe.content_markdown,
        serving_suggestions=list(recipe.serving_suggestions or []),
        faqs=list(recipe.faqs or []),
        troubleshooting=list(recipe.troubleshooting or []),
        tags=list(recipe.tags or []),
        seo=dict(recipe.seo or {}),
        updated_at=recipe.updated_at.isoformat() if recipe.updated_at else None,
    )
    data["yield"] = recipe.yield_
    return data


def display_name(slug: str) -> str:
    """'acme-foods' -> 'Acme Foods'."""
    return " ".join(word.capitalize() for word in slug.split("-") if word)


# --- Aggregates ---

async def count_stats(db: AsyncSession) -> dict:
    """Recipe, brand and category totals in a single round trip."""
    stmt = select(
        select(func.count(Recipe.id)).scalar_subquery().label("total_recipes"),
        select(func.count(distinct(Recipe.brand))).scalar_subquery().label("total_brands"),
        select(func.count(distinct(Recipe.food_type))).scalar_subquery().label("total_categories"),
    )
    row = (await db.execute(stmt)).one()
    return {
        "total_recipes": row.total_recipes or 0,
        "total_brands": row.total_brands or 0,
        "total_categories": row.total_categories or 0,
    }


async def brand_counts(db: AsyncSession) -> list[dict]:
    count = func.count(Recipe.id)
    stmt = (
        select(
            Recipe.brand,
            func.min(Recipe.brand_slug).label("brand_slug"),
            count.label("recipe_count"),
        )
        .where(Recipe.brand.is_not(None), Recipe.brand != "")
        .group_by(Recipe.brand)
        .order_by(count.desc(), Recipe.brand)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {"name": r.brand, "brand_slug": r.brand_slug, "count": r.recipe_count}
        for r in rows
    ]


async def category_counts(db: AsyncSession) -> list[dict]:
    count = func.count(Recipe.id)
    stmt = (
        select(
            Recipe.food_type,
            func.min(Recipe.food_type_slug).label("category_slug"),
            count.label("recipe_count"),
        )
        .where(Recipe.food_type.is_not(None), Recipe.food_type != "")
        .group_by(Recipe.food_type)
        .order_by(count.desc(), Recipe.food_type)
    )
    rows = (await db.execute(stmt)).all()
    return [
        {"name": r.food_type, "category_slug": r.category_slug, "count": r.recipe_count}
        for r in rows
    ]


# --- Queries ---

async def featured_and_recent(
    db: AsyncSession, featured_limit: int, recent_limit: int
) -> tuple[list[Recipe], list[Recipe]]:
    featured = await db.execute(
        select(Recipe)
        .where(Recipe.featured.is_(True))
        .order_by(Recipe.created_at.desc(), Recipe.id)
        .limit(featured_limit)
    )
    recent = await db.execute(
        select(Recipe).order_by(Recipe.created_at.desc(), Recipe.id).limit(recent_limit)
    )
    return list(featured.scalars().all()), list(recent.scalars().all())


async def recipe_page(
    db: AsyncSession,
    page: int,
    page_size: int,
    brand_slug: str | None = None,
    food_type_slug: str | None = None,
) -> tuple[list[Recipe], int]:
    """One page of the newest recipes plus the total match count.

    The total rides along as a window count on every row, so a page that
    has rows needs one statement. Only a page past the end falls back to
    a separate count.
    """
    filters = []
    if brand_slug:
        filters.append(Recipe.brand_slug == brand_slug)
    if food_type_slug:
        filters.append(Recipe.food_type_slug == food_type_slug)

    stmt = (
        select(Recipe, func.count().over().label("total"))
        .where(*filters)
        .order_by(Recipe.created_at.desc(), Recipe.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await db.execute(stmt)).all()
    if rows:
        return [r.Recipe for r in rows], rows[0].total
    if page == 1:
        return [], 0
    total = await db.scalar(select(func.count(Recipe.id)).where(*filters))
    return [], total or 0


async def find_recipe(db: AsyncSession, brand_slug: str, slug: str) -> Recipe | None:
    result = await db.execute(
        select(Recipe).where(Recipe.brand_slug == brand_slug, Recipe.slug == slug)
    )
    return result.scalar_one_or_none()


async def related_recipes(db: AsyncSession, recipe: Recipe, limit: int) -> list[Recipe]:
    result = await db.execute(
        select(Recipe)
        .where(Recipe.brand == recipe.brand, Recipe.id != recipe.id)
        .order_by(Recipe.created_at.desc(), Recipe.id)
        .limit(limit)
    )
    return list(result.scalars().all())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def search(db: AsyncSession, query: str, limit: int) -> list[Recipe]:
    """Match any term against title, description, brand and food type.

    Ranked by how many (term, field) pairs matched, newest first on ties.
    """
    terms = query.split()
    if not terms:
        return []

    matches = [
        column.ilike(f"%{_escape_like(term)}%", escape="\\")
        for term in terms
        for column in SEARCH_COLUMNS
    ]
    score = reduce(operator.add, [case((m, 1), else_=0) for m in matches])
    result = await db.execute(
        select(Recipe)
        .where(or_(*matches))
        .order_by(score.desc(), Recipe.created_at.desc(), Recipe.id)
        .limit(limit)
    )
    return list(result.scalars().all())
