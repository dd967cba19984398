"""SQLAlchemy ORM models for the recipe store."""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Shown for recipes nobody has rated yet.
DEFAULT_RATING = 4.5


def _uuid() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def slugify(text: str) -> str:
    """URL-friendly slug: lower case, runs of non-alphanumerics become '-'."""
    return _NON_ALNUM.sub("-", text.lower()).strip("-")


class Base(DeclarativeBase):
    pass


class Recipe(Base):
    """A copycat recipe for a brand-name food."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(256), nullable=False)
    brand: Mapped[str] = mapped_column(String(128), nullable=False)
    brand_slug: Mapped[str] = mapped_column(String(128), nullable=False)
    food_type: Mapped[str] = mapped_column(String(128), nullable=False)
    food_type_slug: Mapped[str] = mapped_column(String(128), nullable=False)
    product: Mapped[str | None] = mapped_column(String(256), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    yield_: Mapped[str | None] = mapped_column("yield", String(64), nullable=True)
    prep_time: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cook_time: Mapped[str | None] = mapped_column(String(64), nullable=True)
    total_time: Mapped[str | None] = mapped_column(String(64), nullable=True)
    difficulty: Mapped[str | None] = mapped_column(String(32), nullable=True)

    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    instructions: Mapped[list] = mapped_column(JSON, default=list)
    variations: Mapped[list] = mapped_column(JSON, default=list)  # [{title, description}]
    tips: Mapped[list] = mapped_column(JSON, default=list)
    nutrition: Mapped[dict] = mapped_column(JSON, default=dict)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    serving_suggestions: Mapped[list] = mapped_column(JSON, default=list)
    faqs: Mapped[list] = mapped_column(JSON, default=list)  # [{question, answer}]
    troubleshooting: Mapped[list] = mapped_column(JSON, default=list)  # [{problem, solution}]

    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    image_alt: Mapped[str | None] = mapped_column(String(256), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    seo: Mapped[dict] = mapped_column(JSON, default=dict)  # {title, description, keywords}

    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    rating_value: Mapped[float] = mapped_column(Float, default=DEFAULT_RATING)
    rating_count: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    ratings: Mapped[list[RecipeRating]] = relationship(
        back_populates="recipe", cascade="all, delete-orphan"
    )

    @property
    def url(self) -> str:
        return f"/recipes/{self.brand_slug}/{self.slug}"

    def __str__(self) -> str:
        return f"{self.title} ({self.brand})"

    __table_args__ = (
        Index("ix_recipe_brand_slug_slug", "brand_slug", "slug", unique=True),
        Index("ix_recipe_brand", "brand"),
        Index("ix_recipe_food_type", "food_type"),
        Index("ix_recipe_food_type_slug", "food_type_slug"),
        Index("ix_recipe_featured", "featured"),
        Index("ix_recipe_created_at", "created_at"),
    )


class RecipeRating(Base):
    """A single user's rating of a recipe."""

    __tablename__ = "recipe_ratings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_uuid)
    recipe_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    recipe: Mapped[Recipe] = relationship(back_populates="ratings")

    def __str__(self) -> str:
        return f"{self.value}/5 ({self.recipe_id[:8]})"

    __table_args__ = (
        Index("ix_rating_recipe", "recipe_id"),
    )


@event.listens_for(Recipe, "before_insert")
@event.listens_for(Recipe, "before_update")
def _fill_slugs(_mapper, _connection, target: Recipe) -> None:
    """Derive missing slugs from title, brand and food type."""
    if not target.slug:
        target.slug = slugify(target.title or "recipe")
    if not target.brand_slug:
        target.brand_slug = slugify(target.brand or "unknown-brand")
    if not target.food_type_slug:
        target.food_type_slug = slugify(target.food_type or "recipe")
