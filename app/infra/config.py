"""Application configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./knockoff_kitchen.db"
    db_auto_create: bool = True

    # Cache TTLs (minutes)
    cache_default_ttl_minutes: float = 30
    cache_ttl_stats_minutes: float = 1440
    cache_ttl_homepage_minutes: float = 1440
    cache_ttl_brands_minutes: float = 1440
    cache_ttl_categories_minutes: float = 1440
    cache_ttl_listing_minutes: float = 240
    cache_ttl_brand_page_minutes: float = 480
    cache_ttl_category_page_minutes: float = 480
    cache_ttl_recipe_minutes: float = 1440
    cache_ttl_search_minutes: float = 240

    # Query limits
    page_size: int = 24
    search_limit: int = 50
    related_limit: int = 5
    featured_limit: int = 6
    recent_limit: int = 8

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False  # one JSON object per line, for production log shipping

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
