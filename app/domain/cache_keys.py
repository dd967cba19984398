"""Cache key derivation for every cached recipe query.

Keys are ``<namespace>:<part>:<part>...``. Each part is percent-encoded
(no safe characters), so user input can never contain a raw ``:`` and
forge a neighbouring key. A missing filter is written as ``*``, which
encoded input cannot produce either (``*`` encodes to ``%2A``).
"""

from __future__ import annotations

from urllib.parse import quote

ANY = "*"

SITE_STATS = "site_stats"
HOMEPAGE_DATA = "homepage_data"
BRANDS_LIST = "brands_list"
CATEGORIES_LIST = "categories_list"


def _part(value: str | int | None) -> str:
    if value is None or value == "":
        return ANY
    return quote(str(value), safe="")


def _key(namespace: str, *parts: str | int | None) -> str:
    return ":".join([namespace, *(_part(p) for p in parts)])


def recipe_listing_key(brand: str | None, category: str | None, page: int) -> str:
    return _key("recipes", brand, category, page)


def brand_page_key(brand_slug: str, page: int) -> str:
    return _key("brand", brand_slug, page)


def category_page_key(category_slug: str, page: int) -> str:
    return _key("category", category_slug, page)


def recipe_key(brand_slug: str, slug: str) -> str:
    return _key("recipe", brand_slug, slug)


def search_key(query: str, limit: int) -> str:
    """Key on the trimmed query text and the result limit."""
    return _key("search", query.strip(), limit)
