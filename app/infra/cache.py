"""In-process TTL cache fronting the recipe store's aggregate queries.

One instance per process, created by the application lifespan and handed
to consumers through ``get_cache``. Nothing is shared across workers and
nothing survives a restart.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from starlette.requests import Request

logger = logging.getLogger("knockoff-kitchen.cache")


class MemoryCache:
    """TTL-based in-memory cache backed by a dict.

    Each key maps to a ``(value, expires_at)`` record. Expired entries are
    dropped lazily by the read that finds them; there is no sweeper and no
    size bound.
    """

    def __init__(
        self,
        default_ttl_minutes: float = 30,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: dict[str, tuple[Any, float]] = {}
        self._default_ttl_minutes = default_ttl_minutes
        self._clock = clock

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at > self._clock():
            return value
        del self._store[key]
        return None

    def set(self, key: str, value: Any, ttl_minutes: float | None = None) -> None:
        ttl = ttl_minutes if ttl_minutes is not None else self._default_ttl_minutes
        self._store[key] = (value, self._clock() + ttl * 60)

    def clear(self) -> int:
        """Drop every entry regardless of remaining TTL. Returns how many were held."""
        count = len(self._store)
        self._store.clear()
        logger.info("Cache cleared (%d entries)", count)
        return count

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._store)


def get_cache(request: Request) -> MemoryCache:
    """FastAPI dependency returning the process cache from lifespan state."""
    return request.state.cache
