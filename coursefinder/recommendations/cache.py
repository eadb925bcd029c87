from __future__ import annotations

import hashlib
import json
import threading
import time
from typing import Any, Callable, Mapping, Protocol

from .config import DEFAULT_RECOMMENDATION_CONFIG
from .models import Coordinate, Filters


class ResultCache(Protocol):
    """Key/value store for full ranked result sets (JSON-compatible payloads)."""

    def get(self, key: str) -> dict[str, Any] | None:
        ...

    def set(self, key: str, payload: dict[str, Any]) -> None:
        ...

    def stats(self) -> dict[str, Any]:
        ...

    def clear(self) -> None:
        ...


def make_cache_key(
    user_id: str | None,
    location: Coordinate,
    filters: Filters,
    profile: Mapping[str, float],
    precision: int = DEFAULT_RECOMMENDATION_CONFIG.coordinate_precision,
) -> str:
    """Stable key over (user, rounded coordinate, filters, profile)."""
    key_parts = {
        "user": user_id or "anonymous",
        "lat": round(location.lat, precision),
        "lon": round(location.lon, precision),
        "filters": filters.canonical(),
        "profile": {k: float(v) for k, v in profile.items()},
    }
    normalized = json.dumps(key_parts, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


class InMemoryResultCache:
    """Process-local TTL cache. Expired entries are dropped when read."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_RECOMMENDATION_CONFIG.cache_ttl_seconds,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._clock() - entry["created_at"] < self.ttl_seconds:
                self._hits += 1
                return entry["value"]
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def set(self, key: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self._entries[key] = {"value": payload, "created_at": self._clock()}

    def stats(self) -> dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
                "ttl_seconds": self.ttl_seconds,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0


_default_cache = InMemoryResultCache()


def get_default_cache() -> InMemoryResultCache:
    return _default_cache


def get_cache_stats() -> dict:
    return _default_cache.stats()


def clear_cache() -> None:
    _default_cache.clear()
