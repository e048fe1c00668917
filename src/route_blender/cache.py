"""Caching utilities for route-blender.

Derived routes are pure functions of their inputs, so callers that recompute
them on every request can memoise by input key.
"""

import hashlib
import time
from collections import OrderedDict
from threading import Lock
from typing import Any


class DictCache:
    """Thread-safe LRU cache with optional TTL.

    Used by the web layer for loaded segment files, track profiles and
    blended routes.
    """

    def __init__(self, max_size: int, ttl_seconds: float | None = None):
        self.max_size = max_size
        self.ttl = ttl_seconds
        self._cache: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._lock = Lock()
        self._stats = {"hits": 0, "misses": 0}

    def get(self, key: str) -> Any | None:
        """Get cached value if available and not expired."""
        with self._lock:
            if key in self._cache:
                value, timestamp = self._cache[key]
                if self.ttl is None or (time.time() - timestamp < self.ttl):
                    self._cache.move_to_end(key)
                    self._stats["hits"] += 1
                    return value
                # Expired, remove it
                del self._cache[key]
            self._stats["misses"] += 1
            return None

    def set(self, key: str, value: Any) -> None:
        """Store value in cache with LRU eviction."""
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (value, time.time())
            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    def clear(self) -> int:
        """Clear all cached entries. Returns number of entries cleared."""
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            self._stats = {"hits": 0, "misses": 0}
            return count

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            hit_rate = (self._stats["hits"] / total * 100) if total > 0 else 0
            return {
                "hit_rate": f"{hit_rate:.1f}%",
                "hits": self._stats["hits"],
                "max_size": self.max_size,
                "misses": self._stats["misses"],
                "size": len(self._cache),
            }


def make_blend_cache_key(segments_path: str, route: str, days: str = "") -> str:
    """Create a cache key for a blended route and its day split."""
    key_str = f"blend|{segments_path}|{route}|{days}"
    return hashlib.md5(key_str.encode()).hexdigest()


def make_file_cache_key(path: str, mtime: float) -> str:
    """Create a cache key for a file that is reloaded when it changes on disk."""
    return f"{path}|{mtime}"
