"""
In-memory memo for computed charts and analyses.

Bounded capacity with least-recently-used eviction; entries older than
the TTL are misses. The cache is an injectable collaborator: computation
functions never consult it on their own.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

from saju.settings import AnalysisSettings

logger = logging.getLogger(__name__)

_MISSING = object()


def lru_eviction(entries: OrderedDict) -> Hashable:
    """Pick the least recently used key (front of the access-ordered map)."""
    return next(iter(entries))


class TTLCache:
    """Access-ordered map with TTL expiry and a pluggable eviction policy."""

    def __init__(self, capacity: int = 1000, ttl_seconds: float = 3600.0,
                 clock: Callable[[], float] = time.monotonic,
                 eviction: Callable[[OrderedDict], Hashable] = lru_eviction):
        """
        Args:
            capacity: maximum number of entries
            ttl_seconds: age at which an entry stops being served
            clock: monotonic time source (injectable for tests)
            eviction: picks the key to drop when the cache is full
        """
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._eviction = eviction
        self._entries = OrderedDict()  # key -> (stored_at, value)
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings: AnalysisSettings, **kwargs) -> "TTLCache":
        return cls(capacity=settings.cache_capacity, ttl_seconds=settings.cache_ttl_seconds, **kwargs)

    def _expired(self, stored_at: float) -> bool:
        return self._clock() - stored_at >= self.ttl_seconds

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return default
            stored_at, value = entry
            if self._expired(stored_at):
                del self._entries[key]
                self._misses += 1
                return default
            # Recency only; the TTL still counts from insertion
            self._entries.move_to_end(key)
            self._hits += 1
            return value

    def set(self, key: Hashable, value: Any):
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while len(self._entries) >= self.capacity:
                victim = self._eviction(self._entries)
                del self._entries[victim]
                self._evictions += 1
            self._entries[key] = (self._clock(), value)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """Return the cached value, or compute, store and return it."""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            logger.debug("Cache hit: %s", key)
            return value
        logger.debug("Cache miss: %s", key)
        value = compute()
        self.set(key, value)
        return value

    def delete(self, key: Hashable) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def cleanup_expired(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            expired = [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._hits = self._misses = self._evictions = 0

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not self._expired(entry[0])

    def stats(self) -> dict:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": len(self._entries),
                "capacity": self.capacity,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate": self._hits / lookups if lookups else 0.0,
            }


def chart_cache_key(birth_date: str, birth_time: str, calendar_type: str, is_leap_month: bool,
                    gender: str, location: Optional[Any] = None, method: Optional[str] = None,
                    settings: Optional[AnalysisSettings] = None) -> tuple:
    """Key covering the full input tuple of an analysis."""
    return ("saju", str(birth_date), str(birth_time), str(calendar_type), bool(is_leap_month),
            str(gender), location, method, settings)
