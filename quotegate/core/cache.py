"""
In-memory TTL caching for API responses.

Each semantic category (profiles, quotes, news, search) owns its own
TTLCache so freshness windows stay independent. Expiry is checked lazily on
read; there is no background eviction and no capacity bound, so callers
must keep their key space bounded (ticker symbols are).
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from quotegate.config import Config, config as default_config
from quotegate.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the time it was stored."""

    data: Any
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_expired(self, ttl: float, now: float) -> bool:
        return self.age(now) > ttl


class TTLCache:
    """
    Thread-safe key/value store with a fixed time-to-live.

    Example:
        quotes = TTLCache(ttl_seconds=60, name="quotes")

        quotes.set("/quote:AAPL", {"c": 189.5})
        data = quotes.get("/quote:AAPL")   # None once older than 60s
    """

    def __init__(
        self,
        ttl_seconds: float,
        name: str = "",
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Maximum age at which an entry is still returned
            name: Label used in log messages
            clock: Time source, injectable for tests
        """
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {ttl_seconds}")
        self.ttl = float(ttl_seconds)
        self.name = name or "cache"
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        """Store value with the current timestamp, replacing any prior entry."""
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock())

    def get(self, key: str) -> Optional[Any]:
        """
        Retrieve a value if it is still fresh.

        Expired entries are evicted on the way out.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self.ttl, self._clock()):
                del self._entries[key]
                logger.debug("Cache expired (%s): %s", self.name, key)
                return None
            return entry.data

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry regardless of age, without evicting it."""
        with self._lock:
            return self._entries.get(key)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return not entry.is_expired(self.ttl, self._clock())

    def delete(self, key: str) -> None:
        """Remove an entry unconditionally."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug("Cleared %d entries from %s", count, self.name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and not entry.is_expired(self.ttl, self._clock())

    def __repr__(self) -> str:
        return f"TTLCache(name={self.name!r}, ttl={self.ttl}, size={len(self)})"


@dataclass
class CacheRegistry:
    """The per-category caches used by the fetcher and provider clients."""

    profiles: TTLCache
    quotes: TTLCache
    news: TTLCache
    search: TTLCache

    @classmethod
    def from_config(
        cls,
        cfg: Optional[Config] = None,
        clock: Callable[[], float] = time.time,
    ) -> "CacheRegistry":
        """Build fresh, independent caches using the configured TTLs."""
        cfg = cfg or default_config
        return cls(
            profiles=TTLCache(cfg.profile_cache_ttl, name="profiles", clock=clock),
            quotes=TTLCache(cfg.quote_cache_ttl, name="quotes", clock=clock),
            news=TTLCache(cfg.news_cache_ttl, name="news", clock=clock),
            search=TTLCache(cfg.search_cache_ttl, name="search", clock=clock),
        )

    def for_category(self, category: str) -> TTLCache:
        """Cache for a URL category; anything unrecognized goes to news."""
        if category == "quote":
            return self.quotes
        if category == "profile":
            return self.profiles
        if category == "search":
            return self.search
        return self.news

    def clear_all(self) -> None:
        for cache in (self.profiles, self.quotes, self.news, self.search):
            cache.clear()
