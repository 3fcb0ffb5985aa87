"""
Core utilities for quotegate.

This module provides the resilience layer in front of the market data API:
- Caching (TTLCache, CacheRegistry)
- Rate limiting (RateLimiter)
- Retry on upstream 429 (retry_on_rate_limit)
- Cached, rate-limited JSON fetching (MarketDataFetcher)
"""

from quotegate.core.cache import CacheEntry, CacheRegistry, TTLCache
from quotegate.core.rate_limit import RateLimiter
from quotegate.core.retry import retry_on_rate_limit
from quotegate.core.fetcher import MarketDataFetcher, build_cache_key, classify_url, redact_url

__all__ = [
    # Cache
    "CacheEntry",
    "CacheRegistry",
    "TTLCache",
    # Rate limiting
    "RateLimiter",
    # Retry
    "retry_on_rate_limit",
    # Fetching
    "MarketDataFetcher",
    "build_cache_key",
    "classify_url",
    "redact_url",
]
