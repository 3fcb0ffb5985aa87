"""
Application configuration for quotegate.

This module provides a clean configuration interface using a frozen dataclass.
All magic numbers are imported from constants.py for easy modification.

Usage:
    from quotegate.config import config

    # Access configuration
    limit = config.requests_per_minute

    # Tighter throttle for a shared API key
    strict = config.replace(requests_per_minute=20)
"""

from dataclasses import dataclass, replace
from typing import Dict, Optional

from quotegate.constants import (
    # Provider
    FINNHUB_BASE_URL,
    API_CALLS_PER_MINUTE,
    API_TIMEOUT_SECONDS,
    # Retry
    RATE_LIMIT_RETRY_DELAY_SECONDS,
    MAX_RATE_LIMIT_RETRIES,
    # Cache
    PROFILE_CACHE_TTL_SECONDS,
    QUOTE_CACHE_TTL_SECONDS,
    NEWS_CACHE_TTL_SECONDS,
    SEARCH_CACHE_TTL_SECONDS,
    # Search & news
    MAX_SEARCH_RESULTS,
    MAX_NEWS_ITEMS,
    MAX_PARALLEL_WORKERS,
    # Risk
    VOLATILITY_WEIGHT,
    CONCENTRATION_WEIGHT,
    RISK_THRESHOLD_LOW,
    RISK_THRESHOLD_MEDIUM,
    # Sector data
    SECTOR_VOLATILITY_MULTIPLIERS,
    SECTOR_CATEGORY_ALIASES,
)


@dataclass(frozen=True)
class Config:
    """
    Immutable application configuration.

    All values are set from constants.py defaults.
    The frozen=True ensures configuration cannot be accidentally modified at runtime.
    """

    # =========================================================================
    # Upstream API
    # =========================================================================
    finnhub_base_url: str = FINNHUB_BASE_URL
    requests_per_minute: int = API_CALLS_PER_MINUTE
    request_timeout: Optional[float] = API_TIMEOUT_SECONDS

    # =========================================================================
    # 429 Handling
    # =========================================================================
    rate_limit_retry_delay: float = RATE_LIMIT_RETRY_DELAY_SECONDS
    max_rate_limit_retries: Optional[int] = MAX_RATE_LIMIT_RETRIES

    # =========================================================================
    # Cache TTLs (seconds)
    # =========================================================================
    profile_cache_ttl: float = PROFILE_CACHE_TTL_SECONDS
    quote_cache_ttl: float = QUOTE_CACHE_TTL_SECONDS
    news_cache_ttl: float = NEWS_CACHE_TTL_SECONDS
    search_cache_ttl: float = SEARCH_CACHE_TTL_SECONDS

    # =========================================================================
    # Search & News
    # =========================================================================
    max_search_results: int = MAX_SEARCH_RESULTS
    max_news_items: int = MAX_NEWS_ITEMS
    max_workers: int = MAX_PARALLEL_WORKERS

    # =========================================================================
    # Risk Score
    # =========================================================================
    volatility_weight: float = VOLATILITY_WEIGHT
    concentration_weight: float = CONCENTRATION_WEIGHT
    risk_threshold_low: int = RISK_THRESHOLD_LOW
    risk_threshold_medium: int = RISK_THRESHOLD_MEDIUM

    # =========================================================================
    # Sector Data (as properties to avoid mutable default)
    # =========================================================================
    @property
    def sector_volatility_multipliers(self) -> Dict[str, float]:
        """Volatility multiplier per sector category."""
        return SECTOR_VOLATILITY_MULTIPLIERS.copy()

    @property
    def sector_category_aliases(self) -> Dict[str, str]:
        """Provider industry name to sector category."""
        return SECTOR_CATEGORY_ALIASES.copy()

    def replace(self, **changes) -> "Config":
        """Return a copy with the given fields overridden."""
        return replace(self, **changes)


# Global configuration instance
config = Config()
