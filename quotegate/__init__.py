"""
quotegate - Rate-Limited, Cached Market Data Access

A client-side resilience layer for rate-limited market data APIs:
- FIFO request throttling under a requests-per-minute cap
- Per-category TTL caching with stale-on-error fallback
- Retry after upstream 429 responses
- Portfolio risk scoring (intraday volatility + sector concentration)
"""

__version__ = "1.0.0"

# Core utilities
from quotegate.config import Config, config
from quotegate.logging_config import setup_logging, get_logger
from quotegate.exceptions import (
    FetchError,
    MarketDataError,
    ResponseParseError,
    UpstreamRateLimitedError,
)

# Resilience layer
from quotegate.core import (
    CacheRegistry,
    MarketDataFetcher,
    RateLimiter,
    TTLCache,
)

# Risk
from quotegate.risk import (
    PriceSnapshot,
    RiskLevel,
    RiskResult,
    TrackedInstrument,
    calculate_portfolio_risk,
)

# Providers
from quotegate.providers import FinnhubClient, StockDetails
from quotegate.bootstrap import build_fetcher, build_finnhub_client

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "config",
    "setup_logging",
    "get_logger",
    # Errors
    "FetchError",
    "MarketDataError",
    "ResponseParseError",
    "UpstreamRateLimitedError",
    # Core
    "CacheRegistry",
    "MarketDataFetcher",
    "RateLimiter",
    "TTLCache",
    # Risk
    "PriceSnapshot",
    "RiskLevel",
    "RiskResult",
    "TrackedInstrument",
    "calculate_portfolio_risk",
    # Providers
    "FinnhubClient",
    "StockDetails",
    "build_fetcher",
    "build_finnhub_client",
]
