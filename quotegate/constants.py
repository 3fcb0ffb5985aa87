"""
Centralized constants for quotegate.

All magic numbers and hardcoded values should be defined here.
This makes the codebase more maintainable and self-documenting.
"""

from typing import Final, Optional

# =============================================================================
# UPSTREAM PROVIDER
# =============================================================================
FINNHUB_BASE_URL: Final[str] = "https://finnhub.io/api/v1"
FINNHUB_API_KEY_ENV: Final[str] = "FINNHUB_API_KEY"
FINNHUB_API_KEY_FALLBACK_ENV: Final[str] = "NEXT_PUBLIC_FINNHUB_API_KEY"

# Free tier allows 60/min; keep a buffer
API_CALLS_PER_MINUTE: Final[int] = 50
API_TIMEOUT_SECONDS: Final[int] = 30

# =============================================================================
# RETRY CONFIGURATION
# =============================================================================
HTTP_TOO_MANY_REQUESTS: Final[int] = 429
RATE_LIMIT_RETRY_DELAY_SECONDS: Final[float] = 2.0
# None = keep retrying while the provider answers 429
MAX_RATE_LIMIT_RETRIES: Final[Optional[int]] = None

# =============================================================================
# CACHE CONFIGURATION (seconds)
# =============================================================================
PROFILE_CACHE_TTL_SECONDS: Final[int] = 3600
QUOTE_CACHE_TTL_SECONDS: Final[int] = 60
NEWS_CACHE_TTL_SECONDS: Final[int] = 600
SEARCH_CACHE_TTL_SECONDS: Final[int] = 300

# URL path fragments used to route responses to a cache
QUOTE_PATH_MARKER: Final[str] = "/quote?"
PROFILE_PATH_MARKER: Final[str] = "/stock/profile2?"
CACHE_KEY_PARAM: Final[str] = "symbol"
CREDENTIAL_PARAMS: Final[frozenset] = frozenset({"token"})

# =============================================================================
# SEARCH & NEWS
# =============================================================================
POPULAR_STOCK_SYMBOLS: Final[tuple] = (
    "AAPL", "MSFT", "GOOGL", "AMZN", "TSLA", "META", "NVDA", "NFLX", "ORCL", "CRM",
    "ADBE", "INTC", "AMD", "PYPL", "UBER", "ZM", "SPOT", "SQ", "SHOP", "ROKU",
)
POPULAR_PROFILE_COUNT: Final[int] = 10
MAX_SEARCH_RESULTS: Final[int] = 15
MAX_NEWS_ITEMS: Final[int] = 10
COMPANY_NEWS_LOOKBACK_DAYS: Final[int] = 7
MAX_PARALLEL_WORKERS: Final[int] = 10

# Intraday range fallback when the quote has no high/low
DEFAULT_INTRADAY_BAND: Final[float] = 0.02

# =============================================================================
# RISK SCORE
# =============================================================================
VOLATILITY_WEIGHT: Final[float] = 0.7
CONCENTRATION_WEIGHT: Final[float] = 0.3

RISK_THRESHOLD_LOW: Final[int] = 30
RISK_THRESHOLD_MEDIUM: Final[int] = 60

# Too few holdings to judge diversification
MIN_INSTRUMENTS_FOR_HHI: Final[int] = 3
SMALL_PORTFOLIO_CONCENTRATION: Final[float] = 0.8
# Enough holdings to assume diversification
MAX_INSTRUMENTS_FOR_HHI: Final[int] = 10
LARGE_PORTFOLIO_CONCENTRATION: Final[float] = 0.2
HHI_SCALE: Final[float] = 2.0

UNKNOWN_SECTOR: Final[str] = "Unknown"
DEFAULT_SECTOR_VOLATILITY: Final[float] = 1.0

# =============================================================================
# SECTOR DEFAULTS
# =============================================================================
SECTOR_VOLATILITY_MULTIPLIERS: Final[dict] = {
    "Technology": 1.3,
    "Healthcare": 1.1,
    "Energy": 1.5,
    "Finance": 1.2,
    "Consumer": 0.9,
}

# Provider industry names -> volatility category
SECTOR_CATEGORY_ALIASES: Final[dict] = {
    "Banking": "Finance",
    "Financial Services": "Finance",
    "Banks": "Finance",
    "Software": "Technology",
    "Semiconductors": "Technology",
    "Oil & Gas E&P": "Energy",
    "Oil & Gas Integrated": "Energy",
    "Pharmaceuticals": "Healthcare",
    "Biotechnology": "Healthcare",
    "Retail": "Consumer",
}
