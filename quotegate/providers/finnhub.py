"""
Finnhub API Client.

Thin, typed access to the Finnhub endpoints the application uses:
- Quotes, company profiles and basic financials
- Symbol search (with popular-symbol fallback)
- Company and general market news, and a balanced watchlist feed
- Enrichment of watchlist symbols for the risk calculator

Every request goes through MarketDataFetcher, so calls are rate-limited,
cached per category and fall back to stale data when Finnhub is down.

API Key: Get free key at https://finnhub.io/register
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from quotegate.config import Config, config as default_config
from quotegate.constants import (
    COMPANY_NEWS_LOOKBACK_DAYS,
    DEFAULT_INTRADAY_BAND,
    POPULAR_PROFILE_COUNT,
    POPULAR_STOCK_SYMBOLS,
    UNKNOWN_SECTOR,
)
from quotegate.core.fetcher import MarketDataFetcher
from quotegate.exceptions import MarketDataError
from quotegate.logging_config import get_logger
from quotegate.risk.calculator import (
    PriceSnapshot,
    RiskResult,
    TrackedInstrument,
    calculate_portfolio_risk,
)
from quotegate.utils.formatting import (
    calculate_news_distribution,
    format_article,
    format_change_percent,
    format_market_cap_value,
    format_price,
    get_past_date,
    get_today_string,
    validate_article,
)
from quotegate.utils.symbols import map_symbol_to_tradingview

logger = get_logger(__name__)

# Errors after which a single symbol is skipped rather than failing the batch
FETCH_ERRORS = (MarketDataError, requests.RequestException)


@dataclass
class StockDetails:
    """Quote, profile and valuation summary for one symbol."""

    symbol: str
    company: str
    current_price: float
    change_percent: float
    price_formatted: str
    change_formatted: str
    pe_ratio: Optional[float] = None
    pe_formatted: str = "—"
    market_cap: Optional[float] = None  # USD
    market_cap_formatted: str = "N/A"
    sector: str = UNKNOWN_SECTOR
    day_high: Optional[float] = None
    day_low: Optional[float] = None

    @property
    def tradingview_symbol(self) -> str:
        """Chart symbol in TradingView's EXCHANGE:TICKER form."""
        return map_symbol_to_tradingview(self.symbol)

    def to_price_snapshot(self) -> PriceSnapshot:
        """Intraday snapshot; a ±2% band stands in for a missing high/low."""
        close = self.current_price
        return PriceSnapshot(
            close=close,
            high=self.day_high or close * (1 + DEFAULT_INTRADAY_BAND),
            low=self.day_low or close * (1 - DEFAULT_INTRADAY_BAND),
        )

    def to_tracked_instrument(self) -> TrackedInstrument:
        return TrackedInstrument(
            symbol=self.symbol,
            sector=self.sector,
            current_data=self.to_price_snapshot(),
            company=self.company,
        )


class FinnhubClient:
    """
    Client for the Finnhub REST API.

    Usage:
        client = build_finnhub_client()
        details = client.get_stock_details("AAPL")
        print(details.price_formatted)
    """

    def __init__(
        self,
        fetcher: MarketDataFetcher,
        api_key: Optional[str],
        cfg: Optional[Config] = None,
    ):
        """
        Initialize client.

        Args:
            fetcher: Cached, rate-limited fetcher
            api_key: Finnhub API token
            cfg: Configuration (base URL, result limits, worker count)
        """
        self.fetcher = fetcher
        self.api_key = api_key
        self.config = cfg or default_config
        self.base_url = self.config.finnhub_base_url.rstrip("/")

        if not api_key:
            logger.error("Missing FINNHUB_API_KEY environment variable")

    # =========================================================================
    # Raw endpoints
    # =========================================================================

    def _get(self, path: str, **params: Any) -> Any:
        params["token"] = self.api_key
        return self.fetcher.fetch_json(f"{self.base_url}{path}", params=params)

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        """Latest quote: c (current), h, l, o, pc, d, dp."""
        return self._get("/quote", symbol=_clean_symbol(symbol))

    def get_profile(self, symbol: str) -> Dict[str, Any]:
        """Company profile: name, exchange, finnhubIndustry, marketCapitalization (millions)."""
        return self._get("/stock/profile2", symbol=_clean_symbol(symbol))

    def get_basic_financials(self, symbol: str) -> Dict[str, Any]:
        return self._get("/stock/metric", symbol=_clean_symbol(symbol), metric="all")

    # =========================================================================
    # Stock details
    # =========================================================================

    def get_stock_details(self, symbol: str) -> StockDetails:
        """
        Fetch quote, profile and financials concurrently.

        Financials are optional; quote and profile are required.

        Raises:
            MarketDataError: If the quote or profile is missing or unusable
        """
        clean = _clean_symbol(symbol)

        with ThreadPoolExecutor(max_workers=3) as executor:
            quote_future = executor.submit(self.get_quote, clean)
            profile_future = executor.submit(self.get_profile, clean)
            metrics_future = executor.submit(self.get_basic_financials, clean)

            try:
                quote = quote_future.result() or {}
                profile = profile_future.result() or {}
            except FETCH_ERRORS as e:
                logger.error("Error fetching details for %s: %s", clean, e)
                raise MarketDataError(f"Failed to fetch stock details for {clean}") from e

            try:
                metrics = metrics_future.result() or {}
            except FETCH_ERRORS as e:
                logger.warning("No financials for %s: %s", clean, e)
                metrics = {}

        if not quote.get("c") or not profile.get("name"):
            raise MarketDataError(f"Invalid stock data received from API for {clean}")

        change_percent = quote.get("dp") or 0.0
        pe_ratio = (metrics.get("metric") or {}).get("peNormalizedAnnual")
        market_cap_millions = profile.get("marketCapitalization")
        market_cap = market_cap_millions * 1e6 if market_cap_millions else None

        return StockDetails(
            symbol=clean,
            company=profile["name"],
            current_price=quote["c"],
            change_percent=change_percent,
            price_formatted=format_price(quote["c"]),
            change_formatted=format_change_percent(change_percent),
            pe_ratio=pe_ratio,
            pe_formatted=f"{pe_ratio:.1f}" if pe_ratio else "—",
            market_cap=market_cap,
            market_cap_formatted=format_market_cap_value(market_cap),
            sector=profile.get("finnhubIndustry") or UNKNOWN_SECTOR,
            day_high=quote.get("h") or None,
            day_low=quote.get("l") or None,
        )

    # =========================================================================
    # Search
    # =========================================================================

    def search_stocks(
        self,
        query: Optional[str] = None,
        watchlist_symbols: Iterable[str] = (),
    ) -> List[Dict[str, Any]]:
        """
        Search symbols, flagging the ones already on the watchlist.

        A blank query lists popular symbols instead. Errors are logged and
        an empty list returned.
        """
        if not self.api_key:
            logger.error("Error in stock search: FINNHUB API key is not configured")
            return []

        trimmed = (query or "").strip()
        cache_key = f"search:{trimmed.lower()}"
        watchlist = {s.upper() for s in watchlist_symbols}

        results = self.fetcher.caches.search.get(cache_key)
        if results is None:
            try:
                results = self._search_query(trimmed) if trimmed else self._popular_profiles()
            except FETCH_ERRORS as e:
                logger.error("Error in stock search: %s", e)
                return []
            results = results[: self.config.max_search_results]
            self.fetcher.caches.search.set(cache_key, results)

        return [{**item, "is_in_watchlist": item["symbol"] in watchlist} for item in results]

    def _search_query(self, query: str) -> List[Dict[str, Any]]:
        data = self._get("/search", q=query) or {}
        raw = data.get("result")
        if not isinstance(raw, list):
            return []

        results = []
        for row in raw:
            symbol = (row.get("symbol") or "").upper()
            if not symbol:
                continue
            results.append({
                "symbol": symbol,
                "name": row.get("description") or symbol,
                "exchange": "US",
                "type": row.get("type") or "Stock",
            })
        return results

    def _popular_profiles(self) -> List[Dict[str, Any]]:
        symbols = POPULAR_STOCK_SYMBOLS[:POPULAR_PROFILE_COUNT]

        def fetch(symbol: str) -> Optional[Dict[str, Any]]:
            try:
                profile = self.get_profile(symbol) or {}
            except FETCH_ERRORS as e:
                logger.warning("Error fetching profile2 for %s: %s", symbol, e)
                return None
            name = profile.get("name") or profile.get("ticker")
            if not name:
                return None
            return {
                "symbol": symbol,
                "name": name,
                "exchange": profile.get("exchange") or "US",
                "type": "Common Stock",
            }

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            profiles = list(executor.map(fetch, symbols))

        return [p for p in profiles if p is not None]

    # =========================================================================
    # News
    # =========================================================================

    def get_news(self, symbol: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Company news for the past week, or general market news.

        Returns formatted articles; errors are logged and an empty list returned.
        """
        try:
            if symbol:
                clean = _clean_symbol(symbol)
                raw = self._get(
                    "/company-news",
                    symbol=clean,
                    **{
                        "from": get_past_date(COMPANY_NEWS_LOOKBACK_DAYS),
                        "to": get_today_string(),
                    },
                )
            else:
                clean = None
                raw = self._get("/news", category="general")
        except FETCH_ERRORS as e:
            logger.error("Error fetching news: %s", e)
            return []

        if not isinstance(raw, list):
            return []

        articles = [a for a in raw if isinstance(a, dict) and validate_article(a)]
        return [
            format_article(article, is_company_news=bool(symbol), symbol=clean, index=i)
            for i, article in enumerate(articles[: self.config.max_news_items])
        ]

    def get_watchlist_news(self, symbols: Sequence[str]) -> List[Dict[str, Any]]:
        """
        A short feed balanced across watchlist symbols.

        Each symbol first contributes its share (see
        calculate_news_distribution); remaining slots are filled round-robin
        from the symbols' later articles. With no symbols, or no company
        news at all, general market news is returned instead.
        """
        clean = list(dict.fromkeys(_clean_symbol(s) for s in symbols if s and s.strip()))
        items_per_symbol, target = calculate_news_distribution(len(clean))

        if not clean:
            return self.get_news()[:target]

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            by_symbol = list(executor.map(self.get_news, clean))

        feed = [article for articles in by_symbol for article in articles[:items_per_symbol]]

        depth = max(len(articles) for articles in by_symbol)
        for i in range(items_per_symbol, depth):
            for articles in by_symbol:
                if len(feed) >= target:
                    break
                if i < len(articles):
                    feed.append(articles[i])

        if not feed:
            logger.info("No watchlist news for %s, falling back to general news", clean)
            return self.get_news()[:target]

        return feed[:target]

    # =========================================================================
    # Risk enrichment
    # =========================================================================

    def build_tracked_instrument(self, symbol: str) -> TrackedInstrument:
        """Sector and intraday prices for one symbol; no price data on failure."""
        try:
            return self.get_stock_details(symbol).to_tracked_instrument()
        except FETCH_ERRORS as e:
            logger.warning("Failed to fetch %s for risk scoring: %s", symbol, e)
            return TrackedInstrument(symbol=_clean_symbol(symbol), sector=UNKNOWN_SECTOR)

    def build_tracked_instruments(self, symbols: Sequence[str]) -> List[TrackedInstrument]:
        if not symbols:
            return []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            return list(executor.map(self.build_tracked_instrument, symbols))

    def get_portfolio_risk(self, symbols: Sequence[str]) -> RiskResult:
        """Enrich a watchlist and score it."""
        return calculate_portfolio_risk(self.build_tracked_instruments(symbols), self.config)


def _clean_symbol(symbol: str) -> str:
    return symbol.strip().upper()
