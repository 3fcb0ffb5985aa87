"""
Display formatting helpers for quotes, market caps and news articles.
"""

from __future__ import annotations

import math
import time
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

COMPANY_SUMMARY_CHARS = 200
MARKET_SUMMARY_CHARS = 150


def format_price(price: float) -> str:
    """Format as US dollars, e.g. 1234.5 -> '$1,234.50'."""
    sign = "-" if price < 0 else ""
    return f"{sign}${abs(price):,.2f}"


def format_change_percent(change_percent: Optional[float]) -> str:
    """'+1.23%' / '-0.40%'; empty string for zero or missing."""
    if not change_percent:
        return ""
    sign = "+" if change_percent > 0 else ""
    return f"{sign}{change_percent:.2f}%"


def format_market_cap_value(market_cap_usd: Optional[float]) -> str:
    """
    Compact market cap, e.g. '$3.10T', '$900.00B', '$25.00M' or '$999,999.99'.

    Returns 'N/A' for missing, non-finite or non-positive values.
    """
    if market_cap_usd is None or not math.isfinite(market_cap_usd) or market_cap_usd <= 0:
        return "N/A"

    if market_cap_usd >= 1e12:
        return f"${market_cap_usd / 1e12:.2f}T"
    if market_cap_usd >= 1e9:
        return f"${market_cap_usd / 1e9:.2f}B"
    if market_cap_usd >= 1e6:
        return f"${market_cap_usd / 1e6:.2f}M"
    return f"${market_cap_usd:,.2f}"


def format_time_ago(timestamp: float, now: Optional[float] = None) -> str:
    """Human-readable age of a unix timestamp (seconds)."""
    now = time.time() if now is None else now
    diff_seconds = now - timestamp
    hours = int(diff_seconds // 3600)
    minutes = int(diff_seconds // 60)

    if hours > 24:
        days = hours // 24
        return f"{days} day{'s' if days > 1 else ''} ago"
    if hours >= 1:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{minutes} minute{'s' if minutes > 1 else ''} ago"


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


def get_today_string(today: Optional[date] = None) -> str:
    """Today's date as YYYY-MM-DD (UTC)."""
    return (today or _utc_today()).isoformat()


def get_past_date(days: int, today: Optional[date] = None) -> str:
    """The date `days` before today as YYYY-MM-DD (UTC)."""
    return ((today or _utc_today()) - timedelta(days=days)).isoformat()


def calculate_news_distribution(symbols_count: int) -> Tuple[int, int]:
    """
    Split a news feed across watchlist symbols.

    Returns:
        (items_per_symbol, target_news_count)
    """
    target_news_count = 6
    if symbols_count < 3:
        items_per_symbol = 3
    elif symbols_count == 3:
        items_per_symbol = 2
    else:
        items_per_symbol = 1
    return items_per_symbol, target_news_count


def validate_article(article: Mapping[str, Any]) -> bool:
    """An article needs a headline, summary, url and datetime."""
    return all(article.get(field) for field in ("headline", "summary", "url", "datetime"))


def format_article(
    article: Mapping[str, Any],
    is_company_news: bool,
    symbol: Optional[str] = None,
    index: int = 0,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Normalize a raw provider article for display. Call validate_article first."""
    limit = COMPANY_SUMMARY_CHARS if is_company_news else MARKET_SUMMARY_CHARS
    published = article["datetime"]
    if isinstance(published, (int, float)) and not isinstance(published, bool):
        time_ago = format_time_ago(published, now)
    else:
        time_ago = ""
    return {
        "id": int(article.get("id") or 0) + index,
        "headline": article["headline"].strip(),
        "summary": article["summary"].strip()[:limit] + "...",
        "source": article.get("source") or ("Company News" if is_company_news else "Market News"),
        "url": article["url"],
        "datetime": article["datetime"],
        "time_ago": time_ago,
        "image": article.get("image") or "",
        "category": "company" if is_company_news else (article.get("category") or "general"),
        "related": (symbol or "") if is_company_news else (article.get("related") or ""),
    }
