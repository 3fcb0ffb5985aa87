"""
Utility helpers.

- Formatting for prices, market caps and news (formatting)
- Symbol conversions (symbols)
"""

from quotegate.utils.formatting import (
    calculate_news_distribution,
    format_article,
    format_change_percent,
    format_market_cap_value,
    format_price,
    format_time_ago,
    get_past_date,
    get_today_string,
    validate_article,
)
from quotegate.utils.symbols import map_symbol_to_tradingview

__all__ = [
    "calculate_news_distribution",
    "format_article",
    "format_change_percent",
    "format_market_cap_value",
    "format_price",
    "format_time_ago",
    "get_past_date",
    "get_today_string",
    "validate_article",
    "map_symbol_to_tradingview",
]
