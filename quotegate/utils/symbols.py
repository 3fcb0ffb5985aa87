"""Ticker symbol conversions."""

EXCHANGE_SUFFIXES = {
    ".NS": "NSE",
    ".BO": "BSE",
}


def map_symbol_to_tradingview(symbol: str) -> str:
    """
    Convert a Yahoo-style suffixed symbol to TradingView's EXCHANGE:TICKER.

    'RELIANCE.NS' -> 'NSE:RELIANCE'; symbols without a known suffix
    (e.g. NASDAQ listings) are returned unchanged.
    """
    for suffix, exchange in EXCHANGE_SUFFIXES.items():
        if symbol.endswith(suffix):
            return f"{exchange}:{symbol[: -len(suffix)]}"
    return symbol
