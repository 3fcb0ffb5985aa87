"""
Upstream market data providers.

- FinnhubClient: quotes, profiles, search, news and risk enrichment
"""

from quotegate.providers.finnhub import FinnhubClient, StockDetails

__all__ = [
    "FinnhubClient",
    "StockDetails",
]
