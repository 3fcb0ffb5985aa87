"""
Composition root.

Builds the caches, rate limiter, fetcher and Finnhub client as explicit
instances. Applications typically build one client at startup and share
it; tests build their own isolated ones.

Usage:
    from quotegate.bootstrap import build_finnhub_client

    client = build_finnhub_client()
    risk = client.get_portfolio_risk(["AAPL", "MSFT", "XOM"])
"""

from typing import Optional

import requests

from quotegate.config import Config, config as default_config
from quotegate.core.cache import CacheRegistry
from quotegate.core.fetcher import MarketDataFetcher
from quotegate.core.rate_limit import RateLimiter
from quotegate.env_loader import get_finnhub_api_key
from quotegate.providers.finnhub import FinnhubClient


def build_fetcher(
    cfg: Optional[Config] = None,
    session: Optional[requests.Session] = None,
) -> MarketDataFetcher:
    """Fresh caches and rate limiter wired into a fetcher."""
    cfg = cfg or default_config
    return MarketDataFetcher(
        caches=CacheRegistry.from_config(cfg),
        rate_limiter=RateLimiter(requests_per_minute=cfg.requests_per_minute),
        session=session,
        cfg=cfg,
    )


def build_finnhub_client(
    cfg: Optional[Config] = None,
    api_key: Optional[str] = None,
    session: Optional[requests.Session] = None,
) -> FinnhubClient:
    """
    Finnhub client with its own fetcher.

    Args:
        cfg: Configuration (default: global config)
        api_key: Finnhub token (default: FINNHUB_API_KEY from the environment)
        session: HTTP session to reuse
    """
    cfg = cfg or default_config
    if api_key is None:
        api_key = get_finnhub_api_key()
    return FinnhubClient(build_fetcher(cfg, session), api_key=api_key, cfg=cfg)
