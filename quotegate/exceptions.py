"""
Exception hierarchy for market data access.

Network-level failures are not wrapped: they surface as
``requests.RequestException`` from the HTTP layer.
"""

from __future__ import annotations

from typing import Optional


class MarketDataError(Exception):
    """Base class for errors raised while fetching market data."""


class FetchError(MarketDataError):
    """Upstream answered with a non-success HTTP status."""

    def __init__(self, status_code: int, url: str, message: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message or f"Fetch failed with status {status_code} for URL: {url}")


class UpstreamRateLimitedError(FetchError):
    """Upstream answered 429 despite local throttling."""

    def __init__(self, url: str):
        super().__init__(429, url, f"Upstream rate limit hit for URL: {url}")


class ResponseParseError(MarketDataError):
    """Response body was not valid JSON."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed JSON from {url}: {reason}" if reason else f"Malformed JSON from {url}")
