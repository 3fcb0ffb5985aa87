"""
Cached, rate-limited JSON fetching.

Every outbound GET goes through the shared RateLimiter; responses land in
the cache for their URL category (quote, profile, or everything else).
When a live call fails, a cached value is served even if it has expired,
so callers get imperfect data rather than an outage.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

import requests

from quotegate.config import Config, config as default_config
from quotegate.constants import (
    CACHE_KEY_PARAM,
    CREDENTIAL_PARAMS,
    HTTP_TOO_MANY_REQUESTS,
    PROFILE_PATH_MARKER,
    QUOTE_PATH_MARKER,
)
from quotegate.core.cache import CacheRegistry, TTLCache
from quotegate.core.rate_limit import RateLimiter
from quotegate.core.retry import retry_on_rate_limit
from quotegate.exceptions import (
    FetchError,
    MarketDataError,
    ResponseParseError,
    UpstreamRateLimitedError,
)
from quotegate.logging_config import get_logger

logger = get_logger(__name__)


def classify_url(url: str) -> str:
    """Cache category for a URL: 'quote', 'profile' or 'other'."""
    if QUOTE_PATH_MARKER in url:
        return "quote"
    if PROFILE_PATH_MARKER in url:
        return "profile"
    return "other"


def build_cache_key(url: str) -> str:
    """
    Derive a cache key from a URL.

    The key is the path plus the normalized ``symbol`` parameter when there
    is one, so other query parameters (dates, tokens) don't fragment the
    cache. Without a symbol, the remaining non-credential parameters are
    included in sorted order.
    """
    parts = urlsplit(url)
    params = parse_qsl(parts.query, keep_blank_values=True)

    for name, value in params:
        if name == CACHE_KEY_PARAM:
            return f"{parts.path}:{value.strip().upper()}"

    identifying = sorted((k, v) for k, v in params if k not in CREDENTIAL_PARAMS)
    if not identifying:
        return parts.path
    return f"{parts.path}?{urlencode(identifying)}"


def redact_url(url: str) -> str:
    """Mask credential query parameters for logs and error messages."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    params = [
        (k, "***" if k in CREDENTIAL_PARAMS else v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
    ]
    return parts._replace(query=urlencode(params, safe="*")).geturl()


def _merge_params(url: str, params: Mapping[str, Any]) -> str:
    """Fold requests-style ``params`` into the URL so routing sees them."""
    prepared = requests.PreparedRequest()
    prepared.prepare_url(url, params)
    return prepared.url


class MarketDataFetcher:
    """
    Fetch JSON through the cache and the rate limiter.

    Example:
        caches = CacheRegistry.from_config()
        fetcher = MarketDataFetcher(caches, RateLimiter(50))

        quote = fetcher.fetch_json(f"{base}/quote?symbol=AAPL&token={key}")
    """

    def __init__(
        self,
        caches: CacheRegistry,
        rate_limiter: RateLimiter,
        session: Optional[requests.Session] = None,
        retry_delay: Optional[float] = None,
        max_rate_limit_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        cfg: Optional[Config] = None,
    ):
        """
        Initialize fetcher.

        Args:
            caches: Per-category caches
            rate_limiter: Limiter shared by every caller of this provider
            session: HTTP session (a new requests.Session by default)
            retry_delay: Seconds to wait after a 429 (default from config)
            max_rate_limit_retries: Retry cap after 429; None retries
                indefinitely (default from config)
            timeout: Per-request timeout in seconds (default from config)
            sleep: Sleep function for the 429 delay, injectable for tests
            cfg: Configuration supplying the defaults above
        """
        cfg = cfg or default_config
        self.caches = caches
        self.rate_limiter = rate_limiter
        self.session = session if session is not None else requests.Session()
        self.retry_delay = cfg.rate_limit_retry_delay if retry_delay is None else retry_delay
        self.max_rate_limit_retries = (
            cfg.max_rate_limit_retries if max_rate_limit_retries is None else max_rate_limit_retries
        )
        self.timeout = cfg.request_timeout if timeout is None else timeout
        self._sleep = sleep

    def fetch_json(self, url: str, **options: Any) -> Any:
        """
        Return parsed JSON for a GET request.

        Args:
            url: Request URL including query string
            **options: Extra keyword arguments for ``Session.get``
                (params, headers, timeout, ...)

        Returns:
            Parsed JSON body, possibly served from cache

        Raises:
            FetchError: Non-success status and nothing cached
            ResponseParseError: Malformed body and nothing cached
            requests.RequestException: Network failure and nothing cached
        """
        params = options.pop("params", None)
        if params:
            url = _merge_params(url, params)

        category = classify_url(url)
        cache = self.caches.for_category(category)
        key = build_cache_key(url)

        try:
            return retry_on_rate_limit(
                lambda: self._fetch_once(url, options, cache, category, key),
                delay=self.retry_delay,
                max_retries=self.max_rate_limit_retries,
                sleep=self._sleep,
            )
        except (MarketDataError, requests.RequestException) as e:
            stale = cache.peek(key)
            if stale is None:
                logger.error("Error fetching %s: %s", redact_url(url), e)
                raise
            logger.warning(
                "Serving stale %s data for %s after error: %s",
                category,
                key,
                e,
            )
            return stale.data

    def _fetch_once(
        self,
        url: str,
        options: Dict[str, Any],
        cache: TTLCache,
        category: str,
        key: str,
    ) -> Any:
        entry = cache.peek(key)
        if entry is not None and cache.is_fresh(entry):
            logger.debug("Cache hit (%s): %s", category, key)
            return entry.data

        logger.debug("Cache miss (%s): %s", category, key)
        data = self.rate_limiter.run(lambda: self._request(url, options))
        cache.set(key, data)
        return data

    def _request(self, url: str, options: Dict[str, Any]) -> Any:
        """Perform one GET and decode it. Runs on the limiter thread."""
        headers = dict(options.get("headers") or {})
        # Freshness is governed by our cache, not the origin's
        headers["Cache-Control"] = "no-cache"
        kwargs = {**options, "headers": headers}
        kwargs.setdefault("timeout", self.timeout)

        response = self.session.get(url, **kwargs)
        status = response.status_code

        if status == HTTP_TOO_MANY_REQUESTS:
            raise UpstreamRateLimitedError(redact_url(url))
        if not 200 <= status < 300:
            raise FetchError(status, redact_url(url))

        try:
            return response.json()
        except ValueError as e:
            raise ResponseParseError(redact_url(url), str(e)) from e

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
