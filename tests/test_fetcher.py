"""Unit tests for cached, rate-limited JSON fetching."""

import pytest
import requests

from quotegate.core.fetcher import build_cache_key, classify_url, redact_url
from quotegate.exceptions import FetchError, ResponseParseError, UpstreamRateLimitedError

from conftest import FakeResponse, FakeSession

BASE = "https://finnhub.test/api/v1"
QUOTE_URL = f"{BASE}/quote?symbol=AAPL&token=secret"
PROFILE_URL = f"{BASE}/stock/profile2?symbol=AAPL&token=secret"
NEWS_URL = f"{BASE}/news?category=general&token=secret"


class TestUrlRouting:

    @pytest.mark.parametrize("url,expected", [
        (QUOTE_URL, "quote"),
        (PROFILE_URL, "profile"),
        (NEWS_URL, "other"),
        (f"{BASE}/stock/metric?symbol=AAPL&metric=all", "other"),
        (f"{BASE}/search?q=apple", "other"),
    ])
    def test_classify_url(self, url, expected):
        assert classify_url(url) == expected

    def test_cache_key_uses_normalized_symbol(self):
        assert build_cache_key(QUOTE_URL) == "/api/v1/quote:AAPL"
        assert build_cache_key(f"{BASE}/quote?symbol=%20aapl%20&token=other") == "/api/v1/quote:AAPL"

    def test_cache_key_ignores_irrelevant_params(self):
        a = build_cache_key(f"{BASE}/company-news?symbol=MSFT&from=2026-10-01&to=2026-10-08&token=x")
        b = build_cache_key(f"{BASE}/company-news?symbol=MSFT&from=2026-10-05&to=2026-10-12&token=y")
        assert a == b == "/api/v1/company-news:MSFT"

    def test_cache_key_without_symbol(self):
        assert build_cache_key(NEWS_URL) == "/api/v1/news?category=general"
        assert build_cache_key(f"{BASE}/search?token=t&q=apple") == "/api/v1/search?q=apple"
        assert build_cache_key(f"{BASE}/news?token=t") == "/api/v1/news"

    def test_redact_url(self):
        redacted = redact_url(QUOTE_URL)
        assert "secret" not in redacted
        assert "token=***" in redacted
        assert redact_url(f"{BASE}/news") == f"{BASE}/news"


class TestFetchJsonCaching:

    def test_cached_value_skips_network(self, make_fetcher, caches):
        caches.quotes.set("/api/v1/quote:AAPL", {"c": 190.0})
        session = FakeSession()
        fetcher = make_fetcher(session)

        assert fetcher.fetch_json(QUOTE_URL) == {"c": 190.0}
        assert session.calls == []

    def test_miss_fetches_and_caches(self, make_fetcher, caches):
        session = FakeSession([FakeResponse(200, {"c": 189.5})])
        fetcher = make_fetcher(session)

        assert fetcher.fetch_json(QUOTE_URL) == {"c": 189.5}
        assert fetcher.fetch_json(f"{BASE}/quote?symbol=aapl&token=other") == {"c": 189.5}
        assert len(session.calls) == 1
        assert caches.quotes.get("/api/v1/quote:AAPL") == {"c": 189.5}

    @pytest.mark.parametrize("url,attr", [
        (QUOTE_URL, "quotes"),
        (PROFILE_URL, "profiles"),
        (NEWS_URL, "news"),
    ])
    def test_routes_to_category_cache(self, make_fetcher, caches, url, attr):
        fetcher = make_fetcher(FakeSession([FakeResponse(200, {"ok": True})]))
        fetcher.fetch_json(url)

        assert len(getattr(caches, attr)) == 1
        others = {"quotes", "profiles", "news", "search"} - {attr}
        assert all(len(getattr(caches, name)) == 0 for name in others)

    def test_expired_entry_is_refetched(self, make_fetcher, caches, clock):
        session = FakeSession([FakeResponse(200, {"c": 1}), FakeResponse(200, {"c": 2})])
        fetcher = make_fetcher(session)

        assert fetcher.fetch_json(QUOTE_URL) == {"c": 1}
        clock.advance(61)
        assert fetcher.fetch_json(QUOTE_URL) == {"c": 2}
        assert len(session.calls) == 2

    def test_params_are_folded_into_url(self, make_fetcher, caches):
        session = FakeSession([FakeResponse(200, {"c": 5})])
        fetcher = make_fetcher(session)

        fetcher.fetch_json(f"{BASE}/quote", params={"symbol": "msft", "token": "secret"})

        url, kwargs = session.calls[0]
        assert url == f"{BASE}/quote?symbol=msft&token=secret"
        assert "params" not in kwargs
        assert caches.quotes.get("/api/v1/quote:MSFT") == {"c": 5}


class TestFetchJsonRequest:

    def test_no_cache_header_and_caller_options(self, make_fetcher):
        session = FakeSession([FakeResponse(200, {})])
        fetcher = make_fetcher(session, timeout=12)

        fetcher.fetch_json(NEWS_URL, headers={"X-Trace": "1", "Cache-Control": "max-age=60"})

        _, kwargs = session.calls[0]
        assert kwargs["headers"] == {"X-Trace": "1", "Cache-Control": "no-cache"}
        assert kwargs["timeout"] == 12

    def test_caller_timeout_wins(self, make_fetcher):
        session = FakeSession([FakeResponse(200, {})])
        make_fetcher(session).fetch_json(NEWS_URL, timeout=3)

        assert session.calls[0][1]["timeout"] == 3


class TestFetchJsonRateLimited:

    def test_429_then_success(self, make_fetcher, clock):
        session = FakeSession([FakeResponse(429), FakeResponse(200, {"c": 42})])
        fetcher = make_fetcher(session)
        start = clock()

        assert fetcher.fetch_json(QUOTE_URL) == {"c": 42}
        assert len(session.calls) == 2
        assert 2.0 in clock.sleeps
        assert clock() - start >= 2.0

    def test_retry_cap(self, make_fetcher):
        session = FakeSession([FakeResponse(429)] * 3)
        fetcher = make_fetcher(session, max_rate_limit_retries=2)

        with pytest.raises(UpstreamRateLimitedError):
            fetcher.fetch_json(QUOTE_URL)
        assert len(session.calls) == 3

    def test_retry_rechecks_cache(self, make_fetcher, caches):
        def handler(url, **kwargs):
            # Another caller filled the cache while we were backing off
            caches.quotes.set("/api/v1/quote:AAPL", {"c": 7})
            return FakeResponse(429)

        session = FakeSession(handler=handler)
        assert make_fetcher(session).fetch_json(QUOTE_URL) == {"c": 7}
        assert len(session.calls) == 1


class TestFetchJsonFailures:

    def test_http_error_without_cache(self, make_fetcher):
        fetcher = make_fetcher(FakeSession([FakeResponse(503)]))

        with pytest.raises(FetchError) as excinfo:
            fetcher.fetch_json(QUOTE_URL)
        assert excinfo.value.status_code == 503
        assert "secret" not in str(excinfo.value)
        assert "quote" in excinfo.value.url

    def test_parse_error_without_cache(self, make_fetcher):
        response = FakeResponse(200, body_error=ValueError("Expecting value"))
        fetcher = make_fetcher(FakeSession([response]))

        with pytest.raises(ResponseParseError):
            fetcher.fetch_json(NEWS_URL)

    def test_network_error_without_cache(self, make_fetcher):
        fetcher = make_fetcher(FakeSession([requests.ConnectionError("refused")]))

        with pytest.raises(requests.ConnectionError):
            fetcher.fetch_json(QUOTE_URL)

    def test_network_error_serves_stale_entry(self, make_fetcher, caches, clock):
        caches.quotes.set("/api/v1/quote:AAPL", {"c": 150.0})
        clock.advance(3600)
        session = FakeSession([requests.ConnectionError("refused")])

        assert make_fetcher(session).fetch_json(QUOTE_URL) == {"c": 150.0}
        assert len(session.calls) == 1

    def test_stale_entry_survives_repeated_failures(self, make_fetcher, caches, clock):
        caches.profiles.set("/api/v1/stock/profile2:AAPL", {"name": "Apple"})
        clock.advance(7200)
        fetcher = make_fetcher(FakeSession([FakeResponse(500), FakeResponse(502)]))

        assert fetcher.fetch_json(PROFILE_URL) == {"name": "Apple"}
        assert fetcher.fetch_json(PROFILE_URL) == {"name": "Apple"}

    def test_parse_error_serves_stale_entry(self, make_fetcher, caches, clock):
        caches.news.set("/api/v1/news?category=general", [{"headline": "old"}])
        clock.advance(601)
        response = FakeResponse(200, body_error=ValueError("bad json"))

        assert make_fetcher(FakeSession([response])).fetch_json(NEWS_URL) == [{"headline": "old"}]

    def test_exhausted_429_serves_stale_entry(self, make_fetcher, caches, clock):
        caches.quotes.set("/api/v1/quote:AAPL", {"c": 99.0})
        clock.advance(120)
        fetcher = make_fetcher(FakeSession([FakeResponse(429)] * 2), max_rate_limit_retries=1)

        assert fetcher.fetch_json(QUOTE_URL) == {"c": 99.0}

    def test_close_closes_session(self, make_fetcher):
        session = FakeSession()
        make_fetcher(session).close()
        assert session.closed
