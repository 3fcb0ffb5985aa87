"""
Pytest configuration and fixtures for the quotegate tests.
"""

import sys
import threading
from pathlib import Path

import pytest

# Add project root to Python path so imports work
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from quotegate.config import Config
from quotegate.core.cache import CacheRegistry
from quotegate.core.fetcher import MarketDataFetcher
from quotegate.core.rate_limit import RateLimiter


class FakeClock:
    """Manually advanced clock; sleeping advances time instantly."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start
        self.sleeps = []
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            return self.now

    def sleep(self, seconds: float) -> None:
        with self._lock:
            self.sleeps.append(seconds)
            self.now += seconds

    def advance(self, seconds: float) -> None:
        with self._lock:
            self.now += seconds


class FakeResponse:
    def __init__(self, status_code=200, payload=None, body_error=None):
        self.status_code = status_code
        self._payload = payload
        self._body_error = body_error

    def json(self):
        if self._body_error is not None:
            raise self._body_error
        return self._payload


class FakeSession:
    """
    Stand-in for requests.Session.

    Responses are consumed in order; an Exception instance in the list is
    raised instead of returned.
    """

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.handler is not None:
            result = self.handler(url, **kwargs)
        else:
            result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def caches(clock):
    return CacheRegistry.from_config(Config(), clock=clock)


@pytest.fixture
def limiter(clock):
    return RateLimiter(requests_per_minute=50, clock=clock, sleep=clock.sleep)


@pytest.fixture
def make_fetcher(caches, limiter, clock):
    """Build a MarketDataFetcher around a FakeSession."""
    def factory(session, **kwargs):
        kwargs.setdefault("sleep", clock.sleep)
        return MarketDataFetcher(caches, limiter, session=session, **kwargs)
    return factory


@pytest.fixture(scope="session")
def test_tickers():
    """Return a small set of tickers for testing."""
    return ["AAPL", "MSFT", "XOM", "JPM"]
