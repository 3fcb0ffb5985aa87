"""
Retry utilities for upstream rate limiting.

Handles the case where the provider answers 429 even though local
throttling is in place (e.g. other processes sharing the same API key).
"""

from __future__ import annotations

import time
from typing import Callable, Optional, TypeVar

from quotegate.constants import MAX_RATE_LIMIT_RETRIES, RATE_LIMIT_RETRY_DELAY_SECONDS
from quotegate.exceptions import UpstreamRateLimitedError
from quotegate.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def retry_on_rate_limit(
    func: Callable[[], T],
    delay: float = RATE_LIMIT_RETRY_DELAY_SECONDS,
    max_retries: Optional[int] = MAX_RATE_LIMIT_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call a function, waiting a fixed delay and calling again on 429.

    Args:
        func: Function to call (should take no arguments - use lambda for params)
        delay: Fixed wait in seconds before each retry
        max_retries: Retries allowed after the first attempt. None keeps
            retrying for as long as the upstream answers 429, so callers
            that need termination must impose their own timeout.
        sleep: Sleep function, injectable for tests

    Returns:
        Function result

    Raises:
        UpstreamRateLimitedError: If max_retries is exhausted
        Exception: Anything else raised by func, unchanged

    Example:
        data = retry_on_rate_limit(lambda: fetch_once(url), delay=2.0)
    """
    retries = 0

    while True:
        try:
            return func()
        except UpstreamRateLimitedError as e:
            if max_retries is not None and retries >= max_retries:
                logger.warning(
                    "Giving up after %d rate-limit retries: %s",
                    retries,
                    e.url,
                )
                raise

            retries += 1
            logger.warning(
                "Rate limit hit (retry %d), waiting %.1fs: %s",
                retries,
                delay,
                e.url,
            )
            sleep(delay)
