"""
Rate limiting utilities for API calls.

Provides a FIFO request throttle that keeps outbound calls under the
provider's requests-per-minute cap no matter how many threads submit work.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from concurrent.futures import Future
from functools import wraps
from typing import Any, Callable, Deque, Optional, Tuple, TypeVar

from quotegate.constants import API_CALLS_PER_MINUTE
from quotegate.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimiter:
    """
    Serializing rate limiter for API calls.

    Tasks run one at a time, strictly in submission order, on a single
    consumer thread. Consecutive dispatches are spaced at least
    ``60 / requests_per_minute`` seconds apart. The consumer thread is
    started on demand and exits once the queue drains.

    Queued tasks cannot be cancelled. A task must not submit to the same
    limiter and wait on the result: it would wait on itself.

    Example:
        limiter = RateLimiter(requests_per_minute=50)

        future = limiter.execute(lambda: session.get(url))
        response = future.result()

        @limiter
        def fetch_data(ticker):
            return api.get(ticker)
    """

    def __init__(
        self,
        requests_per_minute: int = API_CALLS_PER_MINUTE,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize rate limiter.

        Args:
            requests_per_minute: Maximum dispatches allowed per minute
            clock: Time source, injectable for tests
            sleep: Sleep function, injectable for tests
        """
        if requests_per_minute <= 0:
            raise ValueError(f"requests_per_minute must be positive, got {requests_per_minute}")

        self.requests_per_minute = requests_per_minute
        self.min_interval = 60.0 / requests_per_minute
        self.last_request_time = 0.0

        self._clock = clock
        self._sleep = sleep
        self._queue: Deque[Tuple[Callable[[], Any], Future]] = deque()
        self._lock = threading.Lock()
        self._processing = False
        self._worker: Optional[threading.Thread] = None

    def execute(self, task: Callable[[], T]) -> "Future[T]":
        """
        Queue a zero-argument callable.

        Returns:
            Future resolved with the task's result, or its exception
        """
        future: Future = Future()
        # Queued work is committed; Future.cancel() becomes a no-op
        future.set_running_or_notify_cancel()

        with self._lock:
            self._queue.append((task, future))
            if not self._processing:
                self._processing = True
                self._worker = threading.Thread(
                    target=self._process_queue,
                    name="quotegate-rate-limiter",
                    daemon=True,
                )
                self._worker.start()

        return future

    def run(self, task: Callable[[], T]) -> T:
        """Queue a task and block until it has run."""
        return self.execute(task).result()

    def __call__(self, func: Callable[..., T]) -> Callable[..., T]:
        """Decorator to rate-limit a function."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            return self.run(lambda: func(*args, **kwargs))
        return wrapper

    @property
    def pending(self) -> int:
        """Number of tasks waiting to be dispatched."""
        with self._lock:
            return len(self._queue)

    def _process_queue(self) -> None:
        try:
            while True:
                with self._lock:
                    if not self._queue:
                        self._processing = False
                        return
                    task, future = self._queue.popleft()

                self._wait_for_slot()
                self.last_request_time = self._clock()

                try:
                    result = task()
                except BaseException as e:
                    # Only this task's caller sees the failure, even for
                    # KeyboardInterrupt/SystemExit raised inside a callback
                    future.set_exception(e)
                else:
                    future.set_result(result)
        finally:
            with self._lock:
                if self._processing:
                    # Exited abnormally; let the next execute() start a worker
                    self._processing = False

    def _wait_for_slot(self) -> None:
        """Sleep out the remainder of the minimum interval."""
        elapsed = self._clock() - self.last_request_time
        if elapsed < self.min_interval:
            sleep_time = self.min_interval - elapsed
            logger.debug("Rate limiting: sleeping %.2fs", sleep_time)
            self._sleep(sleep_time)
