"""Serializing rate limiter for the research service."""

import threading
import time
from typing import Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class RateLimitedCaller:
    """Runs calls one at a time with a minimum gap between them.

    The gap is measured from the end of one call to the start of the next,
    so a slow call never shortens the pause. The first call runs
    immediately. A lock is held across the wait and the call, so threads
    sharing one caller are serialized too. Clock and sleep are injectable
    for tests.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_finished: Optional[float] = None
        self.call_count = 0

    def call(self, fn: Callable[[], T]) -> T:
        with self._lock:
            if self._last_finished is not None:
                remaining = self.min_interval - (self._clock() - self._last_finished)
                if remaining > 0:
                    logger.debug("rate_limit_wait", seconds=round(remaining, 3))
                    self._sleep(remaining)

            self.call_count += 1
            try:
                return fn()
            finally:
                self._last_finished = self._clock()

    def reset(self) -> None:
        with self._lock:
            self._last_finished = None
            self.call_count = 0
