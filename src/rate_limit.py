from __future__ import annotations

import threading
import time
from typing import Callable

from errors import RateLimitExceeded
from models import RateWindowState


DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS = 60

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait before making more requests."


class FixedWindowRateLimiter:
    """Counts operations in fixed windows that reset once the window has elapsed.

    A burst straddling a window boundary can admit up to twice the ceiling in a
    short span. That is the documented behaviour of a fixed window, not a sliding one.
    """

    def __init__(
        self,
        *,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = int(max_requests)
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._count = 0
        self._window_start = clock()

    def check_and_consume(self) -> None:
        with self._lock:
            now = self._clock()
            if now - self._window_start > self.window_seconds:
                self._count = 0
                self._window_start = now
            if self._count >= self.max_requests:
                raise RateLimitExceeded(RATE_LIMIT_MESSAGE)
            self._count += 1

    def snapshot(self) -> RateWindowState:
        with self._lock:
            return RateWindowState(count=self._count, window_start=self._window_start)
