"""Sliding-window request limiter keyed by client and route."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from datetime import timedelta


class TooManyRequests(Exception):
    """Raised when a key has used up its hits for the current window."""

    status = 429

    def __init__(self, retry_after: float) -> None:
        super().__init__("Too many requests")
        self.retry_after = retry_after


class RateLimiter:
    """Allow at most ``max_hits`` hits per key within ``window`` seconds."""

    def __init__(
        self,
        max_hits: int,
        window: float | timedelta,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(window, timedelta):
            window = window.total_seconds()
        self.max_hits = max_hits
        self.window = float(window)
        self._clock = clock
        self._hits: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> int:
        """Record a hit for ``key`` and return how many hits remain.

        Raises TooManyRequests when the limit is already reached.
        """
        now = self._clock()
        cutoff = now - self.window
        with self._lock:
            hits = [t for t in self._hits.get(key, []) if t > cutoff]
            if len(hits) >= self.max_hits:
                self._hits[key] = hits
                raise TooManyRequests(self.window)
            hits.append(now)
            self._hits[key] = hits
            return self.max_hits - len(hits)