"""Blocking token-bucket throttle.

This module gates calls to the quote API and the document store.
Callers over the configured rate wait instead of failing.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from core.errors import TickerSyncConfigError


class Throttle:
    """Token bucket allowing ``max_requests`` per ``period_seconds``.

    The bucket starts full, so a burst of ``max_requests`` calls passes
    immediately and later calls are spaced at the refill rate.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        period_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_requests <= 0 or period_seconds <= 0:
            raise TickerSyncConfigError(
                f"Invalid throttle '{name}': max_requests and period_seconds must be positive."
            )
        self.name = name
        self._capacity = float(max_requests)
        self._refill_rate = max_requests / period_seconds
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = self._capacity
        self._last_refill = clock()

    def acquire(self) -> float:
        """Take one token, blocking until one is available.

        Returns:
            Seconds spent waiting.
        """
        with self._lock:
            self._refill()
            waited = 0.0
            if self._tokens < 1.0:
                waited = (1.0 - self._tokens) / self._refill_rate
                self._sleep(waited)
                self._refill()
            self._tokens = max(self._tokens - 1.0, 0.0)
            return waited

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._last_refill, 0.0)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._refill_rate)
        self._last_refill = now
