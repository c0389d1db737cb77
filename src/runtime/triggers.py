"""Interval triggers for ingest and poll producers."""

from __future__ import annotations

import threading
from typing import Callable

from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class IntervalTrigger:
    """Daemon thread that fires a callback once or on a fixed interval.

    Each firing runs to completion before the next delay starts, so a
    producer blocked on a busy serializer does not pile up extra firings.
    """

    def __init__(
        self,
        name: str,
        fire: Callable[[], object],
        interval_seconds: float,
        repeat: bool,
        initial_delay_seconds: float = 0.0,
    ) -> None:
        self.name = name
        self._fire = fire
        self._interval = interval_seconds
        self._repeat = repeat
        self._initial_delay = initial_delay_seconds
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None
        self.fire_count = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the trigger thread; repeated calls are ignored."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"tickersync-trigger-{self.name}", daemon=True
        )
        self._thread.start()
        _LOGGER.info(
            "trigger_started",
            trigger=self.name,
            interval_seconds=self._interval,
            repeat=self._repeat,
        )

    def stop(self, timeout: float | None = None) -> None:
        """Stop firing and wait for the thread to exit."""
        self._stopped.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        delay = self._initial_delay
        while not self._stopped.wait(delay):
            self.fire_count += 1
            try:
                self._fire()
            except Exception as error:
                _LOGGER.error(
                    "trigger_fire_failed",
                    trigger=self.name,
                    error_type=type(error).__name__,
                    error=str(error),
                )
            if not self._repeat:
                return
            delay = self._interval
