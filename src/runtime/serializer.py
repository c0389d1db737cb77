"""Single-worker serialization of ingest and poll units.

This module admits units of work through a bounded hand-off queue and
executes them on one worker thread, so at most one ingest or poll run
is active at any time. Producers block while the queue is full.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass, field
from typing import Callable

from core.constants import SERIALIZER_CAPACITY, SERIALIZER_POLL_INTERVAL_SECONDS
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


@dataclass
class WorkUnit:
    """One submitted unit of work.

    Attributes:
        name: Producer name such as ``file`` or ``poll``.
        action: Callable executed on the worker thread.
        done: Set once the unit ran, failed, or was purged.
        cancelled: Whether the unit was purged before running.
        error: Exception raised by ``action``, if any.
    """

    name: str
    action: Callable[[], object]
    done: threading.Event = field(default_factory=threading.Event)
    cancelled: bool = False
    error: BaseException | None = None
    result: object = None


class SingleWorkerSerializer:
    """Bounded blocking queue drained by exactly one worker thread."""

    def __init__(
        self,
        capacity: int = SERIALIZER_CAPACITY,
        poll_interval_seconds: float = SERIALIZER_POLL_INTERVAL_SECONDS,
    ) -> None:
        self._queue: queue.Queue[WorkUnit] = queue.Queue(maxsize=capacity)
        self._poll_interval = poll_interval_seconds
        self._closed = threading.Event()
        self._worker: threading.Thread | None = None

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> None:
        """Start the worker thread."""
        if self._worker is not None:
            return
        self._worker = threading.Thread(
            target=self._run_worker, name="tickersync-worker", daemon=True
        )
        self._worker.start()

    def submit(self, unit: WorkUnit) -> bool:
        """Hand a unit to the worker, blocking while the queue is full.

        Args:
            unit: Unit of work to execute.

        Returns:
            ``True`` once queued, ``False`` if the serializer is closed.
        """
        while not self._closed.is_set():
            try:
                self._queue.put(unit, timeout=self._poll_interval)
            except queue.Full:
                continue
            if self._closed.is_set():
                self._purge()
                break
            _LOGGER.debug("work_unit_submitted", unit=unit.name)
            return True
        _LOGGER.info("work_unit_refused", unit=unit.name, reason="serializer_closed")
        return False

    def stop(self, timeout: float | None = None) -> None:
        """Refuse new work, purge queued units, and join the worker.

        The in-flight unit, if any, is allowed to finish.

        Args:
            timeout: Optional maximum seconds to wait for the worker.
        """
        self._closed.set()
        purged = self._purge()
        if purged:
            _LOGGER.info("work_units_purged", count=purged)
        if self._worker is not None:
            self._worker.join(timeout)

    def _purge(self) -> int:
        purged = 0
        while True:
            try:
                unit = self._queue.get_nowait()
            except queue.Empty:
                return purged
            unit.cancelled = True
            unit.done.set()
            purged += 1

    def _run_worker(self) -> None:
        while not self._closed.is_set():
            try:
                unit = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if self._closed.is_set():
                unit.cancelled = True
                unit.done.set()
                break
            self._execute(unit)
        self._purge()

    def _execute(self, unit: WorkUnit) -> None:
        _LOGGER.debug("work_unit_started", unit=unit.name)
        try:
            unit.result = unit.action()
        except Exception as error:
            unit.error = error
            _LOGGER.error(
                "work_unit_failed",
                unit=unit.name,
                error_type=type(error).__name__,
                error=str(error),
            )
        finally:
            unit.done.set()
        _LOGGER.debug("work_unit_finished", unit=unit.name)
