"""Long-running ingest and poll service.

This module wires triggers to the single-worker serializer. At startup
it provisions the document store, starts the configured batch ingest
trigger, and starts the poller once the first batch unit finishes (or
immediately when batch ingest is disabled).
"""

from __future__ import annotations

import threading
from typing import Sequence

from core.config import TickerSyncConfig
from core.constants import (
    DEFAULT_STARTUP_DELAY_SECONDS,
    EMBEDDED_SOURCE_NAME,
    FILE_SOURCE_NAME,
    POLL_UNIT_NAME,
)
from core.errors import TickerSyncError
from core.logging_config import get_logger
from core.types import RunSummary
from ingest.pipeline import IngestPipelineRunner
from ingest.run_context import RunContext, build_run_context
from runtime.serializer import SingleWorkerSerializer, WorkUnit
from runtime.triggers import IntervalTrigger
from store.document_store import LanceDocumentStore

_LOGGER = get_logger(__name__)


class TickerSyncService:
    """Owns the serializer, triggers, and pipeline runner."""

    def __init__(
        self,
        config: TickerSyncConfig,
        context: RunContext | None = None,
        serializer: SingleWorkerSerializer | None = None,
        startup_delay_seconds: float = DEFAULT_STARTUP_DELAY_SECONDS,
    ) -> None:
        self._config = config
        self._context = context or build_run_context(config)
        self._runner = IngestPipelineRunner(self._context)
        self._serializer = serializer or SingleWorkerSerializer()
        self._startup_delay = startup_delay_seconds
        self._lock = threading.Lock()
        self._triggers: list[IntervalTrigger] = []
        self._scheduling = False
        self._poller_started = False
        self._pending_poll: WorkUnit | None = None
        self._stopped = threading.Event()

    @property
    def triggers(self) -> tuple[IntervalTrigger, ...]:
        with self._lock:
            return tuple(self._triggers)

    def start(self, schedule: bool = True) -> None:
        """Provision the store, start the worker, and start triggers.

        Args:
            schedule: Start ingest and poll triggers; ``False`` only
                starts the worker for on-demand runs.
        """
        self.initialize_schema()
        self._serializer.start()
        if not schedule:
            return
        with self._lock:
            self._scheduling = True
        if self._config.batch_ingest.enabled:
            self._start_trigger(self._build_ingest_trigger())
            return
        self._start_poller()

    def stop(self, timeout: float | None = None) -> None:
        """Purge queued work, stop triggers, and release clients."""
        if self._stopped.is_set():
            return
        self._stopped.set()
        # Closing first makes a trigger blocked in submit give up its unit.
        self._serializer.stop(timeout)
        for trigger in self.triggers:
            trigger.stop(timeout)
        self._context.close()
        _LOGGER.info("service_stopped")

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ``stop`` was called; return whether it was."""
        return self._stopped.wait(timeout)

    def initialize_schema(self) -> bool:
        """Create the document store schema when configured to."""
        store_config = self._config.document_store
        document_store = self._context.document_store
        if not store_config.initialize_schema or not isinstance(
            document_store, LanceDocumentStore
        ):
            _LOGGER.debug("document_store_schema_skipped")
            return False
        return document_store.initialize_schema(store_config.drop_if_exists)

    def submit_batch(self) -> WorkUnit | None:
        """Queue one batch ingest unit, blocking while the worker is busy."""
        unit = WorkUnit(name=self._context.source.name, action=self._run_batch_unit)
        return unit if self._serializer.submit(unit) else None

    def submit_poll(self, symbols: Sequence[str] | None = None) -> WorkUnit | None:
        """Queue one poll cycle unless a previous one is still pending."""
        with self._lock:
            pending = self._pending_poll
            if pending is not None and not pending.done.is_set():
                _LOGGER.info("poll_tick_discarded", reason="previous_poll_pending")
                return None
            unit = WorkUnit(name=POLL_UNIT_NAME, action=lambda: self._runner.run_poll(symbols))
            self._pending_poll = unit
        return unit if self._serializer.submit(unit) else None

    def run_batch_now(self) -> RunSummary:
        """Run one batch ingest through the serializer and wait for it."""
        return _await_unit(self.submit_batch())

    def run_poll_now(self, symbols: Sequence[str] | None = None) -> RunSummary:
        """Run one poll cycle through the serializer and wait for it."""
        return _await_unit(self.submit_poll(symbols))

    def _run_batch_unit(self) -> RunSummary:
        try:
            return self._runner.run_batch()
        finally:
            self._start_poller()

    def _build_ingest_trigger(self) -> IntervalTrigger:
        ingest_type = self._config.batch_ingest.ingest_type
        if ingest_type == EMBEDDED_SOURCE_NAME:
            repeat, interval = False, 0.0
        elif ingest_type == FILE_SOURCE_NAME:
            repeat, interval = self._config.file.watch, self._config.file.watch_period_seconds
        else:
            repeat, interval = self._config.s3.watch, self._config.s3.watch_period_seconds
        return IntervalTrigger(
            name=f"{ingest_type}_ingest",
            fire=self.submit_batch,
            interval_seconds=interval,
            repeat=repeat,
            initial_delay_seconds=self._startup_delay,
        )

    def _start_poller(self) -> None:
        if not self._config.poller.enabled:
            return
        with self._lock:
            if not self._scheduling or self._poller_started or self._stopped.is_set():
                return
            self._poller_started = True
        self._start_trigger(
            IntervalTrigger(
                name=POLL_UNIT_NAME,
                fire=self.submit_poll,
                interval_seconds=self._config.poller.period_seconds,
                repeat=True,
                initial_delay_seconds=self._startup_delay,
            )
        )

    def _start_trigger(self, trigger: IntervalTrigger) -> None:
        with self._lock:
            if self._stopped.is_set():
                return
            self._triggers.append(trigger)
        trigger.start()


def _await_unit(unit: WorkUnit | None) -> RunSummary:
    """Wait for a submitted unit and return its summary or raise its error."""
    if unit is None:
        raise TickerSyncError(
            "Work was not accepted: the service is stopped or a poll is already pending."
        )
    unit.done.wait()
    if unit.cancelled:
        raise TickerSyncError(f"Work unit '{unit.name}' was cancelled during shutdown.")
    if unit.error is not None:
        raise unit.error
    if not isinstance(unit.result, RunSummary):
        raise TickerSyncError(f"Work unit '{unit.name}' produced no run summary.")
    return unit.result
