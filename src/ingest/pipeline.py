"""Ingest orchestration for batch and poll runs.

This module drives one unit of work end to end: freshness and batch
digest checks, per-record normalization and upsert, snapshot folding,
and write-back of the reconciled snapshot to the originating source.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from core.constants import NATURAL_KEY_FIELD, POLL_UNIT_NAME
from core.errors import DocumentStoreError, InvalidRecordError, TickerSyncError
from core.hashing import build_document_id, compute_digest
from core.logging_config import get_logger
from core.types import Record, RecordFailure, RunSummary, Snapshot
from ingest.run_context import RunContext
from ingest.snapshot_aggregator import (
    complete_snapshot,
    fold_record,
    natural_key_of,
    seed_snapshot,
)
from transforms.record_normalizer import normalize_record

_LOGGER = get_logger(__name__)

STATUS_COMPLETED = "completed"
STATUS_SKIPPED_UNCHANGED_SOURCE = "skipped_unchanged_source"
STATUS_SKIPPED_DUPLICATE_BATCH = "skipped_duplicate_batch"
_MISSING_KEY = "<missing>"


class _RunState:
    """Mutable bookkeeping for one run on the worker thread."""

    def __init__(self, snapshot: Snapshot) -> None:
        self.snapshot = snapshot
        self.counts: Counter[str] = Counter()
        self.failures: list[RecordFailure] = []
        self.retry_needed = False

    def add_failure(self, natural_key: str, digest: str | None, error: TickerSyncError) -> None:
        self.failures.append(
            RecordFailure(
                natural_key=natural_key,
                digest=digest,
                error_type=type(error).__name__,
                message=str(error),
            )
        )
        if isinstance(error, DocumentStoreError):
            self.retry_needed = True
        _LOGGER.error(
            "record_failed",
            symbol=natural_key,
            digest=digest,
            error_type=type(error).__name__,
            error=str(error),
        )


class IngestPipelineRunner:
    """Runs batch ingest and poll cycles against one run context."""

    def __init__(self, context: RunContext) -> None:
        self._context = context

    def run_batch(self) -> RunSummary:
        """Ingest the configured source once.

        Returns:
            Summary of the run, including skip status.

        Raises:
            TransientSourceError: If the source cannot be read or written.
            InvalidSourceError: If the source content is malformed.
        """
        source = self._context.source
        stores = self._context.idempotency
        token = source.freshness_token()
        if token is not None and stores.freshness_tokens.seen(source.name, token):
            _LOGGER.debug("source_unchanged", source=source.name, token=token)
            return RunSummary(unit=source.name, status=STATUS_SKIPPED_UNCHANGED_SOURCE)
        records = source.read_records()
        batch_digest = compute_digest(records)
        stores.snapshot_digests.mark_seen(source.name, batch_digest)
        if stores.batch_digests.seen(source.name, batch_digest):
            _LOGGER.info("batch_already_processed", source=source.name, digest=batch_digest)
            if token is not None:
                stores.freshness_tokens.mark_seen(source.name, token)
            return RunSummary(
                unit=source.name,
                status=STATUS_SKIPPED_DUPLICATE_BATCH,
                batch_digest=batch_digest,
            )
        _LOGGER.info(
            "batch_processing",
            source=source.name,
            digest=batch_digest,
            record_count=len(records),
        )
        run = _RunState(seed_snapshot(records))
        for record in records:
            key = natural_key_of(record)
            if key is None:
                run.add_failure(
                    _MISSING_KEY,
                    None,
                    InvalidRecordError(f"Record has no usable '{NATURAL_KEY_FIELD}' field."),
                )
                continue
            self._process_record(run, key, record)
        summary = self._finish(run, source.name, batch_digest)
        # A write-back already marked its own echo as the latest batch and token.
        if not run.retry_needed and not summary.snapshot_written:
            stores.batch_digests.mark_seen(source.name, batch_digest)
            if token is not None:
                stores.freshness_tokens.mark_seen(source.name, token)
        return summary

    def run_poll(self, symbols: Sequence[str] | None = None) -> RunSummary:
        """Refresh configured symbols from the quote API once.

        Args:
            symbols: Optional override of the configured symbol list.

        Returns:
            Summary of the poll cycle.

        Raises:
            TransientSourceError: If the snapshot source cannot be read or written.
        """
        source = self._context.source
        poll_symbols = tuple(symbols) if symbols is not None else self._context.poller_symbols
        seed_records: list[Record] = []
        if source.writable:
            seed_records = source.read_records()
            self._context.idempotency.snapshot_digests.mark_seen(
                source.name, compute_digest(seed_records)
            )
        run = _RunState(seed_snapshot(seed_records))
        for symbol in poll_symbols:
            _LOGGER.info("quote_fetching", symbol=symbol)
            result = self._context.quote_client.fetch_overview(symbol)
            if result.record is None:
                _LOGGER.info(
                    "quote_unavailable",
                    symbol=symbol,
                    message=result.error or "Empty response returned from quote API.",
                )
                run.counts["unavailable"] += 1
                continue
            self._process_record(run, symbol, result.record)
        return self._finish(run, POLL_UNIT_NAME, None)

    def _process_record(self, run: _RunState, key: str, record: Record) -> None:
        run.snapshot = fold_record(run.snapshot, key, record)
        properties = normalize_record(record)
        document_id = build_document_id(key)
        digest = compute_digest({"id": document_id, "properties": properties})
        record_digests = self._context.idempotency.record_digests
        if record_digests.seen(document_id, digest):
            _LOGGER.debug("record_unchanged", symbol=key, digest=digest)
            run.counts["deduplicated"] += 1
            return
        _LOGGER.info("document_upserting", symbol=key, document_id=document_id, digest=digest)
        try:
            outcome = self._context.upsert_engine.upsert(document_id, properties)
        except TickerSyncError as error:
            run.add_failure(key, digest, error)
            return
        record_digests.mark_seen(document_id, digest)
        run.counts[outcome.value] += 1

    def _finish(self, run: _RunState, unit: str, batch_digest: str | None) -> RunSummary:
        snapshot_written = False
        if self._context.source.writable:
            snapshot_written = self._write_back(
                complete_snapshot(run.snapshot), suppress_reingest=not run.retry_needed
            )
        summary = RunSummary(
            unit=unit,
            status=STATUS_COMPLETED,
            batch_digest=batch_digest,
            outcome_counts=dict(run.counts),
            failures=tuple(run.failures),
            snapshot_written=snapshot_written,
        )
        _log_run_completion(summary)
        return summary

    def _write_back(self, records: list[Record], suppress_reingest: bool) -> bool:
        source = self._context.source
        stores = self._context.idempotency
        digest = compute_digest(records)
        if stores.snapshot_digests.seen(source.name, digest):
            _LOGGER.debug("snapshot_unchanged", source=source.name, digest=digest)
            return False
        _LOGGER.info(
            "snapshot_writing", source=source.name, digest=digest, record_count=len(records)
        )
        token = source.write_records(records)
        stores.snapshot_digests.mark_seen(source.name, digest)
        if not suppress_reingest:
            return True
        # A watched source re-reading its own write-back must not re-ingest.
        stores.batch_digests.mark_seen(source.name, digest)
        if token is not None:
            stores.freshness_tokens.mark_seen(source.name, token)
        return True


def _log_run_completion(summary: RunSummary) -> None:
    """Log run completion with aggregated per-record failures."""
    fields = {
        "unit": summary.unit,
        "digest": summary.batch_digest,
        "outcome_counts": dict(summary.outcome_counts),
        "snapshot_written": summary.snapshot_written,
    }
    if summary.failures:
        _LOGGER.warning(
            "run_completed_with_failures",
            failure_count=len(summary.failures),
            failed_symbols=[failure.natural_key for failure in summary.failures],
            **fields,
        )
        return
    _LOGGER.info("run_completed", **fields)
