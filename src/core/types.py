"""Shared typed models.

This module defines immutable data models used by ingest, store,
and runtime layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

Record = Mapping[str, Any]


class UpsertOutcome(str, Enum):
    """Result of one upsert decision against the document store."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class StoredDocument:
    """Document as returned by a document store query.

    Attributes:
        document_id: Deterministic document identifier.
        properties: Stored property mapping.
    """

    document_id: str
    properties: Mapping[str, Any]


@dataclass(frozen=True)
class Snapshot:
    """Natural-key keyed view of all known records for one run.

    Attributes:
        entries: Mapping from natural key to latest record.
    """

    entries: Mapping[str, Record] = field(default_factory=dict)


@dataclass(frozen=True)
class QuoteResult:
    """Typed quote API result for one symbol.

    Exactly one of ``record`` and ``error`` is set when data or an
    error was returned; both are ``None`` when the API had no data.
    """

    symbol: str
    record: Record | None = None
    error: str | None = None

    @property
    def has_data(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class RecordFailure:
    """One isolated per-record failure inside a run.

    Attributes:
        natural_key: Record natural key, or ``"<missing>"``.
        digest: Record change digest when it was computed.
        error_type: Exception class name.
        message: Exception message.
    """

    natural_key: str
    digest: str | None
    error_type: str
    message: str


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one ingest or poll unit of work.

    Attributes:
        unit: Source name or ``poll``.
        status: ``completed``, ``skipped_unchanged_source``,
            or ``skipped_duplicate_batch``.
        batch_digest: Digest of the input batch when read.
        outcome_counts: Count per upsert outcome plus ``deduplicated``
            and ``unavailable``.
        failures: Isolated per-record failures.
        snapshot_written: Whether a snapshot was written back.
    """

    unit: str
    status: str
    batch_digest: str | None = None
    outcome_counts: Mapping[str, int] = field(default_factory=dict)
    failures: tuple[RecordFailure, ...] = ()
    snapshot_written: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "unit": self.unit,
            "status": self.status,
            "batch_digest": self.batch_digest,
            "outcome_counts": dict(self.outcome_counts),
            "failures": [
                {
                    "natural_key": failure.natural_key,
                    "digest": failure.digest,
                    "error_type": failure.error_type,
                    "message": failure.message,
                }
                for failure in self.failures
            ],
            "snapshot_written": self.snapshot_written,
        }
