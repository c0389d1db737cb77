"""Snapshot aggregation for source write-back.

This module folds per-record results of a run into a natural-key keyed
snapshot seeded from the persisted source content, so a write-back never
drops records that are absent from the current batch.
"""

from __future__ import annotations

from typing import Iterable

from core.constants import NATURAL_KEY_FIELD
from core.logging_config import get_logger
from core.types import Record, Snapshot

_LOGGER = get_logger(__name__)


def natural_key_of(record: Record) -> str | None:
    """Return the natural key of a record when it has a usable one."""
    value = record.get(NATURAL_KEY_FIELD)
    if isinstance(value, str) and value:
        return value
    return None


def seed_snapshot(records: Iterable[Record]) -> Snapshot:
    """Build the starting snapshot from persisted source records.

    Args:
        records: Records currently stored at the source.

    Returns:
        Snapshot keyed by natural key; later duplicates win.
    """
    entries: dict[str, Record] = {}
    for record in records:
        key = natural_key_of(record)
        if key is None:
            _LOGGER.warning("snapshot_seed_record_skipped", reason="missing_natural_key")
            continue
        entries[key] = record
    return Snapshot(entries=entries)


def fold_record(snapshot: Snapshot, key: str, record: Record) -> Snapshot:
    """Fold one record into a snapshot, last write wins.

    Args:
        snapshot: Current snapshot value.
        key: Natural key of the record.
        record: Record to store under ``key``.

    Returns:
        New snapshot; the input snapshot is unchanged.
    """
    entries = dict(snapshot.entries)
    entries[key] = record
    return Snapshot(entries=entries)


def complete_snapshot(snapshot: Snapshot) -> list[Record]:
    """Signal end of batch and emit records ordered by natural key."""
    return [snapshot.entries[key] for key in sorted(snapshot.entries)]
