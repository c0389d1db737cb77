"""TickerSync exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class TickerSyncError(Exception):
    """Base exception for all TickerSync failures."""


class TickerSyncConfigError(TickerSyncError):
    """Raised for invalid runtime configuration."""


class TickerSyncDependencyError(TickerSyncError):
    """Raised when a runtime dependency is missing."""


class TransientSourceError(TickerSyncError):
    """Raised when reading or writing a snapshot source fails on I/O.

    The surrounding trigger retries on its next scheduled interval.
    """


class InvalidSourceError(TickerSyncError):
    """Raised when source content is not a JSON array of objects."""


class InvalidRecordError(TickerSyncError):
    """Raised for a record that cannot be keyed or normalized."""


class ExternalApiError(TickerSyncError):
    """Raised for quote API error payloads and transport failures."""


class DocumentStoreError(TickerSyncError):
    """Raised when the document store rejects a query."""


class StoreWriteError(DocumentStoreError):
    """Raised when a document create or update call fails."""


class StoreInvariantViolation(TickerSyncError):
    """Raised when one document identifier resolves to several documents.

    Not a ``DocumentStoreError``: it signals corrupted store contents or an
    identifier collision, so it does not hold back batch digest marking.
    """
