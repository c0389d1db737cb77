"""Public SDK surface for TickerSync.

This module provides a stable import path for embedding the service.
It re-exports the configuration, runtime, and pipeline entry points.
"""

from __future__ import annotations

from core.config import TickerSyncConfig
from core.hashing import build_document_id, canonical_json, compute_digest
from core.types import QuoteResult, RecordFailure, RunSummary, UpsertOutcome
from ingest.pipeline import IngestPipelineRunner
from ingest.run_context import RunContext, build_run_context
from runtime.service import TickerSyncService
from store.document_store import LanceDocumentStore
from store.upsert import UpsertEngine
from transforms.record_normalizer import normalize_record

__all__ = [
    "IngestPipelineRunner",
    "LanceDocumentStore",
    "QuoteResult",
    "RecordFailure",
    "RunContext",
    "RunSummary",
    "TickerSyncConfig",
    "TickerSyncService",
    "UpsertEngine",
    "UpsertOutcome",
    "build_document_id",
    "build_run_context",
    "canonical_json",
    "compute_digest",
    "normalize_record",
]
