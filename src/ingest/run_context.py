"""Explicit construction of pipeline collaborators.

This module builds the run context that the pipeline driver consumes:
the batch source, upsert engine, quote client, both throttles, and the
idempotency stores shared across runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from core.config import TickerSyncConfig
from core.constants import EMBEDDED_SOURCE_NAME, FILE_SOURCE_NAME
from ingest.idempotency_store import IdempotencyStore
from ingest.quote_client import QuoteApiClient
from ingest.sources import EmbeddedSource, FileSource, S3Source, SnapshotSource, create_s3_client
from runtime.throttle import Throttle
from store.document_store import DocumentStoreClient, LanceDocumentStore
from store.upsert import UpsertEngine


@dataclass(frozen=True)
class IdempotencyStores:
    """Named idempotency stores sharing one keyed seen/mark contract.

    Source-level stores are keyed by source name; record digests are
    keyed by document identifier. Each key keeps its latest digest only.

    Attributes:
        freshness_tokens: Source change signals (file stat, object ETag).
        batch_digests: Digest of the latest batch processed per source.
        snapshot_digests: Digest of snapshot content present at each source.
        record_digests: Latest upserted change digest per document.
    """

    freshness_tokens: IdempotencyStore = field(
        default_factory=lambda: IdempotencyStore("freshness_tokens")
    )
    batch_digests: IdempotencyStore = field(
        default_factory=lambda: IdempotencyStore("batch_digests")
    )
    snapshot_digests: IdempotencyStore = field(
        default_factory=lambda: IdempotencyStore("snapshot_digests")
    )
    record_digests: IdempotencyStore = field(
        default_factory=lambda: IdempotencyStore("record_digests")
    )


@dataclass
class RunContext:
    """Collaborators passed explicitly to the pipeline driver."""

    source: SnapshotSource
    document_store: DocumentStoreClient
    upsert_engine: UpsertEngine
    quote_client: QuoteApiClient
    fetch_throttle: Throttle
    write_throttle: Throttle
    poller_symbols: tuple[str, ...] = ()
    idempotency: IdempotencyStores = field(default_factory=IdempotencyStores)

    def close(self) -> None:
        self.quote_client.close()


def build_run_context(config: TickerSyncConfig, s3_client: Any | None = None) -> RunContext:
    """Build a run context from configuration.

    Args:
        config: Runtime configuration.
        s3_client: Optional prebuilt boto3 client for the S3 source.

    Returns:
        Fully wired run context.

    Raises:
        TickerSyncConfigError: If source settings are incomplete.
    """
    fetch_throttle = Throttle(
        "quote_api",
        config.quote_api.throttle_requests,
        config.quote_api.throttle_period_seconds,
    )
    write_throttle = Throttle(
        "document_store",
        config.document_store.throttle_requests,
        config.document_store.throttle_period_seconds,
    )
    document_store = LanceDocumentStore(config.document_store.uri)
    return RunContext(
        source=build_source(config, s3_client),
        document_store=document_store,
        upsert_engine=UpsertEngine(document_store, write_throttle),
        quote_client=QuoteApiClient(config.quote_api, fetch_throttle),
        fetch_throttle=fetch_throttle,
        write_throttle=write_throttle,
        poller_symbols=config.poller.symbols,
    )


def build_source(config: TickerSyncConfig, s3_client: Any | None = None) -> SnapshotSource:
    """Build the snapshot source selected by ``batch_ingest.type``."""
    ingest_type = config.batch_ingest.ingest_type
    if ingest_type == EMBEDDED_SOURCE_NAME:
        return EmbeddedSource()
    if ingest_type == FILE_SOURCE_NAME:
        return FileSource(config.file.path, writable=config.file.update)
    location = config.s3.location()
    client = s3_client if s3_client is not None else create_s3_client(config.s3)
    return S3Source(location, client, writable=config.s3.update)
