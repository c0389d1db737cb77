"""Integration tests for ingest and poll workflows against Lance."""

from __future__ import annotations

import json
from dataclasses import replace

from core.config import DocumentStoreConfig, TickerSyncConfig
from core.hashing import build_document_id
from core.types import QuoteResult
from fakes import FakeQuoteClient
from ingest.run_context import build_run_context
from ingest.sources import EmbeddedSource, FileSource
from runtime.service import TickerSyncService


def _config(tmp_path) -> TickerSyncConfig:
    return TickerSyncConfig(
        document_store=DocumentStoreConfig(uri=str(tmp_path / "company_overview.lance"))
    )


def test_embedded_ingest_creates_then_skips(tmp_path) -> None:
    """Second ingest of an unchanged batch should not touch the store."""
    config = _config(tmp_path)
    context = replace(
        build_run_context(config),
        source=EmbeddedSource(records=[{"Symbol": "ABC", "Name": "Acme"}]),
    )
    service = TickerSyncService(config, context=context)
    service.start(schedule=False)
    try:
        first = service.run_batch_now()
        second = service.run_batch_now()
    finally:
        service.stop(2.0)
    documents = context.document_store.get_documents(build_document_id("ABC"))

    assert first.outcome_counts == {"created": 1}
    assert second.status == "skipped_duplicate_batch" and second.outcome_counts == {}
    assert [dict(doc.properties) for doc in documents] == [{"symbol": "ABC", "name": "Acme"}]


def test_file_ingest_then_poll_updates_store_and_snapshot(tmp_path) -> None:
    """Poll results should update documents and merge into the source file."""
    snapshot_path = tmp_path / "company-overview.json"
    snapshot_path.write_text(
        json.dumps([{"Symbol": "IBM", "Name": "IBM"}, {"Symbol": "MSFT", "Name": "Microsoft"}]),
        encoding="utf-8",
    )
    renamed = {"Symbol": "IBM", "Name": "International Business Machines"}
    quotes = FakeQuoteClient({"IBM": QuoteResult("IBM", record=renamed)})
    config = _config(tmp_path)
    built = build_run_context(config)
    built.close()
    context = replace(
        built,
        source=FileSource(snapshot_path, writable=True),
        quote_client=quotes,
        poller_symbols=("IBM",),
    )
    service = TickerSyncService(config, context=context)
    service.start(schedule=False)
    try:
        batch = service.run_batch_now()
        poll = service.run_poll_now()
        rerun = service.run_batch_now()
    finally:
        service.stop(2.0)
    written = json.loads(snapshot_path.read_text(encoding="utf-8"))
    stored = context.document_store.get_documents(build_document_id("IBM"))

    assert batch.outcome_counts == {"created": 2}
    assert poll.outcome_counts == {"updated": 1} and poll.snapshot_written
    assert rerun.status == "skipped_unchanged_source"
    assert [record["Name"] for record in written] == [renamed["Name"], "Microsoft"]
    assert stored[0].properties["name"] == "International Business Machines"
