"""Unit tests for the upsert decision engine."""

from __future__ import annotations

import pytest

from core.errors import DocumentStoreError, StoreInvariantViolation
from core.types import UpsertOutcome
from fakes import CountingThrottle, FakeDocumentStore
from store.upsert import UpsertEngine


def _engine(store: FakeDocumentStore, throttle: CountingThrottle | None = None) -> UpsertEngine:
    return UpsertEngine(store, throttle or CountingThrottle())  # type: ignore[arg-type]


def test_upsert_creates_missing_document() -> None:
    """Missing documents should be created with one write."""
    store = FakeDocumentStore()

    outcome = _engine(store).upsert("doc-1", {"symbol": "IBM"})

    assert outcome is UpsertOutcome.CREATED
    assert store.calls == [("get", "doc-1"), ("create", "doc-1")]


def test_upsert_leaves_equal_document_unchanged() -> None:
    """Equal properties should issue no write."""
    store = FakeDocumentStore()
    store.add_document("doc-1", {"symbol": "IBM", "name": "IBM"})

    outcome = _engine(store).upsert("doc-1", {"name": "IBM", "symbol": "IBM"})

    assert outcome is UpsertOutcome.UNCHANGED and store.calls == [("get", "doc-1")]


def test_upsert_updates_changed_document() -> None:
    """Changed properties should replace the stored document."""
    store = FakeDocumentStore()
    store.add_document("doc-1", {"symbol": "IBM", "name": "old"})

    outcome = _engine(store).upsert("doc-1", {"symbol": "IBM", "name": "new"})

    assert outcome is UpsertOutcome.UPDATED
    assert store.documents["doc-1"][0].properties["name"] == "new"


def test_upsert_rejects_duplicate_documents_without_writing() -> None:
    """Several documents for one id should raise and write nothing."""
    store = FakeDocumentStore()
    store.add_document("doc-1", {"symbol": "IBM"})
    store.add_document("doc-1", {"symbol": "IBM"})

    with pytest.raises(StoreInvariantViolation):
        _engine(store).upsert("doc-1", {"symbol": "IBM", "name": "new"})

    assert store.calls == [("get", "doc-1")]


def test_upsert_propagates_query_failure() -> None:
    """Query errors should propagate as document store errors."""
    store = FakeDocumentStore()
    store.query_error = DocumentStoreError("query failed")

    with pytest.raises(DocumentStoreError):
        _engine(store).upsert("doc-1", {"symbol": "IBM"})

    assert store.calls_of("create") == []


def test_upsert_acquires_throttle_per_store_call() -> None:
    """Each query and write should take one throttle token."""
    throttle = CountingThrottle()

    _engine(FakeDocumentStore(), throttle).upsert("doc-1", {"symbol": "IBM"})

    assert throttle.acquired == 2
