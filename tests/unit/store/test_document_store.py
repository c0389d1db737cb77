"""Unit tests for the Lance document store."""

from __future__ import annotations

from store.document_store import LanceDocumentStore


def _store(tmp_path) -> LanceDocumentStore:
    return LanceDocumentStore(str(tmp_path / "documents.lance"))


def test_initialize_schema_creates_once(tmp_path) -> None:
    """Schema creation should only create a missing dataset."""
    store = _store(tmp_path)

    assert store.initialize_schema() is True
    assert store.initialize_schema() is False


def test_initialize_schema_drop_if_exists_recreates(tmp_path) -> None:
    """Dropping should remove existing documents."""
    store = _store(tmp_path)
    store.create_document("doc-1", {"symbol": "IBM"})

    created = store.initialize_schema(drop_if_exists=True)

    assert created and store.get_documents("doc-1") == []


def test_get_documents_without_dataset_is_empty(tmp_path) -> None:
    """Querying a missing dataset should return no documents."""
    assert _store(tmp_path).get_documents("doc-1") == []


def test_create_then_get_round_trips_properties(tmp_path) -> None:
    """Created documents should be returned with their properties."""
    store = _store(tmp_path)
    store.initialize_schema()
    store.create_document("doc-1", {"symbol": "IBM", "beta": "0.7"})
    store.create_document("doc-2", {"symbol": "AAPL"})

    documents = store.get_documents("doc-1")

    assert [(doc.document_id, dict(doc.properties)) for doc in documents] == [
        ("doc-1", {"symbol": "IBM", "beta": "0.7"})
    ]


def test_update_document_replaces_properties(tmp_path) -> None:
    """Updates should replace properties without adding documents."""
    store = _store(tmp_path)
    store.initialize_schema()
    store.create_document("doc-1", {"symbol": "IBM", "name": "old"})

    store.update_document("doc-1", {"symbol": "IBM", "name": "new"})
    documents = store.get_documents("doc-1")

    assert len(documents) == 1 and documents[0].properties["name"] == "new"


def test_get_documents_returns_duplicates(tmp_path) -> None:
    """Repeated creates for one id should all be visible to queries."""
    store = _store(tmp_path)
    store.create_document("doc-1", {"symbol": "IBM"})
    store.create_document("doc-1", {"symbol": "IBM"})

    assert len(store.get_documents("doc-1")) == 2
