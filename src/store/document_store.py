"""Document store clients.

This module defines the document store boundary used by the upsert
engine and implements it on an Apache Lance dataset.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Any, Mapping, Protocol

from core.errors import DocumentStoreError, StoreWriteError, TickerSyncDependencyError
from core.hashing import canonical_json
from core.logging_config import get_logger
from core.types import StoredDocument

_LOGGER = get_logger(__name__)


class DocumentStoreClient(Protocol):
    """Query-by-id, create, and update operations on stored documents."""

    def get_documents(self, document_id: str) -> list[StoredDocument]:
        """Return every stored document with the given identifier."""
        ...

    def create_document(self, document_id: str, properties: Mapping[str, Any]) -> None:
        """Create a document with the given identifier and properties."""
        ...

    def update_document(self, document_id: str, properties: Mapping[str, Any]) -> None:
        """Replace the properties of an existing document."""
        ...


class LanceDocumentStore:
    """Document store backed by a local Apache Lance dataset.

    Each row holds the document ``id`` and its ``properties`` serialized
    as canonical JSON.
    """

    def __init__(self, uri: str) -> None:
        self._uri = uri

    @property
    def uri(self) -> str:
        return self._uri

    def initialize_schema(self, drop_if_exists: bool = False) -> bool:
        """Create the empty dataset when missing.

        Args:
            drop_if_exists: Delete an existing dataset first.

        Returns:
            ``True`` when a new dataset was created.

        Raises:
            DocumentStoreError: If the dataset cannot be created.
        """
        dataset_path = Path(self._uri)
        if drop_if_exists and dataset_path.exists():
            _LOGGER.info("document_store_dropped", uri=self._uri)
            shutil.rmtree(dataset_path)
        if dataset_path.exists():
            _LOGGER.debug("document_store_schema_exists", uri=self._uri)
            return False
        lance, pa = _import_lance()
        dataset_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            lance.write_dataset(_build_table(pa, []), self._uri, mode="create")
        except Exception as error:
            raise DocumentStoreError(
                f"Failed to create document store at {self._uri}: {error}. "
                "Check the path and lance/pyarrow compatibility."
            ) from error
        _LOGGER.info("document_store_schema_created", uri=self._uri)
        return True

    def get_documents(self, document_id: str) -> list[StoredDocument]:
        if not Path(self._uri).exists():
            return []
        lance, _ = _import_lance()
        try:
            table = lance.dataset(self._uri).to_table(filter=_id_filter(document_id))
            rows = table.to_pylist()
        except Exception as error:
            raise DocumentStoreError(
                f"Failed to query document store at {self._uri} for id '{document_id}': "
                f"{error}."
            ) from error
        return [
            StoredDocument(document_id=str(row["id"]), properties=json.loads(row["properties"]))
            for row in rows
        ]

    def create_document(self, document_id: str, properties: Mapping[str, Any]) -> None:
        lance, pa = _import_lance()
        table = _build_table(pa, [(document_id, properties)])
        mode = "append" if Path(self._uri).exists() else "create"
        try:
            lance.write_dataset(table, self._uri, mode=mode)
        except Exception as error:
            raise StoreWriteError(
                f"Failed to create document '{document_id}' in {self._uri}: {error}."
            ) from error

    def update_document(self, document_id: str, properties: Mapping[str, Any]) -> None:
        lance, pa = _import_lance()
        table = _build_table(pa, [(document_id, properties)])
        try:
            dataset = lance.dataset(self._uri)
            dataset.merge_insert("id").when_matched_update_all().execute(table)
        except Exception as error:
            raise StoreWriteError(
                f"Failed to update document '{document_id}' in {self._uri}: {error}."
            ) from error


def _import_lance() -> tuple[Any, Any]:
    try:
        import lance
        import pyarrow as pa
    except ImportError as error:
        raise TickerSyncDependencyError(
            "The document store requires pylance and pyarrow, but they are not installed. "
            "Install both to persist company overview documents."
        ) from error
    return lance, pa


def _build_table(pa: Any, rows: list[tuple[str, Mapping[str, Any]]]) -> Any:
    schema = pa.schema([("id", pa.string()), ("properties", pa.string())])
    return pa.table(
        {
            "id": [document_id for document_id, _ in rows],
            "properties": [canonical_json(dict(properties)) for _, properties in rows],
        },
        schema=schema,
    )


def _id_filter(document_id: str) -> str:
    escaped = document_id.replace("'", "''")
    return f"id = '{escaped}'"
