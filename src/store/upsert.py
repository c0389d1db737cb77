"""Upsert decision engine.

This module decides create, update, or no-op for one document and
issues at most one write. Store calls pass through the write throttle.
"""

from __future__ import annotations

from typing import Any, Mapping

from core.errors import StoreInvariantViolation
from core.logging_config import get_logger
from core.types import UpsertOutcome
from runtime.throttle import Throttle
from store.document_store import DocumentStoreClient

_LOGGER = get_logger(__name__)


class UpsertEngine:
    """Idempotent create-or-update against a document store."""

    def __init__(self, client: DocumentStoreClient, throttle: Throttle) -> None:
        self._client = client
        self._throttle = throttle

    def upsert(self, document_id: str, properties: Mapping[str, Any]) -> UpsertOutcome:
        """Create, update, or leave one document unchanged.

        Args:
            document_id: Deterministic document identifier.
            properties: Candidate property set.

        Returns:
            The decision that was executed.

        Raises:
            StoreInvariantViolation: If several documents share the identifier.
            DocumentStoreError: If the query fails.
            StoreWriteError: If the create or update fails.
        """
        self._throttle.acquire()
        _LOGGER.debug("document_query", document_id=document_id)
        documents = self._client.get_documents(document_id)
        if not documents:
            self._throttle.acquire()
            self._client.create_document(document_id, properties)
            _LOGGER.debug("document_created", document_id=document_id)
            return UpsertOutcome.CREATED
        if len(documents) > 1:
            raise StoreInvariantViolation(
                f"Multiple documents found for id '{document_id}': "
                f"document_count={len(documents)}. Document identifiers must be unique; "
                "inspect the document store for corruption."
            )
        if dict(documents[0].properties) == dict(properties):
            _LOGGER.debug("document_unchanged", document_id=document_id)
            return UpsertOutcome.UNCHANGED
        self._throttle.acquire()
        self._client.update_document(document_id, properties)
        _LOGGER.debug("document_updated", document_id=document_id)
        return UpsertOutcome.UPDATED
