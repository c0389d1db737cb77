"""Deterministic content hashing.

This module canonicalizes JSON-like values and derives digests and
document identifiers that stay stable across runs and key orderings.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from typing import Any

from core.constants import HASH_ALGORITHM


def canonical_json(value: Any) -> str:
    """Serialize a JSON-like value with recursively sorted mapping keys.

    Args:
        value: Any JSON-serializable value.

    Returns:
        Compact JSON text; array order is preserved.

    Raises:
        TypeError: If the value is not JSON-serializable.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_digest(value: Any) -> str:
    """Compute the change digest of a JSON-like value.

    MD5 is used for content fingerprinting only.

    Args:
        value: Record, batch, or any JSON-serializable value.

    Returns:
        Hex digest string.
    """
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(canonical_json(value).encode("utf-8"))
    return hasher.hexdigest()


def build_document_id(natural_key: str) -> str:
    """Build the document store identifier for a natural key."""
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, natural_key))
