"""Unit tests for deterministic hashing helpers."""

from __future__ import annotations

import hashlib
import uuid

from core.hashing import build_document_id, canonical_json, compute_digest


def test_canonical_json_sorts_nested_keys_and_keeps_array_order() -> None:
    """Canonical JSON should sort mapping keys recursively only."""
    value = {"b": {"d": 1, "c": 2}, "a": [2, 1]}

    assert canonical_json(value) == '{"a":[2,1],"b":{"c":2,"d":1}}'


def test_compute_digest_ignores_key_order() -> None:
    """Equal mappings with different key order should share a digest."""
    first = {"Symbol": "IBM", "Name": "International Business Machines"}
    second = {"Name": "International Business Machines", "Symbol": "IBM"}

    assert compute_digest(first) == compute_digest(second)


def test_compute_digest_depends_on_array_order() -> None:
    """Batch digests should change when record order changes."""
    records = [{"Symbol": "A"}, {"Symbol": "B"}]

    assert compute_digest(records) != compute_digest(list(reversed(records)))


def test_compute_digest_changes_with_scalar_value() -> None:
    """A changed field value should produce a different digest."""
    first = {"Symbol": "IBM", "Price": "1"}
    second = {"Symbol": "IBM", "Price": "2"}

    assert compute_digest(first) != compute_digest(second)


def test_compute_digest_changes_with_nested_value() -> None:
    """A change deep inside nested content should produce a different digest."""
    first = {"id": "doc", "properties": {"symbol": "IBM", "ratings": {"buy": 3}}}
    second = {"id": "doc", "properties": {"symbol": "IBM", "ratings": {"buy": 4}}}

    assert compute_digest(first) != compute_digest(second)
    assert compute_digest([first]) != compute_digest([second])


def test_compute_digest_is_md5_of_canonical_json() -> None:
    """Digest should be the MD5 hex of the canonical encoding."""
    expected = hashlib.md5(b'{"a":1,"b":"x"}').hexdigest()

    assert compute_digest({"b": "x", "a": 1}) == expected


def test_build_document_id_is_name_based_uuid() -> None:
    """Document ids should be stable version-5 UUIDs of the natural key."""
    document_id = build_document_id("ABC")

    assert document_id == str(uuid.uuid5(uuid.NAMESPACE_DNS, "ABC"))
    assert uuid.UUID(document_id).version == 5


def test_build_document_id_differs_per_key() -> None:
    """Distinct natural keys should map to distinct ids."""
    assert build_document_id("AAPL") != build_document_id("MSFT")
