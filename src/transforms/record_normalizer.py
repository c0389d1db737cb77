"""Record field-name normalization transform.

This module maps source field names onto document store property names.
It is applied to every record before the upsert decision.
"""

from __future__ import annotations

from core.constants import FIELD_RENAMES
from core.types import Record


def normalize_record(record: Record) -> dict[str, object]:
    """Return a copy of a record with document store field names.

    Fields from the fixed rename table (names with leading digits) are
    renamed; every other field has its first character lower-cased.

    Args:
        record: Source record.

    Returns:
        New property mapping; the input is never mutated.
    """
    return {normalize_field_name(name): value for name, value in record.items()}


def normalize_field_name(name: str) -> str:
    """Normalize one source field name."""
    renamed = FIELD_RENAMES.get(name)
    if renamed is not None:
        return renamed
    return name[:1].lower() + name[1:]
