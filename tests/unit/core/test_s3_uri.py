"""Unit tests for S3 URI parsing."""

from __future__ import annotations

import pytest

from core.errors import TickerSyncConfigError
from core.s3_uri import parse_s3_uri


def test_parse_s3_uri_splits_bucket_and_key() -> None:
    """Parser should split bucket from a nested object key."""
    location = parse_s3_uri("s3://market-data/snapshots/company-overview.json")

    assert (location.bucket, location.key) == ("market-data", "snapshots/company-overview.json")


def test_location_uri_round_trips() -> None:
    """Location URI should render back to the input URI."""
    uri = "s3://bucket/overview.json"

    assert parse_s3_uri(uri).uri == uri


@pytest.mark.parametrize(
    "uri",
    [
        "https://bucket/key.json",
        "s3://bucket",
        "s3:///key.json",
        "s3://bucket/",
        "s3://bucket/dir/",
    ],
)
def test_parse_s3_uri_rejects_incomplete_uris(uri: str) -> None:
    """Parser should reject URIs without both bucket and object key."""
    with pytest.raises(TickerSyncConfigError):
        parse_s3_uri(uri)
