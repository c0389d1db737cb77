"""S3 URI parsing helpers.

This module parses the configured ``s3://bucket/key`` snapshot location.
It keeps URI validation behavior consistent between config and CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import TickerSyncConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 object location."""

    bucket: str
    key: str

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 object URI.

    Args:
        uri: URI in format ``s3://bucket/key``.

    Returns:
        Parsed bucket and key pair.

    Raises:
        TickerSyncConfigError: If the URI lacks a bucket or key.
    """
    if not uri.startswith("s3://"):
        _raise_uri_error(uri)
    stripped_uri = uri.removeprefix("s3://")
    if "/" not in stripped_uri:
        _raise_uri_error(uri)
    bucket, key = stripped_uri.split("/", 1)
    if not bucket or not key or key.endswith("/"):
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, key=key)


def _raise_uri_error(uri: str) -> None:
    raise TickerSyncConfigError(
        f"Invalid S3 URI '{uri}': expected s3://bucket/key. "
        "Provide both the bucket and the snapshot object key."
    )
