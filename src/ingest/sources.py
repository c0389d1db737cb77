"""Snapshot sources for batch ingest and write-back.

This module reads company overview batches from the embedded snapshot,
a local JSON file, or an S3 object, and writes reconciled snapshots back
to the same location. Each source exposes a freshness token usable as an
idempotency key ahead of full-content hashing.
"""

from __future__ import annotations

import json
import os
import tempfile
from importlib import resources
from pathlib import Path
from typing import Any, Protocol, Sequence

from core.config import S3SourceConfig
from core.constants import (
    EMBEDDED_DATA_PACKAGE,
    EMBEDDED_DATA_RESOURCE,
    EMBEDDED_SOURCE_NAME,
    FILE_SOURCE_NAME,
    S3_SOURCE_NAME,
)
from core.errors import InvalidSourceError, TickerSyncDependencyError, TransientSourceError
from core.logging_config import get_logger
from core.s3_uri import S3Location
from core.types import Record

_LOGGER = get_logger(__name__)


class SnapshotSource(Protocol):
    """Readable and optionally writable snapshot location."""

    name: str
    writable: bool

    def freshness_token(self) -> str | None:
        """Return a cheap change signal, or ``None`` when unsupported."""
        ...

    def read_records(self) -> list[Record]:
        """Read the full batch of records in source order."""
        ...

    def write_records(self, records: Sequence[Record]) -> str | None:
        """Persist a snapshot and return the resulting freshness token."""
        ...


def serialize_snapshot(records: Sequence[Record]) -> str:
    """Render records as a key-sorted, pretty-printed JSON array."""
    return json.dumps([dict(record) for record in records], indent=2, sort_keys=True) + "\n"


def parse_snapshot(text: str, location: str) -> list[Record]:
    """Parse snapshot text into records.

    Args:
        text: JSON document text.
        location: Source location for error context.

    Returns:
        Records in document order.

    Raises:
        InvalidSourceError: If the text is not a JSON array of objects.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise InvalidSourceError(
            f"Failed to parse snapshot at {location}: {error.msg}. "
            "Fix the JSON syntax and the source will be retried."
        ) from error
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise InvalidSourceError(
            f"Invalid snapshot at {location}: expected a JSON array of objects."
        )
    return payload


class EmbeddedSource:
    """Packaged static snapshot.

    The packaged resource is read-only, so write-back replaces an
    in-process view that later poll cycles seed from.
    """

    name = EMBEDDED_SOURCE_NAME

    def __init__(self, records: Sequence[Record] | None = None, writable: bool = True) -> None:
        self.writable = writable
        self._records: list[Record] | None = list(records) if records is not None else None

    def freshness_token(self) -> str | None:
        return None

    def read_records(self) -> list[Record]:
        if self._records is None:
            self._records = _load_embedded_records()
        return list(self._records)

    def write_records(self, records: Sequence[Record]) -> str | None:
        self._records = list(records)
        _LOGGER.info("embedded_snapshot_replaced", record_count=len(self._records))
        return None


class FileSource:
    """Local JSON file source."""

    name = FILE_SOURCE_NAME

    def __init__(self, path: Path, writable: bool = False) -> None:
        self.path = path
        self.writable = writable

    def freshness_token(self) -> str | None:
        try:
            stat_result = self.path.stat()
        except FileNotFoundError:
            return None
        except OSError as error:
            raise TransientSourceError(
                f"Failed to stat source file {self.path}: {error}."
            ) from error
        return f"{self.path}:{stat_result.st_mtime_ns}:{stat_result.st_size}"

    def read_records(self) -> list[Record]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as error:
            raise TransientSourceError(
                f"Failed to read source file {self.path}: {error}. "
                "The file will be retried on the next watch interval."
            ) from error
        _LOGGER.debug("source_file_read", path=str(self.path))
        return parse_snapshot(text, str(self.path))

    def write_records(self, records: Sequence[Record]) -> str | None:
        payload = serialize_snapshot(records)
        temp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            descriptor, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=str(self.path.parent)
            )
            with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, self.path)
        except OSError as error:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise TransientSourceError(
                f"Failed to write snapshot to {self.path}: {error}. "
                "Check write permissions and available disk space."
            ) from error
        _LOGGER.info("source_file_updated", path=str(self.path), record_count=len(records))
        return self.freshness_token()


class S3Source:
    """Single JSON object in S3."""

    name = S3_SOURCE_NAME

    def __init__(self, location: S3Location, s3_client: Any, writable: bool = False) -> None:
        self.location = location
        self.writable = writable
        self._s3_client = s3_client

    def freshness_token(self) -> str | None:
        try:
            response = self._s3_client.head_object(
                Bucket=self.location.bucket, Key=self.location.key
            )
        except Exception as error:
            raise TransientSourceError(
                f"Failed to check {self.location.uri}: {error}. "
                "Check AWS credentials; the object will be retried on the next interval."
            ) from error
        return _etag_token(self.location, response.get("ETag"))

    def read_records(self) -> list[Record]:
        try:
            response = self._s3_client.get_object(
                Bucket=self.location.bucket, Key=self.location.key
            )
            text = response["Body"].read().decode("utf-8")
        except Exception as error:
            raise TransientSourceError(
                f"Failed to download {self.location.uri}: {error}. "
                "Check AWS credentials; the object will be retried on the next interval."
            ) from error
        _LOGGER.debug("source_object_downloaded", uri=self.location.uri)
        return parse_snapshot(text, self.location.uri)

    def write_records(self, records: Sequence[Record]) -> str | None:
        try:
            response = self._s3_client.put_object(
                Bucket=self.location.bucket,
                Key=self.location.key,
                Body=serialize_snapshot(records).encode("utf-8"),
                ContentType="application/json",
            )
        except Exception as error:
            raise TransientSourceError(
                f"Failed to upload snapshot to {self.location.uri}: {error}. "
                "Check AWS credentials and retry."
            ) from error
        _LOGGER.info("source_object_updated", uri=self.location.uri, record_count=len(records))
        return _etag_token(self.location, response.get("ETag"))


def create_s3_client(config: S3SourceConfig) -> Any:
    """Create a boto3 S3 client from source settings.

    Args:
        config: S3 source settings with optional session values.

    Returns:
        Boto3 S3 client.

    Raises:
        TickerSyncDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise TickerSyncDependencyError(
            "S3 ingest requires boto3, but it is not installed. "
            "Install boto3 to ingest from s3:// sources."
        ) from error
    session = boto3.session.Session(**_build_boto3_session_kwargs(config))
    return session.client("s3")


def _build_boto3_session_kwargs(config: S3SourceConfig) -> dict[str, str]:
    kwargs: dict[str, str] = {}
    if config.profile:
        kwargs["profile_name"] = config.profile
    if config.region:
        kwargs["region_name"] = config.region
    if config.access_key_id and config.secret_access_key:
        kwargs["aws_access_key_id"] = config.access_key_id
        kwargs["aws_secret_access_key"] = config.secret_access_key
    return kwargs


def _etag_token(location: S3Location, etag: object) -> str | None:
    if not etag:
        return None
    normalized_etag = str(etag).strip('"')
    return f"{location.uri}@{normalized_etag}"


def _load_embedded_records() -> list[Record]:
    resource = resources.files(EMBEDDED_DATA_PACKAGE).joinpath(EMBEDDED_DATA_RESOURCE)
    try:
        text = resource.read_text(encoding="utf-8")
    except OSError as error:
        raise TransientSourceError(
            f"Failed to load embedded snapshot {EMBEDDED_DATA_RESOURCE}: {error}. "
            "Reinstall the package to restore its data files."
        ) from error
    _LOGGER.info("embedded_snapshot_loaded", resource=EMBEDDED_DATA_RESOURCE)
    return parse_snapshot(text, EMBEDDED_DATA_RESOURCE)
