"""Runtime configuration model for TickerSync.

This module owns all environment variable and config-file parsing.
Other modules consume a typed config object instead of raw env reads.

Resolution order for every setting is: ``TICKERSYNC_<SECTION>_<KEY>``
environment variable, then the matching entry of the YAML file named by
``TICKERSYNC_CONFIG_FILE``, then the built-in default.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Mapping, cast

from core.constants import (
    DEFAULT_DATA_ROOT,
    DEFAULT_DOCUMENT_STORE_DIR_NAME,
    DEFAULT_FILE_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_POLLER_PERIOD_SECONDS,
    DEFAULT_QUOTE_API_FUNCTION,
    DEFAULT_QUOTE_API_URL,
    DEFAULT_QUOTE_THROTTLE_PERIOD_SECONDS,
    DEFAULT_QUOTE_THROTTLE_REQUESTS,
    DEFAULT_QUOTE_TIMEOUT_SECONDS,
    DEFAULT_STORE_THROTTLE_PERIOD_SECONDS,
    DEFAULT_STORE_THROTTLE_REQUESTS,
    DEFAULT_WATCH_PERIOD_SECONDS,
    EMBEDDED_SOURCE_NAME,
    SUPPORTED_INGEST_TYPES,
)
from core.errors import TickerSyncConfigError, TickerSyncDependencyError
from core.s3_uri import S3Location, parse_s3_uri

CONFIG_FILE_ENV = "TICKERSYNC_CONFIG_FILE"
_ENV_PREFIX = "TICKERSYNC"
_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class BatchIngestConfig:
    """Batch ingest routing.

    Attributes:
        enabled: Whether a batch ingest runs at startup.
        ingest_type: One of ``embedded``, ``file``, ``s3``.
    """

    enabled: bool = True
    ingest_type: str = EMBEDDED_SOURCE_NAME


@dataclass(frozen=True)
class PollerConfig:
    """Quote poller settings.

    Attributes:
        enabled: Whether the periodic poller runs.
        symbols: Symbols fetched per cycle, in order.
        period_seconds: Delay between poll ticks.
    """

    enabled: bool = False
    symbols: tuple[str, ...] = ()
    period_seconds: float = DEFAULT_POLLER_PERIOD_SECONDS


@dataclass(frozen=True)
class FileSourceConfig:
    """Local JSON file source settings."""

    path: Path = DEFAULT_DATA_ROOT / DEFAULT_FILE_NAME
    watch: bool = False
    watch_period_seconds: float = DEFAULT_WATCH_PERIOD_SECONDS
    update: bool = False


@dataclass(frozen=True)
class S3SourceConfig:
    """S3 object source settings.

    Attributes:
        uri: Snapshot object URI ``s3://bucket/key``.
        region: Optional AWS region for the boto3 session.
        profile: Optional AWS profile for the boto3 session.
        access_key_id: Optional explicit access key.
        secret_access_key: Optional explicit secret key.
        watch: Re-check the object every watch period.
        watch_period_seconds: Delay between object checks.
        update: Write the reconciled snapshot back to the object.
    """

    uri: str | None = None
    region: str | None = None
    profile: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    watch: bool = False
    watch_period_seconds: float = DEFAULT_WATCH_PERIOD_SECONDS
    update: bool = False

    def location(self) -> S3Location:
        """Return the parsed object location.

        Raises:
            TickerSyncConfigError: If the URI is missing or malformed.
        """
        if not self.uri:
            raise TickerSyncConfigError(
                "S3 ingest requires TICKERSYNC_S3_URI. Set it to s3://bucket/key."
            )
        return parse_s3_uri(self.uri)


@dataclass(frozen=True)
class QuoteApiConfig:
    """External quote API settings."""

    url: str = DEFAULT_QUOTE_API_URL
    function: str = DEFAULT_QUOTE_API_FUNCTION
    api_key: str | None = None
    throttle_requests: int = DEFAULT_QUOTE_THROTTLE_REQUESTS
    throttle_period_seconds: float = DEFAULT_QUOTE_THROTTLE_PERIOD_SECONDS
    timeout_seconds: float = DEFAULT_QUOTE_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DocumentStoreConfig:
    """Document store settings."""

    uri: str = str(DEFAULT_DATA_ROOT / DEFAULT_DOCUMENT_STORE_DIR_NAME)
    initialize_schema: bool = True
    drop_if_exists: bool = False
    throttle_requests: int = DEFAULT_STORE_THROTTLE_REQUESTS
    throttle_period_seconds: float = DEFAULT_STORE_THROTTLE_PERIOD_SECONDS


@dataclass(frozen=True)
class TickerSyncConfig:
    """Validated runtime configuration."""

    batch_ingest: BatchIngestConfig = BatchIngestConfig()
    poller: PollerConfig = PollerConfig()
    file: FileSourceConfig = FileSourceConfig()
    s3: S3SourceConfig = S3SourceConfig()
    quote_api: QuoteApiConfig = QuoteApiConfig()
    document_store: DocumentStoreConfig = DocumentStoreConfig()
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, config_file: str | None = None) -> "TickerSyncConfig":
        """Build config from process environment and optional YAML file.

        Args:
            config_file: Explicit YAML path; overrides ``TICKERSYNC_CONFIG_FILE``.

        Returns:
            A validated config object.

        Raises:
            TickerSyncConfigError: If any value is invalid.
        """
        file_path = config_file or os.getenv(CONFIG_FILE_ENV)
        file_values = load_config_file(file_path) if file_path else {}
        return cls.from_sources(os.environ, file_values)

    @classmethod
    def from_sources(
        cls,
        env: Mapping[str, str],
        file_values: Mapping[str, object],
    ) -> "TickerSyncConfig":
        """Build config from explicit environment and file mappings."""
        reader = _SettingReader(env, file_values)
        ingest_type = reader.string("batch_ingest", "type", EMBEDDED_SOURCE_NAME).lower()
        if ingest_type not in SUPPORTED_INGEST_TYPES:
            raise TickerSyncConfigError(
                f"Invalid TICKERSYNC_BATCH_INGEST_TYPE value '{ingest_type}'. "
                f"Supported types: {', '.join(SUPPORTED_INGEST_TYPES)}."
            )
        s3_uri = reader.optional_string("s3", "uri")
        if s3_uri:
            parse_s3_uri(s3_uri)
        file_directory = Path(reader.string("file", "directory", str(DEFAULT_DATA_ROOT)))
        file_name = reader.string("file", "name", DEFAULT_FILE_NAME)
        return cls(
            batch_ingest=BatchIngestConfig(
                enabled=reader.boolean("batch_ingest", "enabled", True),
                ingest_type=ingest_type,
            ),
            poller=PollerConfig(
                enabled=reader.boolean("poller", "enabled", False),
                symbols=reader.string_list("poller", "symbols"),
                period_seconds=reader.positive_number(
                    "poller", "period_seconds", DEFAULT_POLLER_PERIOD_SECONDS
                ),
            ),
            file=FileSourceConfig(
                path=(file_directory / file_name).expanduser(),
                watch=reader.boolean("file", "watch", False),
                watch_period_seconds=reader.positive_number(
                    "file", "watch_period_seconds", DEFAULT_WATCH_PERIOD_SECONDS
                ),
                update=reader.boolean("file", "update", False),
            ),
            s3=S3SourceConfig(
                uri=s3_uri,
                region=reader.optional_string("s3", "region"),
                profile=reader.optional_string("s3", "profile"),
                access_key_id=reader.optional_string("s3", "access_key_id"),
                secret_access_key=reader.optional_string("s3", "secret_access_key"),
                watch=reader.boolean("s3", "watch", False),
                watch_period_seconds=reader.positive_number(
                    "s3", "watch_period_seconds", DEFAULT_WATCH_PERIOD_SECONDS
                ),
                update=reader.boolean("s3", "update", False),
            ),
            quote_api=QuoteApiConfig(
                url=reader.string("quote_api", "url", DEFAULT_QUOTE_API_URL),
                function=reader.string("quote_api", "function", DEFAULT_QUOTE_API_FUNCTION),
                api_key=reader.optional_string("quote_api", "api_key"),
                throttle_requests=reader.positive_int(
                    "quote_api", "throttle_requests", DEFAULT_QUOTE_THROTTLE_REQUESTS
                ),
                throttle_period_seconds=reader.positive_number(
                    "quote_api", "throttle_period_seconds", DEFAULT_QUOTE_THROTTLE_PERIOD_SECONDS
                ),
                timeout_seconds=reader.positive_number(
                    "quote_api", "timeout_seconds", DEFAULT_QUOTE_TIMEOUT_SECONDS
                ),
            ),
            document_store=DocumentStoreConfig(
                uri=reader.string(
                    "document_store",
                    "uri",
                    str(DEFAULT_DATA_ROOT / DEFAULT_DOCUMENT_STORE_DIR_NAME),
                ),
                initialize_schema=reader.boolean("document_store", "initialize_schema", True),
                drop_if_exists=reader.boolean("document_store", "drop_if_exists", False),
                throttle_requests=reader.positive_int(
                    "document_store", "throttle_requests", DEFAULT_STORE_THROTTLE_REQUESTS
                ),
                throttle_period_seconds=reader.positive_number(
                    "document_store",
                    "throttle_period_seconds",
                    DEFAULT_STORE_THROTTLE_PERIOD_SECONDS,
                ),
            ),
            log_level=reader.top_level_string("log_level", DEFAULT_LOG_LEVEL),
        )


def load_config_file(config_path: str) -> Mapping[str, object]:
    """Load a YAML config file into a section mapping.

    Args:
        config_path: Path to the YAML file.

    Returns:
        Parsed top-level mapping.

    Raises:
        TickerSyncDependencyError: If PyYAML is unavailable.
        TickerSyncConfigError: If the file is missing or not a mapping.
    """
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as error:  # pragma: no cover - dependency failure
        raise TickerSyncDependencyError(
            "YAML config files require PyYAML. Install with 'pip install pyyaml'."
        ) from error
    config_file = Path(config_path).expanduser().resolve()
    if not config_file.exists():
        raise TickerSyncConfigError(
            f"Config file does not exist at {config_file}. Fix {CONFIG_FILE_ENV} or --config."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise TickerSyncConfigError(
            f"Failed to read config file at {config_file}: {error}. Check file permissions."
        ) from error
    except yaml.YAMLError as error:
        raise TickerSyncConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        return {}
    if not isinstance(payload, Mapping):
        raise TickerSyncConfigError(
            f"Invalid config file at {config_file}: expected a mapping of sections."
        )
    return cast(Mapping[str, object], payload)


class _SettingReader:
    """Resolve typed settings from env overrides and file sections."""

    def __init__(self, env: Mapping[str, str], file_values: Mapping[str, object]) -> None:
        self._env = env
        self._file_values = file_values

    def optional_string(self, section: str, key: str) -> str | None:
        value = self._raw(section, key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def string(self, section: str, key: str, default: str) -> str:
        value = self.optional_string(section, key)
        return default if value is None else value

    def top_level_string(self, key: str, default: str) -> str:
        env_value = self._env.get(f"{_ENV_PREFIX}_{key.upper()}")
        if env_value is not None and env_value.strip():
            return env_value.strip()
        file_value = self._file_values.get(key)
        return str(file_value).strip() if file_value is not None else default

    def boolean(self, section: str, key: str, default: bool) -> bool:
        value = self._raw(section, key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise TickerSyncConfigError(
            f"Invalid {_env_name(section, key)} value: expected boolean, got '{value}'. "
            "Use true or false."
        )

    def positive_int(self, section: str, key: str, default: int) -> int:
        value = self._raw(section, key)
        if value is None:
            return default
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            parsed = int(str(value).strip())
        except ValueError as error:
            raise TickerSyncConfigError(
                f"Invalid {_env_name(section, key)} value: expected integer, got '{value}'."
            ) from error
        if parsed <= 0:
            raise TickerSyncConfigError(
                f"Invalid {_env_name(section, key)} value: expected a positive integer."
            )
        return parsed

    def positive_number(self, section: str, key: str, default: float) -> float:
        value = self._raw(section, key)
        if value is None:
            return default
        try:
            if isinstance(value, bool):
                raise ValueError(value)
            parsed = float(str(value).strip())
        except ValueError as error:
            raise TickerSyncConfigError(
                f"Invalid {_env_name(section, key)} value: expected number, got '{value}'."
            ) from error
        if parsed <= 0:
            raise TickerSyncConfigError(
                f"Invalid {_env_name(section, key)} value: expected a positive number."
            )
        return parsed

    def string_list(self, section: str, key: str) -> tuple[str, ...]:
        value = self._raw(section, key)
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            items = [str(item).strip() for item in value]
        else:
            items = [item.strip() for item in str(value).split(",")]
        return tuple(item for item in items if item)

    def _raw(self, section: str, key: str) -> object | None:
        env_value = self._env.get(_env_name(section, key))
        if env_value is not None:
            return env_value
        section_values = self._file_values.get(section)
        if section_values is None:
            return None
        if not isinstance(section_values, Mapping):
            raise TickerSyncConfigError(
                f"Invalid config section '{section}': expected a mapping, "
                f"got {type(section_values).__name__}."
            )
        return section_values.get(key)


def _env_name(section: str, key: str) -> str:
    return f"{_ENV_PREFIX}_{section.upper()}_{key.upper()}"
