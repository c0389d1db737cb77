"""Core constants used across TickerSync modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

NATURAL_KEY_FIELD = "Symbol"
HASH_ALGORITHM = "md5"
EMBEDDED_DATA_PACKAGE = "ingest"
EMBEDDED_DATA_RESOURCE = "data/company-overview.json"
EMBEDDED_SOURCE_NAME = "embedded"
FILE_SOURCE_NAME = "file"
S3_SOURCE_NAME = "s3"
POLL_UNIT_NAME = "poll"
SUPPORTED_INGEST_TYPES = (EMBEDDED_SOURCE_NAME, FILE_SOURCE_NAME, S3_SOURCE_NAME)
FIELD_RENAMES = {
    "52WeekHigh": "fiftytwoWeekHigh",
    "52WeekLow": "fiftytwoWeekLow",
    "50DayMovingAverage": "fiftyDayMovingAverage",
    "200DayMovingAverage": "twohundredDayMovingAverage",
}
QUOTE_ERROR_FIELDS = ("Error Message", "Information", "Note")
DEFAULT_DATA_ROOT = Path(".tickersync")
DEFAULT_FILE_NAME = "company-overview.json"
DEFAULT_DOCUMENT_STORE_DIR_NAME = "company_overview.lance"
DEFAULT_QUOTE_API_URL = "https://www.alphavantage.co/query"
DEFAULT_QUOTE_API_FUNCTION = "OVERVIEW"
DEFAULT_QUOTE_THROTTLE_REQUESTS = 5
DEFAULT_QUOTE_THROTTLE_PERIOD_SECONDS = 60.0
DEFAULT_QUOTE_TIMEOUT_SECONDS = 10.0
DEFAULT_STORE_THROTTLE_REQUESTS = 100
DEFAULT_STORE_THROTTLE_PERIOD_SECONDS = 1.0
DEFAULT_POLLER_PERIOD_SECONDS = 3600.0
DEFAULT_WATCH_PERIOD_SECONDS = 60.0
DEFAULT_STARTUP_DELAY_SECONDS = 1.0
DEFAULT_LOG_LEVEL = "info"
SERIALIZER_CAPACITY = 1
SERIALIZER_POLL_INTERVAL_SECONDS = 0.1
