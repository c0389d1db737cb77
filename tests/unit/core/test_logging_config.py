"""Unit tests for structured logging setup."""

from __future__ import annotations

import json

import pytest

from core.errors import TickerSyncConfigError
from core.logging_config import configure_logging, get_logger


def test_configure_logging_emits_json_events(capsys) -> None:
    """Configured loggers should render sorted JSON with level and name."""
    configure_logging("info")

    get_logger("tests.logging").info("run_completed", unit="file")
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])

    assert payload["event"] == "run_completed"
    assert payload["level"] == "info"
    assert payload["logger_name"] == "tests.logging"


def test_configure_logging_filters_below_level(capsys) -> None:
    """Events under the minimum level should not be rendered."""
    configure_logging("warning")

    get_logger("tests.logging").info("quiet_event")

    assert "quiet_event" not in capsys.readouterr().err


def test_configure_logging_rejects_unknown_level() -> None:
    """Unknown level names should fail with a config error."""
    with pytest.raises(TickerSyncConfigError):
        configure_logging("loud")


def test_module_logger_created_before_configuration_logs_afterwards(capsys) -> None:
    """Loggers built at import time should pick up later configuration."""
    logger = get_logger("tests.import_time")
    configure_logging("info")

    logger.info("late_event", symbol="IBM")
    payload = json.loads(capsys.readouterr().err.strip().splitlines()[-1])

    assert payload["logger_name"] == "tests.import_time" and payload["symbol"] == "IBM"
