"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Call ``configure_logging`` once at process start to set the level.
Events go to stderr so command output on stdout stays parseable.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import TickerSyncConfigError


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure structlog processors and the minimum log level.

    Args:
        level: Level name such as ``debug`` or ``info``.

    Raises:
        TickerSyncConfigError: If the level name is unknown.
    """
    level_value = logging.getLevelName(level.upper())
    if not isinstance(level_value, int):
        raise TickerSyncConfigError(
            f"Invalid log level '{level}'. Use one of debug, info, warning, error."
        )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level_value),
        logger_factory=_stderr_logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger bound to the module name.
    """
    return structlog.get_logger(logger_name=name)


def _stderr_logger_factory(*args: Any) -> structlog.PrintLogger:
    # Resolved per call so redirected stderr streams are honored.
    return structlog.PrintLogger(sys.stderr)
