"""Pytest configuration for repository test runs."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
import structlog


def pytest_sessionstart() -> None:
    """Add src and tests directories to sys.path for test imports."""
    tests_root = Path(__file__).resolve().parent
    for import_root in (tests_root.parent / "src", tests_root):
        if str(import_root) not in sys.path:
            sys.path.insert(0, str(import_root))


@pytest.fixture(autouse=True)
def _hermetic_settings(monkeypatch: pytest.MonkeyPatch):
    """Drop ambient TICKERSYNC_* settings and reset logging after each test."""
    for name in list(os.environ):
        if name.startswith("TICKERSYNC_"):
            monkeypatch.delenv(name)
    yield
    structlog.reset_defaults()
