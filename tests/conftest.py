"""Shared pytest fixtures for regroup tests."""
import io
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

from regroup.core.logging import Logger, LogLevel, set_global_logger


@pytest.fixture
def log_stream() -> io.StringIO:
    """Buffer receiving everything the test logger writes."""
    return io.StringIO()


@pytest.fixture
def logger(log_stream: io.StringIO) -> Logger:
    """Debug-level logger writing bare messages to log_stream."""
    handler = logging.StreamHandler(log_stream)
    handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    return Logger(name="regroup.test", level=LogLevel.DEBUG, handlers=[handler])


@pytest.fixture
def sample_definitions() -> List[Dict[str, Any]]:
    """Raw rule definitions as found in a grouping rules document."""
    return [
        {"fields": ["entityType"], "pattern": "Room", "target": "rooms"},
        {"fields": ["path", "entityId"], "pattern": "/a/.*car[0-9]+", "target": "cars"},
        {"fields": ["entityId", "entityType"], "pattern": ".*", "target": "everything"},
    ]


@pytest.fixture
def write_rules_file(tmp_path: Path) -> Callable[[str], Path]:
    """Write the given text to a rules file and return its path."""

    def _write(text: str, name: str = "grouping_rules.conf") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch):
    """Reset global instances and REGROUP_* variables between tests."""
    for var in list(os.environ):
        if var.startswith("REGROUP_"):
            monkeypatch.delenv(var)
    set_global_logger(None)
    yield
    set_global_logger(None)
