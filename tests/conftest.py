"""Shared fixtures for the elog test suite."""

import io
import threading
from datetime import datetime

import pytest

from elog import factory
from elog.diagnostics import reset_diagnostics
from elog.factory import DefaultLoggerState
from elog.log_levels import Level
from elog.ordering import LogRecord

TEST_PREFIX = "PREFIX"

# Patterns shared by the line-format tests
REG_DATE = r"[0-9]{4}/[0-9]{2}/[0-9]{2}\s*"
REG_TIME = r"[0-9]{2}:[0-9]{2}:[0-9]{2}\s*"
REG_MICROSECONDS = r"\.[0-9]{6}\s*"
REG_LEVEL = r"\x1b\[\d;[0-9]{2};[0-9]{2}m(\s+)(\w+)(\s+)\x1b\[0m\s*"
REG_PREFIX = TEST_PREFIX + " "
REG_LINE = r"(\d+)\s*"


def reg_longfile(name: str) -> str:
    return r".*[/\\]" + name.replace(".", r"\.") + ":" + REG_LINE


def reg_shortfile(name: str) -> str:
    return name.replace(".", r"\.") + ":" + REG_LINE


class CollectingSink:
    """Sink keeping every written line."""

    def __init__(self) -> None:
        self.writes: list[bytes] = []
        self._lock = threading.Lock()

    def write(self, data: bytes) -> None:
        with self._lock:
            self.writes.append(data)


class FailingSink:
    """Sink rejecting every write."""

    def __init__(self) -> None:
        self.attempts = 0

    def write(self, data: bytes) -> None:
        self.attempts += 1
        msg = "disk full"
        raise OSError(msg)


@pytest.fixture
def out() -> io.BytesIO:
    return io.BytesIO()


@pytest.fixture
def collecting_sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def record() -> LogRecord:
    """A fixed record, so rendered lines are fully predictable."""
    return LogRecord(
        when=datetime(2024, 3, 5, 7, 8, 9, 12345),
        level=Level.ERROR,
        file="/src/app/main.py",
        line=42,
        message="hello",
    )


@pytest.fixture
def isolated_default(monkeypatch: pytest.MonkeyPatch) -> DefaultLoggerState:
    """Run a test against a fresh default logger state."""
    state = DefaultLoggerState()
    monkeypatch.setattr(factory, "_default_state", state)
    return state


@pytest.fixture
def diagnostics_reset():
    yield
    reset_diagnostics()
