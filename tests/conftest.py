from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

CONSOLE_LINES = [
    "[INFO] Starting build",
    "Starting TestCase: LoginTest",
    "[DEBUG] Loading config",
    "SUMMARY of TestCase [LoginTest]: PASSED",
    "Starting TestCase: FailTest",
    "[ERROR] Assertion failed",
    "SUMMARY of TestCase [FailTest]: ERROR",
    "[WARN] Deprecated API",
]


@pytest.fixture
def console_lines() -> list[str]:
    return list(CONSOLE_LINES)


@pytest.fixture
def write_console_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text("\n".join(CONSOLE_LINES) + "\n", encoding="utf-8")

    return _write


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
