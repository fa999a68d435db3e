"""Core data models for console log parsing."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LogLevel(str, Enum):
    """Severity levels assigned to console lines."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"
    OTHER = "OTHER"


class RegionOutcome(str, Enum):
    """Result of a navigable region (test case, stage, step)."""

    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class LevelStyle:
    """Display color and priority rank (lower = more severe)."""

    color: str
    priority: int


@dataclass(frozen=True, slots=True)
class ClassifiedLine:
    """One ingested console line after classification and region matching."""

    index: int
    text: str
    level: LogLevel
    color: str = ""
    region_name: str = ""  # name of the region containing the line, "" when outside
    element_id: str = ""
    is_region_boundary: bool = False


@dataclass(slots=True)
class RegionRecord:
    """A detected navigable region.

    Mutable only until it is closed; the state machine hands closed records
    out and never touches them again.
    """

    name: str
    kind: str
    start_line: int
    end_line: int | None = None
    outcome: RegionOutcome = RegionOutcome.PENDING
    icon: str = ""

    @property
    def anchor_id(self) -> str:
        return f"test{self.start_line}"

    @property
    def is_closed(self) -> bool:
        return self.end_line is not None
