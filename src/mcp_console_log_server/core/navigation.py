"""Navigation pattern table for stages, steps and test cases.

The table is data: an ordered sequence of start/end matchers tagged with a
region kind. Adding a new region kind means adding a row, not a branch.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .models import RegionOutcome

TEST_ICON = "\U0001f9ea"
STAGE_ICON = "\U0001f4e6"
STEP_ICON = "⚙️"

# Case-sensitive; any of these on an end line marks the region failed.
FAILURE_TOKENS: tuple[str, ...] = ("ERROR", "FAILED", "failed")


@dataclass(frozen=True, slots=True)
class NavigationPattern:
    start: re.Pattern[str]
    end: re.Pattern[str] | None
    kind: str
    icon: str = ""


@dataclass(frozen=True, slots=True)
class StartMatch:
    pattern: NavigationPattern
    name: str


@dataclass(frozen=True, slots=True)
class EndMatch:
    matched: bool
    outcome: RegionOutcome = RegionOutcome.PASSED
    name: str = ""


_NO_END = EndMatch(matched=False)


def _p(start: str, end: str | None, kind: str, icon: str) -> NavigationPattern:
    return NavigationPattern(
        start=re.compile(start, re.IGNORECASE),
        end=re.compile(end, re.IGNORECASE) if end is not None else None,
        kind=kind,
        icon=icon,
    )


DEFAULT_PATTERNS: tuple[NavigationPattern, ...] = (
    # Test case markers
    _p(r"Starting TestCase:\s*(.+)$", r"SUMMARY of TestCase \[([^\]]+)\]:\s*(\w+)", "test", TEST_ICON),
    # Jenkins pipeline stages
    _p(
        r"^\[Pipeline\]\s+stage\s*\(\s*['\"]?(.+?)['\"]?\s*\)",
        r"^\[Pipeline\]\s+/{1,2}\s*stage",
        "stage",
        STAGE_ICON,
    ),
    _p(
        r"^Stage\s+['\"]?(.+?)['\"]?\s+started",
        r"^Stage\s+['\"]?(.+?)['\"]?\s+(completed|failed)",
        "stage",
        STAGE_ICON,
    ),
    _p(r"^\[(?!Pipeline\])(.+?)\]\s+Stage", None, "stage", STAGE_ICON),
    # Maven/Gradle
    _p(r"^Running\s+(.+)$", r"^Tests run:\s*\d+.*?in\s+(.+)$", "test", TEST_ICON),
    # JUnit
    _p(r"^Test:\s+(.+)$", r"^Test\s+(.+?)\s+(PASSED|FAILED)", "test", TEST_ICON),
    # Generic steps
    _p(r"^\[Pipeline\]\s+\{\s*\((.+?)\)", r"^\[Pipeline\]\s+\}", "step", STEP_ICON),
    _p(r"^\+\s+(.+)$", None, "step", STEP_ICON),
)


def _captured(match: re.Match[str]) -> str:
    """First capture group, trimmed, or "" when it did not participate."""
    if match.re.groups < 1:
        return ""
    group = match.group(1)
    return group.strip() if group else ""


def end_outcome(line: str, failure_tokens: Iterable[str] = FAILURE_TOKENS) -> RegionOutcome:
    if any(tok in line for tok in failure_tokens):
        return RegionOutcome.FAILED
    return RegionOutcome.PASSED


@dataclass(frozen=True, slots=True)
class PatternTable:
    """Ordered navigation patterns; first match wins."""

    patterns: Sequence[NavigationPattern] = DEFAULT_PATTERNS
    failure_tokens: Sequence[str] = FAILURE_TOKENS

    def match_start(self, line: str) -> StartMatch | None:
        """Return the first pattern whose start matcher fires on the line."""
        for pattern in self.patterns:
            m = pattern.start.search(line)
            if m:
                return StartMatch(pattern=pattern, name=_captured(m) or line.strip())
        return None

    def match_end(self, line: str, active: NavigationPattern | None) -> EndMatch:
        """Test the line against the active pattern's end matcher.

        Patterns without an end matcher never match here; their regions are
        closed by the next start or by end of input.
        """
        if active is None or active.end is None:
            return _NO_END
        m = active.end.search(line)
        if not m:
            return _NO_END
        return EndMatch(
            matched=True,
            outcome=end_outcome(line, self.failure_tokens),
            name=_captured(m),
        )


def default_pattern_table() -> PatternTable:
    return PatternTable()
