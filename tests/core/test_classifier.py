from __future__ import annotations

import pytest

from mcp_console_log_server.core.classifier import (
    LEVEL_STYLES,
    SeverityClassifier,
    classify,
    level_priority,
)
from mcp_console_log_server.core.models import LogLevel


@pytest.mark.parametrize(
    ("line", "level", "color"),
    [
        ("[ERROR] boom", LogLevel.ERROR, "#F90636"),
        ("[WARN] careful", LogLevel.WARN, "#F97106"),
        ("[INFO] hello", LogLevel.INFO, "#061CF9"),
        ("[DEBUG] details", LogLevel.DEBUG, "#C906F9"),
        ("plain output", LogLevel.OTHER, ""),
    ],
)
def test_classify_default_table(line: str, level: LogLevel, color: str) -> None:
    result = classify(line)
    assert result.level == level
    assert result.color == color


def test_table_order_wins_over_position_in_line() -> None:
    assert classify("WARN something then ERROR").level == LogLevel.ERROR
    assert classify("DEBUG then INFO").level == LogLevel.INFO


def test_classify_is_case_sensitive() -> None:
    assert classify("error: lowercase").level == LogLevel.OTHER
    assert classify("Warning: mixed case").level == LogLevel.OTHER


def test_warning_contains_warn_keyword() -> None:
    assert classify("WARNING: disk almost full").level == LogLevel.WARN


def test_custom_keywords() -> None:
    clf = SeverityClassifier(keywords={LogLevel.ERROR: ("FATAL", "ERROR"), LogLevel.INFO: ("note",)})
    assert clf.classify("FATAL crash").level == LogLevel.ERROR
    assert clf.classify("a note").level == LogLevel.INFO
    assert clf.classify("WARN ignored").level == LogLevel.OTHER
    assert clf.levels() == [LogLevel.ERROR, LogLevel.INFO, LogLevel.OTHER]


def test_level_priority() -> None:
    assert [level_priority(lvl) for lvl in LEVEL_STYLES] == [1, 2, 3, 4]
    assert level_priority(LogLevel.OTHER) is None
