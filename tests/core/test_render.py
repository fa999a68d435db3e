from __future__ import annotations

from mcp_console_log_server.core.models import LogLevel, RegionOutcome
from mcp_console_log_server.core.records import NavigationEntry, PresentationRecord, StatsSnapshot
from mcp_console_log_server.core.render import (
    FAILED_COLOR,
    PASSED_COLOR,
    format_line_number,
    render_html_line,
    render_html_navigation,
    render_text_line,
    render_text_navigation,
    render_text_stats,
)


def _record(**overrides) -> PresentationRecord:
    data = dict(
        index=4,
        text="[ERROR] <b>boom</b>",
        level=LogLevel.ERROR,
        color="#F90636",
        element_id="line-4",
    )
    data.update(overrides)
    return PresentationRecord(**data)


def test_format_line_number() -> None:
    assert format_line_number(7) == "    7"
    assert format_line_number(123456) == "123456"
    assert format_line_number(3, padding=2) == " 3"


def test_render_text_line_is_one_based() -> None:
    assert render_text_line(_record()) == "    5 [ERROR] <b>boom</b>"


def test_render_html_line_escapes_text() -> None:
    out = render_html_line(_record())
    assert 'id="line-4"' in out
    assert 'data-level="ERROR"' in out
    assert "color:#F90636" in out
    assert "&lt;b&gt;boom&lt;/b&gt;" in out
    assert "display:none" not in out


def test_render_html_line_hidden_and_uncolored() -> None:
    out = render_html_line(_record(level=LogLevel.OTHER, color="", text="x"), hidden=True)
    assert "display:none" in out
    assert "color:" not in out


def _entry(outcome: RegionOutcome, end_line: int | None = 9) -> NavigationEntry:
    return NavigationEntry(
        name="LoginTest",
        kind="test",
        outcome=outcome,
        anchor_id="test2",
        start_line=2,
        end_line=end_line,
        icon="",
    )


def test_render_html_navigation_colors() -> None:
    assert PASSED_COLOR in render_html_navigation(_entry(RegionOutcome.PASSED))
    assert FAILED_COLOR in render_html_navigation(_entry(RegionOutcome.FAILED))
    assert 'href="#test2"' in render_html_navigation(_entry(RegionOutcome.PENDING))


def test_render_text_navigation() -> None:
    text = render_text_navigation(_entry(RegionOutcome.FAILED))
    assert "[test] LoginTest: failed (lines 3-10)" in text
    assert "(lines 3--)" in render_text_navigation(_entry(RegionOutcome.PENDING, end_line=None))


def test_render_text_stats() -> None:
    stats = StatsSnapshot(
        level_counts={LogLevel.ERROR: 2, LogLevel.INFO: 1, LogLevel.OTHER: 2}, total=5
    )
    assert render_text_stats(stats) == "ERROR=2 WARN=0 INFO=1 DEBUG=0 OTHER=2 total=5"
