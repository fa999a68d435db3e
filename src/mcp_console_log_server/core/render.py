"""Text and HTML rendering of presentation records."""

from __future__ import annotations

import html

from .models import LogLevel, RegionOutcome
from .records import NavigationEntry, PresentationRecord, StatsSnapshot

PASSED_COLOR = "#2ACF1F"
FAILED_COLOR = "#F90636"
DEFAULT_NAV_ICON = "\U0001f4cd"


def format_line_number(num: int, padding: int = 5) -> str:
    return str(num).rjust(padding)


def render_text_line(record: PresentationRecord) -> str:
    """``<padded 1-based number> <text>``."""
    return f"{format_line_number(record.index + 1)} {record.text}"


def render_html_line(record: PresentationRecord, *, hidden: bool = False) -> str:
    style = f' style="color:{record.color}"' if record.color else ""
    display = ' style="display:none"' if hidden else ""
    return (
        f'<div class="log-line" data-level="{record.level.value}" '
        f'id="{html.escape(record.element_id, quote=True)}"{display}>'
        f'<span class="log-line-num">{format_line_number(record.index + 1)}</span>'
        f'<span class="log-content"{style}>{html.escape(record.text)}</span>'
        "</div>"
    )


def _outcome_color(outcome: RegionOutcome) -> str:
    # Pending regions are shown like the original menu: only an explicit pass is green.
    return PASSED_COLOR if outcome == RegionOutcome.PASSED else FAILED_COLOR


def render_html_navigation(entry: NavigationEntry) -> str:
    icon = entry.icon or DEFAULT_NAV_ICON
    return (
        f'<a href="#{html.escape(entry.anchor_id, quote=True)}">{icon} '
        f'<span style="color:{_outcome_color(entry.outcome)}">{html.escape(entry.name)}</span></a>'
    )


def render_text_navigation(entry: NavigationEntry) -> str:
    icon = entry.icon or DEFAULT_NAV_ICON
    end = "-" if entry.end_line is None else str(entry.end_line + 1)
    return (
        f"{icon} [{entry.kind}] {entry.name}: {entry.outcome.value} "
        f"(lines {entry.start_line + 1}-{end})"
    )


def render_text_stats(stats: StatsSnapshot) -> str:
    counts = stats.level_counts
    parts = [f"{level.value}={counts.get(level, 0)}" for level in LogLevel]
    parts.append(f"total={stats.total}")
    return " ".join(parts)
