"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into session calls,
and return JSON-serializable data structures.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mcp_console_log_server.core.config import resolve_session_config
from mcp_console_log_server.core.models import LogLevel
from mcp_console_log_server.core.records import NavigationEntry, PresentationRecord
from mcp_console_log_server.core.search import filter_lines
from mcp_console_log_server.core.session import LogSession, ReloadError
from mcp_console_log_server.core.sources import open_source

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000
ALL_LEVELS = [level.value for level in LogLevel]

MAX_SESSIONS = 32


@dataclass
class _TrackedSession:
    session: LogSession
    # Held across read, drain and slice so each caller sees every new line once.
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


# Live sessions for incremental refreshes, keyed by normalized location (least recently used first).
_SESSIONS: OrderedDict[str, _TrackedSession] = OrderedDict()


def _parse_levels(levels: Sequence[str] | None) -> list[LogLevel] | None:
    """Parse user-supplied severity names into LogLevel enums."""
    if not levels:
        return None
    out: list[LogLevel] = []
    for s in levels:
        name = s.strip().upper()
        if not name:
            continue
        if name == "WARNING":
            name = "WARN"
        try:
            out.append(LogLevel[name])
        except KeyError as e:
            valid = ", ".join(ALL_LEVELS)
            raise ValueError(
                f"Unknown log level '{s}'. Valid values: {valid}. "
                "Tip: levels is case-insensitive (e.g., 'error', 'WARN')."
            ) from e
    return out or None


def _resolve_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def _location_key(log_path: str) -> str:
    if log_path.startswith(("http://", "https://")):
        return log_path
    return str(Path(log_path).expanduser().resolve())


def _session_for(log_path: str) -> _TrackedSession:
    key = _location_key(log_path)
    tracked = _SESSIONS.get(key)
    if tracked is None:
        tracked = _TrackedSession(session=LogSession(config=resolve_session_config()))
        _SESSIONS[key] = tracked
        while len(_SESSIONS) > MAX_SESSIONS:
            evicted_key, evicted = _SESSIONS.popitem(last=False)
            logger.info("Evicting console log session for %s", evicted_key)
            evicted.session.reset()
    else:
        _SESSIONS.move_to_end(key)
    return tracked


def _record_to_dict(record: PresentationRecord) -> dict[str, Any]:
    return record.model_dump(mode="json")


def _nav_to_dict(entry: NavigationEntry) -> dict[str, Any]:
    return entry.model_dump(mode="json")


def _open_region(session: LogSession) -> dict[str, Any] | None:
    region = session.processor.extractor.open_region
    if region is None:
        return None
    return {"name": region.name, "kind": region.kind, "start_line": region.start_line}


async def parse_console_log_impl(
    *,
    log_path: str,
    levels: list[str] | None = None,
    search: str | None = None,
    limit: int | None = None,
    include_lines: bool = True,
) -> dict[str, Any]:
    """Implementation for the `parse_console_log` MCP tool.

    Parses the whole log once (end of stream included, so unterminated
    regions come back as pending).
    """
    limit = _resolve_limit(limit)
    sev = _parse_levels(levels)

    session = LogSession(config=resolve_session_config())
    source = open_source(log_path)
    session.refresh(await source.read())
    await session.finish()

    out: dict[str, Any] = {
        "total_lines": session.line_count,
        "stats": session.latest_stats.model_dump(mode="json"),
        "navigation": [_nav_to_dict(e) for e in session.navigation],
    }
    if include_lines:
        if sev is not None:
            session.set_active_levels(sev)
        visible = session.visible_records()
        out["count"] = len(visible)
        out["lines"] = [_record_to_dict(r) for r in visible[:limit]]
        out["truncated"] = len(visible) > limit
    if search:
        out["search_matches"] = session.set_search_query(search)[:limit]
    return out


async def _refresh(session: LogSession, log_path: str, limit: int) -> dict[str, Any]:
    """Pull new content into ``session``; the caller holds the session lock."""
    lines_before = session.line_count
    nav_before = len(session.navigation)
    generation = session.generation
    source = open_source(log_path)
    session.refresh(await source.read())
    await session.drain()

    was_reset = session.generation != generation
    if was_reset:
        lines_before = 0
        nav_before = 0
    new_records = session.records[lines_before:]
    return {
        "reset": was_reset,
        "total_lines": session.line_count,
        "new_count": len(new_records),
        "lines": [_record_to_dict(r) for r in new_records[:limit]],
        "truncated": len(new_records) > limit,
        "navigation": [_nav_to_dict(e) for e in session.navigation[nav_before:]],
        "open_region": _open_region(session),
        "stats": session.latest_stats.model_dump(mode="json"),
    }


async def refresh_console_log_impl(*, log_path: str, limit: int | None = None) -> dict[str, Any]:
    """Implementation for the `refresh_console_log` MCP tool.

    Keeps a session per log and returns only what is new since the last
    call for the same log. Calls for the same log are serialized.
    """
    limit = _resolve_limit(limit)
    tracked = _session_for(log_path)
    async with tracked.lock:
        return await _refresh(tracked.session, log_path, limit)


async def search_console_log_impl(
    *, log_path: str, query: str, limit: int | None = None
) -> dict[str, Any]:
    """Search the live session for a log (refreshing it first)."""
    limit = _resolve_limit(limit)
    tracked = _session_for(log_path)
    async with tracked.lock:
        session = tracked.session
        await _refresh(session, log_path, 1)
        matches = session.set_search_query(query)
        return {
            "query": session.search_query,
            "count": len(matches),
            "lines": [_record_to_dict(session.records[i]) for i in matches[:limit]],
        }


async def filter_console_log_impl(
    *, log_path: str, levels: list[str], limit: int | None = None
) -> dict[str, Any]:
    """Filter the live session for a log by severity (refreshing it first)."""
    limit = _resolve_limit(limit)
    sev = _parse_levels(levels)
    if sev is None:
        raise ValueError("At least one level must be provided")
    tracked = _session_for(log_path)
    async with tracked.lock:
        session = tracked.session
        await _refresh(session, log_path, 1)
        matches = filter_lines(session.processor.history, sev)
        return {
            "levels": [level.value for level in sev],
            "count": len(matches),
            "lines": [_record_to_dict(session.records[m.index]) for m in matches[:limit]],
        }


async def reload_console_log_impl(
    *, log_path: str, url: str | None = None, limit: int | None = None
) -> dict[str, Any]:
    """Reset the session for ``log_path`` and stream the full log back in.

    ``url`` overrides where the full content is fetched from (for example a
    Jenkins ``consoleFull`` URL); by default ``log_path`` itself is read.
    """
    limit = _resolve_limit(limit)
    tracked = _session_for(log_path)
    async with tracked.lock:
        session = tracked.session
        source = open_source(url or log_path, chunk_size=session.config.read_chunk_size)
        try:
            await session.reload(source)
        except ReloadError as exc:
            return {
                "ok": False,
                "error": str(exc),
                "fallback": exc.fallback_location,
            }
        await session.drain()
        return {
            "ok": True,
            "total_lines": session.line_count,
            "lines": [_record_to_dict(r) for r in session.records[:limit]],
            "truncated": session.line_count > limit,
            "navigation": [_nav_to_dict(e) for e in session.navigation],
            "open_region": _open_region(session),
            "stats": session.latest_stats.model_dump(mode="json"),
        }


def reset_console_log_impl(*, log_path: str) -> dict[str, Any]:
    """Forget the live session for ``log_path``."""
    tracked = _SESSIONS.pop(_location_key(log_path), None)
    if tracked is not None:
        tracked.session.reset()
    return {"reset": tracked is not None}
