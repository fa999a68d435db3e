"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: parse a console log, pull incremental updates, search, filter, reload
- Resources: addressable data blobs (pattern tables, schemas, the log itself)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_console_log_server.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_console_log_server.prompts.registry import register_prompts
from mcp_console_log_server.resources.registry import register_resources
from mcp_console_log_server.tools.console import (
    filter_console_log_impl,
    parse_console_log_impl,
    refresh_console_log_impl,
    reload_console_log_impl,
    reset_console_log_impl,
    search_console_log_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv("CONSOLE_LOG_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("console-log", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def parse_console_log(
    log_path: str,
    levels: Sequence[str] | None = None,
    search: str | None = None,
    limit: int | None = None,
    include_lines: bool = True,
) -> dict[str, Any]:
    """Parse a whole build console log.

    Parameters
    ----------
    log_path:
        Local file (plain text or .gz) or an http(s) URL.
    levels:
        Only return lines of these severities (ERROR, WARN, INFO, DEBUG, OTHER).
        Case-insensitive.
    search:
        Case-insensitive substring; at least 2 characters.
    limit:
        Maximum number of lines returned (hard-capped in the implementation).
    include_lines:
        When false, only stats and navigation are returned.

    Returns
    -------
    dict:
        {"total_lines", "stats", "navigation", "count", "lines", "truncated", "search_matches"}
    """
    return await parse_console_log_impl(
        log_path=log_path,
        levels=list(levels) if levels else None,
        search=search,
        limit=limit,
        include_lines=include_lines,
    )


@mcp.tool()
async def refresh_console_log(log_path: str, limit: int | None = None) -> dict[str, Any]:
    """Return only the lines and regions added since the previous call for this log.

    Call repeatedly while a build is running. `reset` is true when the log was
    replaced (rotated or restarted) and numbering started over.
    """
    return await refresh_console_log_impl(log_path=log_path, limit=limit)


@mcp.tool()
async def search_console_log(log_path: str, query: str, limit: int | None = None) -> dict[str, Any]:
    """Case-insensitive substring search over a followed log (query of 2+ characters)."""
    return await search_console_log_impl(log_path=log_path, query=query, limit=limit)


@mcp.tool()
async def filter_console_log(
    log_path: str, levels: Sequence[str], limit: int | None = None
) -> dict[str, Any]:
    """Lines of a followed log whose severity is one of `levels`, in log order."""
    return await filter_console_log_impl(log_path=log_path, levels=list(levels), limit=limit)


@mcp.tool()
async def reload_console_log(
    log_path: str, url: str | None = None, limit: int | None = None
) -> dict[str, Any]:
    """Drop the followed state for a log and stream the full content back in.

    On failure the result has ok=false, the error, and a fallback location to
    try instead (for Jenkins, the consoleText URL).
    """
    return await reload_console_log_impl(log_path=log_path, url=url, limit=limit)


@mcp.tool()
def reset_console_log(log_path: str) -> dict[str, Any]:
    """Forget everything accumulated for a followed log."""
    return reset_console_log_impl(log_path=log_path)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
