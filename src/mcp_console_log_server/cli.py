from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

import httpx

from mcp_console_log_server.core.config import resolve_session_config
from mcp_console_log_server.core.models import LogLevel
from mcp_console_log_server.core.records import NavigationEntry, PresentationRecord
from mcp_console_log_server.core.render import (
    render_html_line,
    render_html_navigation,
    render_text_line,
    render_text_navigation,
    render_text_stats,
)
from mcp_console_log_server.core.session import LogSession
from mcp_console_log_server.core.sources import open_source


def _parse_levels(s: str) -> list[LogLevel]:
    out: list[LogLevel] = []
    for part in s.split(","):
        name = part.strip().upper()
        if not name:
            continue
        if name == "WARNING":
            name = "WARN"
        try:
            out.append(LogLevel(name))
        except ValueError as e:
            raise argparse.ArgumentTypeError(
                "Invalid level. Allowed: ERROR, WARN, INFO, DEBUG, OTHER"
            ) from e
    if not out:
        raise argparse.ArgumentTypeError("At least one level must be provided")
    return out


def _configure_logging() -> None:
    level_name = os.getenv("CONSOLE_LOG_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _render(record: PresentationRecord, fmt: str) -> str:
    return render_html_line(record) if fmt == "html" else render_text_line(record)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Classify and navigate a CI build console log.")
    p.add_argument("log_path", help="Local file (plain or .gz) or http(s) URL")
    p.add_argument(
        "--levels",
        type=_parse_levels,
        default=None,
        help="Comma-separated levels to show (e.g., ERROR,WARN). Default: all",
    )
    p.add_argument("--search", default=None, help="Only show lines containing this text (2+ chars)")
    p.add_argument("--format", dest="fmt", choices=["text", "html"], default="text")
    p.add_argument("--follow", action="store_true", help="Keep polling the log for new lines")
    p.add_argument("--no-navigation", dest="navigation", action="store_false", help="Hide the region list")
    p.add_argument("--no-stats", dest="stats", action="store_false", help="Hide the level counts")
    return p


async def _run_once(args: argparse.Namespace) -> None:
    session = LogSession(config=resolve_session_config())
    source = open_source(args.log_path)
    session.refresh(await source.read())
    navigation = await session.finish()

    if args.levels:
        session.set_active_levels(args.levels)
    visible = session.visible_records()
    if args.search:
        matches = set(session.set_search_query(args.search))
        visible = [r for r in visible if r.index in matches]

    for record in visible:
        print(_render(record, args.fmt))

    if args.navigation and navigation:
        print()
        for entry in navigation:
            print(render_html_navigation(entry) if args.fmt == "html" else render_text_navigation(entry))
    if args.stats:
        print(f"\n{render_text_stats(session.latest_stats)}")


async def _run_follow(args: argparse.Namespace) -> None:
    levels = set(args.levels) if args.levels else None
    needle = args.search.lower() if args.search and len(args.search.strip()) >= 2 else None

    def on_records(records: list[PresentationRecord]) -> None:
        for record in records:
            if levels is not None and record.level not in levels:
                continue
            if needle is not None and needle not in record.text.lower():
                continue
            print(_render(record, args.fmt), flush=True)

    def on_region(entry: NavigationEntry) -> None:
        print(render_text_navigation(entry), flush=True)

    session = LogSession(
        config=resolve_session_config(),
        on_records=on_records,
        on_region=on_region if args.navigation else None,
    )
    stop = asyncio.Event()
    try:
        await session.follow(open_source(args.log_path), stop)
    finally:
        stop.set()
        if args.stats:
            print(f"\n{render_text_stats(session.latest_stats)}")


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    _configure_logging()

    try:
        if args.follow:
            asyncio.run(_run_follow(args))
        else:
            asyncio.run(_run_once(args))
    except KeyboardInterrupt:
        pass
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except (ValueError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
