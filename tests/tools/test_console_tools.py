from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from mcp_console_log_server.tools import console
from mcp_console_log_server.tools.console import (
    filter_console_log_impl,
    parse_console_log_impl,
    refresh_console_log_impl,
    reload_console_log_impl,
    reset_console_log_impl,
    search_console_log_impl,
)


@pytest.fixture(autouse=True)
def _clear_sessions():
    console._SESSIONS.clear()
    yield
    console._SESSIONS.clear()


def _write(path: Path, lines: list[str]) -> None:
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


@pytest.mark.asyncio
async def test_parse_console_log_filters_and_navigation(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    out = await parse_console_log_impl(log_path=str(log), levels=["error"], search="login")

    assert out["total_lines"] == 8
    assert out["count"] == 2
    assert [line["index"] for line in out["lines"]] == [5, 6]
    assert out["lines"][0]["color"] == "#F90636"
    assert out["truncated"] is False
    assert [(n["name"], n["outcome"]) for n in out["navigation"]] == [
        ("LoginTest", "passed"),
        ("FailTest", "failed"),
    ]
    assert out["stats"]["level_counts"]["ERROR"] == 2
    assert out["stats"]["total"] == 8
    assert out["search_matches"] == [1, 3]


@pytest.mark.asyncio
async def test_parse_console_log_warning_alias_and_limit(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    out = await parse_console_log_impl(log_path=str(log), levels=["Warning"])
    assert [line["text"] for line in out["lines"]] == ["[WARN] Deprecated API"]

    out = await parse_console_log_impl(log_path=str(log), limit=3)
    assert out["count"] == 8
    assert len(out["lines"]) == 3
    assert out["truncated"] is True


@pytest.mark.asyncio
async def test_parse_console_log_without_lines(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    out = await parse_console_log_impl(log_path=str(log), include_lines=False)
    assert "lines" not in out
    assert len(out["navigation"]) == 2


@pytest.mark.asyncio
async def test_parse_console_log_pending_region_at_end(tmp_path: Path) -> None:
    log = tmp_path / "console.log"
    log.write_text("Starting TestCase: Slow\nworking", encoding="utf-8")

    out = await parse_console_log_impl(log_path=str(log))
    assert out["total_lines"] == 2
    (nav,) = out["navigation"]
    assert (nav["outcome"], nav["end_line"], nav["anchor_id"]) == ("pending", 1, "test0")


@pytest.mark.asyncio
async def test_parse_console_log_rejects_bad_input(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    with pytest.raises(ValueError, match="Unknown log level"):
        await parse_console_log_impl(log_path=str(log), levels=["fatal"])
    with pytest.raises(ValueError, match="limit"):
        await parse_console_log_impl(log_path=str(log), limit=0)
    with pytest.raises(FileNotFoundError):
        await parse_console_log_impl(log_path=str(tmp_path / "missing.log"))


@pytest.mark.asyncio
async def test_refresh_console_log_returns_only_new_lines(tmp_path: Path, console_lines) -> None:
    log = tmp_path / "console.log"
    _write(log, console_lines[:5])

    first = await refresh_console_log_impl(log_path=str(log))
    assert first["reset"] is False
    assert first["new_count"] == 5
    assert [n["name"] for n in first["navigation"]] == ["LoginTest"]
    assert first["open_region"] == {"name": "FailTest", "kind": "test", "start_line": 4}

    idle = await refresh_console_log_impl(log_path=str(log))
    assert idle["new_count"] == 0
    assert idle["navigation"] == []

    _write(log, console_lines)
    second = await refresh_console_log_impl(log_path=str(log))
    assert [line["index"] for line in second["lines"]] == [5, 6, 7]
    assert [n["name"] for n in second["navigation"]] == ["FailTest"]
    assert second["open_region"] is None
    assert second["total_lines"] == 8


@pytest.mark.asyncio
async def test_refresh_console_log_detects_replaced_log(tmp_path: Path, console_lines) -> None:
    log = tmp_path / "console.log"
    _write(log, console_lines)
    await refresh_console_log_impl(log_path=str(log))

    _write(log, ["new build"])
    out = await refresh_console_log_impl(log_path=str(log))
    assert out["reset"] is True
    assert out["total_lines"] == 1
    assert out["lines"][0]["index"] == 0


@pytest.mark.asyncio
async def test_search_and_filter_follow_the_session(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    found = await search_console_log_impl(log_path=str(log), query="TESTCASE")
    assert found["count"] == 4
    assert [line["index"] for line in found["lines"]] == [1, 3, 4, 6]

    short = await search_console_log_impl(log_path=str(log), query="x")
    assert short["count"] == 0

    filtered = await filter_console_log_impl(log_path=str(log), levels=["ERROR", "warn"])
    assert filtered["levels"] == ["ERROR", "WARN"]
    assert [line["index"] for line in filtered["lines"]] == [5, 6, 7]

    with pytest.raises(ValueError):
        await filter_console_log_impl(log_path=str(log), levels=[])


@pytest.mark.asyncio
async def test_reload_console_log(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)
    await refresh_console_log_impl(log_path=str(log))

    out = await reload_console_log_impl(log_path=str(log))
    assert out["ok"] is True
    assert out["total_lines"] == 8
    assert len(out["navigation"]) == 2

    failed = await reload_console_log_impl(log_path=str(log), url=str(tmp_path / "gone.log"))
    assert failed["ok"] is False
    assert "gone.log" in failed["error"]
    assert failed["fallback"] is None


@pytest.mark.asyncio
async def test_reset_console_log(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)
    await refresh_console_log_impl(log_path=str(log))

    assert reset_console_log_impl(log_path=str(log)) == {"reset": True}
    assert reset_console_log_impl(log_path=str(log)) == {"reset": False}

    again = await refresh_console_log_impl(log_path=str(log))
    assert again["new_count"] == 8


@pytest.mark.asyncio
async def test_concurrent_refreshes_deliver_each_line_once(tmp_path: Path, write_console_log) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    first, second = await asyncio.gather(
        refresh_console_log_impl(log_path=str(log)),
        refresh_console_log_impl(log_path=str(log)),
    )

    assert first["new_count"] + second["new_count"] == 8
    assert sorted([first["new_count"], second["new_count"]]) == [0, 8]
    assert len(first["navigation"]) + len(second["navigation"]) == 2


@pytest.mark.asyncio
async def test_concurrent_search_and_refresh_share_one_session(
    tmp_path: Path, write_console_log
) -> None:
    log = tmp_path / "console.log"
    write_console_log(log)

    refreshed, found, filtered = await asyncio.gather(
        refresh_console_log_impl(log_path=str(log)),
        search_console_log_impl(log_path=str(log), query="testcase"),
        filter_console_log_impl(log_path=str(log), levels=["ERROR"]),
    )

    assert refreshed["new_count"] == 8
    assert found["count"] == 4
    assert filtered["count"] == 2
    assert len(console._SESSIONS) == 1


@pytest.mark.asyncio
async def test_reload_without_trailing_newline(tmp_path: Path) -> None:
    log = tmp_path / "console.log"
    log.write_text("Starting TestCase: A\nSUMMARY of TestCase [A]: PASSED", encoding="utf-8")

    out = await reload_console_log_impl(log_path=str(log))

    assert out["ok"] is True
    assert out["total_lines"] == 2
    assert [(n["name"], n["outcome"], n["end_line"]) for n in out["navigation"]] == [
        ("A", "passed", 1)
    ]
    assert out["open_region"] is None


@pytest.mark.asyncio
async def test_least_recently_used_session_is_evicted(
    tmp_path: Path, write_console_log, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(console, "MAX_SESSIONS", 2)
    logs = []
    for name in ("a.log", "b.log", "c.log"):
        path = tmp_path / name
        write_console_log(path)
        logs.append(str(path))

    await refresh_console_log_impl(log_path=logs[0])
    await refresh_console_log_impl(log_path=logs[1])
    await refresh_console_log_impl(log_path=logs[0])
    await refresh_console_log_impl(log_path=logs[2])

    assert len(console._SESSIONS) == 2
    assert (await refresh_console_log_impl(log_path=logs[0]))["new_count"] == 0
    # b.log was evicted, so it starts over.
    assert (await refresh_console_log_impl(log_path=logs[1]))["new_count"] == 8
