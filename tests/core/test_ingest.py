from __future__ import annotations

from mcp_console_log_server.core.ingest import DeltaTracker


def test_ingest_hands_out_each_line_once() -> None:
    tracker = DeltaTracker()

    first = tracker.ingest("a\nb\n")
    assert list(first) == [("a", 0), ("b", 1)]
    assert not first.reset

    second = tracker.ingest("a\nb\nc\n")
    assert list(second) == [("c", 2)]
    assert tracker.line_count == 3


def test_identical_content_is_a_no_op() -> None:
    tracker = DeltaTracker()
    tracker.ingest("a\n")
    delta = tracker.ingest("a\n")
    assert len(delta) == 0
    assert not delta.reset


def test_unterminated_line_is_held_back() -> None:
    tracker = DeltaTracker()

    assert list(tracker.ingest("a\nhal")) == [("a", 0)]
    assert tracker.pending_partial == "hal"

    assert list(tracker.ingest("a\nhalf line\nnext")) == [("half line", 1)]
    assert tracker.pending_partial == "next"

    assert list(tracker.flush()) == [("next", 2)]
    assert tracker.pending_partial == ""
    assert len(tracker.flush()) == 0


def test_non_prefix_content_starts_over() -> None:
    tracker = DeltaTracker()
    tracker.ingest("one\ntwo\n")

    delta = tracker.ingest("other\n")
    assert delta.reset
    assert list(delta) == [("other", 0)]
    assert tracker.line_count == 1
    assert tracker.content == "other\n"


def test_shrunk_to_empty_resets() -> None:
    tracker = DeltaTracker()
    tracker.ingest("one\n")

    delta = tracker.ingest("")
    assert delta.reset
    assert len(delta) == 0
    assert tracker.line_count == 0


def test_append_chunks_across_line_boundaries() -> None:
    tracker = DeltaTracker()
    out = []
    for chunk in ["fi", "rst\nsec", "ond\r\n", "third"]:
        out.extend(tracker.append(chunk))
    out.extend(tracker.flush())

    assert out == [("first", 0), ("second", 1), ("third", 2)]
    assert tracker.content == "first\nsecond\r\nthird"


def test_ingest_after_append_continues_numbering() -> None:
    tracker = DeltaTracker()
    tracker.append("a\n")
    tracker.append("b\n")

    assert list(tracker.ingest("a\nb\nc\n")) == [("c", 2)]


def test_empty_lines_are_lines() -> None:
    tracker = DeltaTracker()
    assert list(tracker.ingest("\n\nx\n")) == [("", 0), ("", 1), ("x", 2)]
