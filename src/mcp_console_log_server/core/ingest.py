"""Delta tracking for append-only console content.

The tracker is the only way lines enter the pipeline: every call compares
the full content with what was seen before and hands out just the newly
completed lines, each exactly once, with continuing indices.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IngestDelta:
    """Newly completed ``(line, index)`` pairs from one ingestion call.

    ``reset`` is set when the content no longer extended what was seen
    before; indices then restart at 0 and callers must drop derived state.
    """

    lines: tuple[tuple[str, int], ...] = ()
    reset: bool = False

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self) -> Iterator[tuple[str, int]]:
        return iter(self.lines)


_EMPTY = IngestDelta()


class DeltaTracker:
    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._joined: str | None = ""
        self._line_count = 0
        # Text after the last newline: a line that may still be growing.
        self._partial = ""

    @property
    def content(self) -> str:
        """Everything seen so far."""
        if self._joined is None:
            self._joined = "".join(self._chunks)
            self._chunks = [self._joined]
        return self._joined

    @property
    def line_count(self) -> int:
        """Lines handed out so far (the next line's index)."""
        return self._line_count

    @property
    def pending_partial(self) -> str:
        return self._partial

    def ingest(self, content: str) -> IngestDelta:
        """Return the lines completed since the previous call.

        ``content`` is the full current text; it is expected to start with
        everything seen before. If it does not, the tracker starts over.
        """
        current = self.content
        if content == current:
            return _EMPTY

        reset = False
        if not content.startswith(current):
            logger.info(
                "Content no longer extends previous content (%d -> %d chars); starting over",
                len(current),
                len(content),
            )
            self.reset()
            reset = True
            current = ""

        suffix = content[len(current):]
        self._chunks = [content]
        self._joined = content
        return self._split(suffix, reset=reset)

    def append(self, chunk: str) -> IngestDelta:
        """Add a chunk known to follow the current content (streamed reloads)."""
        if not chunk:
            return _EMPTY
        self._chunks.append(chunk)
        self._joined = None
        return self._split(chunk, reset=False)

    def flush(self) -> IngestDelta:
        """End of stream: hand out the unterminated last line, if any."""
        if not self._partial:
            return _EMPTY
        tail = self._partial
        self._partial = ""
        return IngestDelta(lines=self._take([tail]))

    def reset(self) -> None:
        self._chunks = []
        self._joined = ""
        self._line_count = 0
        self._partial = ""

    def _split(self, suffix: str, *, reset: bool) -> IngestDelta:
        parts = (self._partial + suffix).split("\n")
        self._partial = parts.pop()
        if not parts:
            return IngestDelta(reset=reset)
        return IngestDelta(lines=self._take(parts), reset=reset)

    def _take(self, parts: list[str]) -> tuple[tuple[str, int], ...]:
        start = self._line_count
        out = tuple((line.rstrip("\r"), start + i) for i, line in enumerate(parts))
        self._line_count += len(parts)
        return out
