"""Deadline-bounded chunked rendering.

Newly ingested lines are queued and drained in work units. A unit processes
at most ``batch_size`` lines and stops early once its time slice is used
up, then yields back to the event loop; the next unit runs on a later loop
turn via ``call_soon``, never synchronously. Lines are always processed in
the order they were queued.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from .config import SessionConfig
from .pipeline import LineProcessor
from .records import NavigationEntry, PresentationRecord, StatsSnapshot

logger = logging.getLogger(__name__)


class Deadline(Protocol):
    """Host hint for how much time the next unit may use."""

    def time_remaining(self) -> float:
        """Milliseconds left in the current idle period."""
        ...


@dataclass(frozen=True, slots=True)
class FixedDeadline:
    budget_ms: float

    def time_remaining(self) -> float:
        return self.budget_ms


RecordsCallback = Callable[[list[PresentationRecord]], None]
StatsCallback = Callable[[StatsSnapshot], None]
RegionCallback = Callable[[NavigationEntry], None]


class ChunkedRenderScheduler:
    def __init__(
        self,
        processor: LineProcessor,
        *,
        config: SessionConfig | None = None,
        clock: Callable[[], float] = time.perf_counter,
        deadline_factory: Callable[[], Deadline] | None = None,
        on_records: RecordsCallback | None = None,
        on_stats: StatsCallback | None = None,
        on_region: RegionCallback | None = None,
        on_scroll_to_end: Callable[[], None] | None = None,
    ) -> None:
        self.processor = processor
        self.config = config or SessionConfig()
        self.auto_follow = self.config.auto_follow
        self._clock = clock
        self._deadline_factory = deadline_factory
        self._on_records = on_records
        self._on_stats = on_stats
        self._on_region = on_region
        self._on_scroll_to_end = on_scroll_to_end

        self._backlog: deque[tuple[str, int]] = deque()
        self._handle: asyncio.Handle | None = None
        self._pending_scroll = False
        self._last_stats = float("-inf")
        self.rendered_count = 0

    @property
    def backlog_size(self) -> int:
        return len(self._backlog)

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None

    @property
    def pending_scroll(self) -> bool:
        return self._pending_scroll

    def enqueue(self, lines: Iterable[tuple[str, int]], *, near_end: bool = True) -> None:
        """Queue ``(line, index)`` pairs and make sure a unit is scheduled.

        ``near_end`` tells whether the consumer was looking at the end of
        the output; together with auto-follow it arms a scroll-to-end that
        fires once the backlog is empty.
        """
        before = len(self._backlog)
        self._backlog.extend(lines)
        if len(self._backlog) == before:
            return
        if self.auto_follow and near_end:
            self._pending_scroll = True
        self._schedule()

    def run_unit(self, deadline: Deadline | None = None) -> int:
        """Run one work unit; return the number of lines processed."""
        if not self._backlog:
            return 0

        cfg = self.config
        budget_ms = deadline.time_remaining() if deadline is not None else cfg.slice_ms
        budget_s = max(cfg.min_slice_ms, budget_ms) / 1000.0

        records: list[PresentationRecord] = []
        completed: list[NavigationEntry] = []
        started = self._clock()
        while self._backlog and len(records) < cfg.batch_size:
            text, index = self._backlog.popleft()
            processed = self.processor.process(text, index)
            records.append(processed.record)
            completed.extend(NavigationEntry.from_region(r) for r in processed.completed)
            if self._clock() - started >= budget_s:
                break

        self.rendered_count += len(records)
        if self._on_records is not None:
            self._on_records(records)
        if self._on_region is not None:
            for entry in completed:
                self._on_region(entry)

        drained = not self._backlog
        now = self._clock()
        if drained or (now - self._last_stats) * 1000.0 > cfg.stats_interval_ms:
            self._last_stats = now
            if self._on_stats is not None:
                self._on_stats(self.processor.stats.snapshot())

        if drained:
            if self._pending_scroll and self.auto_follow and self._on_scroll_to_end is not None:
                self._on_scroll_to_end()
            self._pending_scroll = False
        else:
            self._schedule()
        return len(records)

    def run_pending(self) -> int:
        """Drain the backlog synchronously (no event loop required)."""
        total = 0
        while self._backlog:
            total += self.run_unit()
        return total

    async def drain(self) -> None:
        """Wait until every queued line has been processed."""
        while self._backlog:
            if self._handle is None:
                self._schedule()
            await asyncio.sleep(0)

    def reset(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._backlog.clear()
        self._pending_scroll = False
        self._last_stats = float("-inf")
        self.rendered_count = 0

    def _schedule(self) -> None:
        if self._handle is not None or not self._backlog:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the caller drives units via run_pending().
            return
        self._handle = loop.call_soon(self._on_turn)

    def _on_turn(self) -> None:
        self._handle = None
        deadline = self._deadline_factory() if self._deadline_factory is not None else None
        n = self.run_unit(deadline)
        logger.debug("Rendered %d lines (%d queued)", n, len(self._backlog))
