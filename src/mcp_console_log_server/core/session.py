"""Log session: one console stream and everything derived from it.

Wires the delta tracker, the per-line processor and the render scheduler
together and exposes the control surface (follow, filters, search, reset,
bulk reload). All calls are expected from a single event loop; hosts with
real threads must funnel calls through one writer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable

import httpx

from .classifier import SeverityClassifier
from .config import SessionConfig
from .ingest import DeltaTracker, IngestDelta
from .models import LogLevel
from .navigation import PatternTable, default_pattern_table
from .pipeline import LineProcessor
from .records import NavigationEntry, PresentationRecord, StatsSnapshot
from .regions import RegionExtractor
from .scheduler import (
    ChunkedRenderScheduler,
    Deadline,
    RecordsCallback,
    RegionCallback,
    StatsCallback,
)
from .search import FilterMatch, filter_lines, search_lines
from .sources import ContentSource

logger = logging.getLogger(__name__)

COLLAPSIBLE_LEVELS = frozenset({LogLevel.INFO, LogLevel.DEBUG})


class ReloadError(RuntimeError):
    """A bulk reload could not fetch the full content.

    The session state was already cleared; callers may retry or offer
    ``fallback_location`` instead.
    """

    def __init__(self, message: str, *, location: str, fallback_location: str | None = None):
        super().__init__(message)
        self.location = location
        self.fallback_location = fallback_location


class LogSession:
    def __init__(
        self,
        *,
        config: SessionConfig | None = None,
        classifier: SeverityClassifier | None = None,
        patterns: PatternTable | None = None,
        content_provider: Callable[[], str] | None = None,
        near_end: Callable[[], bool] | None = None,
        clock: Callable[[], float] = time.perf_counter,
        deadline_factory: Callable[[], Deadline] | None = None,
        on_records: RecordsCallback | None = None,
        on_stats: StatsCallback | None = None,
        on_region: RegionCallback | None = None,
        on_scroll_to_end: Callable[[], None] | None = None,
        on_reset: Callable[[], None] | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        self.tracker = DeltaTracker()
        self.processor = LineProcessor(
            classifier=classifier or SeverityClassifier(),
            extractor=RegionExtractor(table=patterns or default_pattern_table()),
        )
        self.scheduler = ChunkedRenderScheduler(
            self.processor,
            config=self.config,
            clock=clock,
            deadline_factory=deadline_factory,
            on_records=self._handle_records,
            on_stats=self._handle_stats,
            on_region=self._handle_region,
            on_scroll_to_end=self._handle_scroll,
        )
        self._content_provider = content_provider
        self._near_end = near_end or (lambda: True)
        self._on_records = on_records
        self._on_stats = on_stats
        self._on_region = on_region
        self._on_scroll_to_end = on_scroll_to_end
        self._on_reset = on_reset

        self.records: list[PresentationRecord] = []
        self.navigation: list[NavigationEntry] = []
        self.latest_stats: StatsSnapshot = self.processor.stats.snapshot()
        self.active_levels: set[LogLevel] = set(self.processor.classifier.levels())
        self.search_query = ""
        self.search_matches: list[int] = []

        # Bumped on every reset, so callers can tell old indices are stale.
        self.generation = 0
        self._reloading = False
        self._debounce: asyncio.TimerHandle | None = None

    # -- state ---------------------------------------------------------------

    @property
    def auto_follow(self) -> bool:
        return self.scheduler.auto_follow

    @property
    def is_reloading(self) -> bool:
        return self._reloading

    @property
    def line_count(self) -> int:
        """Lines rendered so far."""
        return len(self.records)

    # -- ingestion -----------------------------------------------------------

    def refresh(self, content: str | None = None) -> int:
        """Ingest the current content; return how many lines were queued.

        Ignored while a bulk reload is running.
        """
        if self._reloading:
            logger.debug("Refresh suppressed during reload")
            return 0
        if content is None:
            if self._content_provider is None:
                raise ValueError("refresh() needs content or a content_provider")
            content = self._content_provider()
        return self._apply(self.tracker.ingest(content))

    def notify_changed(self) -> None:
        """Tell the session its content may have changed (debounced)."""
        if self._reloading:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.refresh()
            return
        if self._debounce is not None:
            self._debounce.cancel()
        self._debounce = loop.call_later(self.config.debounce_s, self._debounced_refresh)

    def _debounced_refresh(self) -> None:
        self._debounce = None
        self.refresh()

    def _apply(self, delta: IngestDelta) -> int:
        if delta.reset:
            self._clear_derived()
        if delta.lines:
            self.scheduler.enqueue(delta.lines, near_end=self._near_end())
        return len(delta)

    async def drain(self) -> None:
        await self.scheduler.drain()

    async def finish(self) -> list[NavigationEntry]:
        """End of stream: flush the last line and close any open region."""
        self._apply(self.tracker.flush())
        await self.scheduler.drain()
        region = self.processor.finish()
        if region is not None:
            logger.debug("Closing unterminated region %r at end of input", region.name)
            self._handle_region(NavigationEntry.from_region(region))
        return list(self.navigation)

    # -- control surface -----------------------------------------------------

    def set_auto_follow(self, enabled: bool) -> None:
        self.scheduler.auto_follow = enabled
        if enabled:
            self._handle_scroll()

    def set_active_levels(self, levels: Iterable[LogLevel]) -> None:
        self.active_levels = set(levels)

    def toggle_level(self, level: LogLevel) -> bool:
        """Flip one level in the filter; return whether it is now shown."""
        if level in self.active_levels:
            self.active_levels.discard(level)
            return False
        self.active_levels.add(level)
        return True

    def collapse(self) -> None:
        """Hide INFO and DEBUG lines."""
        self.active_levels -= COLLAPSIBLE_LEVELS

    def expand(self) -> None:
        self.active_levels |= COLLAPSIBLE_LEVELS

    def filtered(self) -> list[FilterMatch]:
        return filter_lines(self.processor.history, self.active_levels)

    def visible_records(self) -> list[PresentationRecord]:
        return [self.records[m.index] for m in self.filtered()]

    def set_search_query(self, query: str | None) -> list[int]:
        self.search_query = (query or "").strip()
        self.search_matches = search_lines(
            self.processor.history,
            self.search_query,
            min_chars=self.config.search_min_chars,
        )
        return list(self.search_matches)

    def first_error(self) -> PresentationRecord | None:
        for record in self.records:
            if record.level == LogLevel.ERROR:
                return record
        return None

    def reset(self) -> None:
        """Drop everything: content, backlog, stats, regions and history."""
        self.tracker.reset()
        self._clear_derived()

    # -- sources -------------------------------------------------------------

    async def reload(self, source: ContentSource) -> int:
        """Replace all state with the full content streamed from ``source``.

        The stream is treated as complete: a last line without a newline is
        processed too.

        Ordinary refreshes are suppressed until the stream ends. On a
        transport failure the (already cleared) state is left as is and
        ``ReloadError`` is raised.
        """
        if self._reloading:
            logger.warning("Reload already in progress; ignoring request for %s", source.location)
            return 0

        self._reloading = True
        self.scheduler.auto_follow = True
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None
        logger.info("Reloading full log from %s", source.location)
        self.reset()
        try:
            async for chunk in source.stream():
                self._apply(self.tracker.append(chunk))
        except (httpx.HTTPError, OSError) as exc:
            logger.error("Failed to load full log from %s: %s", source.location, exc)
            raise ReloadError(
                f"Failed to load full log: {exc}",
                location=source.location,
                fallback_location=source.fallback_location,
            ) from exc
        finally:
            self._reloading = False
        # The full content is complete; an unterminated last line is still a line.
        self._apply(self.tracker.flush())
        logger.info("Reloaded %d lines from %s", self.tracker.line_count, source.location)
        return self.tracker.line_count

    async def follow(self, source: ContentSource, stop: asyncio.Event) -> None:
        """Poll ``source`` and refresh until ``stop`` is set."""
        cfg = self.config
        interval = cfg.poll_interval_s
        while not stop.is_set():
            if not self._reloading:
                try:
                    content = await source.read()
                except FileNotFoundError:
                    logger.debug("Waiting for %s to appear", source.location)
                else:
                    self.refresh(content)
                    if (
                        interval < cfg.slow_poll_interval_s
                        and self.scheduler.rendered_count > cfg.slow_poll_after_lines
                    ):
                        interval = cfg.slow_poll_interval_s
                        logger.info("Large log; polling every %.1fs", interval)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    # -- observers -----------------------------------------------------------

    def _clear_derived(self) -> None:
        self.generation += 1
        self.scheduler.reset()
        self.processor.reset()
        self.records = []
        self.navigation = []
        self.search_matches = []
        self._handle_stats(self.processor.stats.snapshot())
        if self._on_reset is not None:
            self._on_reset()

    def _handle_records(self, records: list[PresentationRecord]) -> None:
        self.records.extend(records)
        if self._on_records is not None:
            self._on_records(records)

    def _handle_region(self, entry: NavigationEntry) -> None:
        self.navigation.append(entry)
        if self._on_region is not None:
            self._on_region(entry)

    def _handle_stats(self, stats: StatsSnapshot) -> None:
        self.latest_stats = stats
        if self._on_stats is not None:
            self._on_stats(stats)

    def _handle_scroll(self) -> None:
        if self._on_scroll_to_end is not None:
            self._on_scroll_to_end()
