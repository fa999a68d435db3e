"""Region extraction state machine.

Tracks at most one open region. A start marker while a region is open
force-closes the old region on the previous line (outcome pending) before
opening the new one; nesting is flattened, not stacked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .models import RegionOutcome, RegionRecord
from .navigation import NavigationPattern, PatternTable, default_pattern_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LineRegionInfo:
    """What the state machine decided for one line."""

    region_name: str = ""
    is_start: bool = False
    is_end: bool = False
    completed: tuple[RegionRecord, ...] = ()

    @property
    def is_boundary(self) -> bool:
        return self.is_start or self.is_end


@dataclass(slots=True)
class RegionExtractor:
    table: PatternTable = field(default_factory=default_pattern_table)
    regions: list[RegionRecord] = field(default_factory=list)
    _open: RegionRecord | None = None
    _open_pattern: NavigationPattern | None = None
    _last_index: int = -1

    @property
    def open_region(self) -> RegionRecord | None:
        return self._open

    def feed(self, index: int, line: str) -> LineRegionInfo:
        """Advance the machine by one line and report the outcome."""
        self._last_index = index
        completed: list[RegionRecord] = []

        start = self.table.match_start(line)
        if start is not None:
            if self._open is not None:
                logger.debug(
                    "Force-closing region %r at line %d (new start %r)",
                    self._open.name,
                    index - 1,
                    start.name,
                )
                completed.append(self._close(index - 1, RegionOutcome.PENDING))
            self._open = RegionRecord(
                name=start.name,
                kind=start.pattern.kind,
                start_line=index,
                icon=start.pattern.icon,
            )
            self._open_pattern = start.pattern

        region_name = self._open.name if self._open is not None else ""

        is_end = False
        if self._open is not None:
            end = self.table.match_end(line, self._open_pattern)
            if end.matched:
                completed.append(self._close(index, end.outcome))
                is_end = True

        return LineRegionInfo(
            region_name=region_name,
            is_start=start is not None,
            is_end=is_end,
            completed=tuple(completed),
        )

    def finish(self) -> RegionRecord | None:
        """End of input: close a still-open region at the last line seen."""
        if self._open is None:
            return None
        return self._close(self._last_index, RegionOutcome.PENDING)

    def reset(self) -> None:
        self.regions = []
        self._open = None
        self._open_pattern = None
        self._last_index = -1

    def _close(self, end_line: int, outcome: RegionOutcome) -> RegionRecord:
        region = self._open
        assert region is not None
        region.end_line = end_line
        region.outcome = outcome
        self.regions.append(region)
        self._open = None
        self._open_pattern = None
        return region
