"""Running per-level line counts."""

from __future__ import annotations

from collections.abc import Iterable

from .models import LogLevel
from .records import StatsSnapshot


class AggregateStats:
    """Counts only go up, one increment per line; ``reset`` zeroes them."""

    def __init__(self, levels: Iterable[LogLevel] = tuple(LogLevel)) -> None:
        self._levels = tuple(levels)
        self._counts: dict[LogLevel, int] = dict.fromkeys(self._levels, 0)
        self.total = 0

    def record(self, level: LogLevel) -> None:
        self._counts[level] = self._counts.get(level, 0) + 1
        self.total += 1

    def count(self, level: LogLevel) -> int:
        return self._counts.get(level, 0)

    def reset(self) -> None:
        self._counts = dict.fromkeys(self._levels, 0)
        self.total = 0

    def snapshot(self) -> StatsSnapshot:
        return StatsSnapshot(level_counts=dict(self._counts), total=self.total)
