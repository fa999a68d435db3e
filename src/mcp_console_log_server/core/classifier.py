"""Severity classification based on level keywords."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from .models import LevelStyle, LogLevel

LEVEL_STYLES: dict[LogLevel, LevelStyle] = {
    LogLevel.ERROR: LevelStyle(color="#F90636", priority=1),
    LogLevel.WARN: LevelStyle(color="#F97106", priority=2),
    LogLevel.INFO: LevelStyle(color="#061CF9", priority=3),
    LogLevel.DEBUG: LevelStyle(color="#C906F9", priority=4),
}

# Tested in this order; the first level with a contained keyword wins.
DEFAULT_KEYWORDS: dict[LogLevel, tuple[str, ...]] = {
    LogLevel.ERROR: ("ERROR",),
    LogLevel.WARN: ("WARN",),
    LogLevel.INFO: ("INFO",),
    LogLevel.DEBUG: ("DEBUG",),
}


@dataclass(frozen=True, slots=True)
class Classification:
    level: LogLevel
    color: str


_OTHER = Classification(level=LogLevel.OTHER, color="")


@dataclass(frozen=True, slots=True)
class SeverityClassifier:
    """Map a line to a level by case-sensitive substring containment.

    Levels are tried in table order, not by where the keyword appears in the
    line, so ``"WARN ... ERROR"`` is still an ERROR line.
    """

    keywords: Mapping[LogLevel, Sequence[str]] = field(
        default_factory=lambda: dict(DEFAULT_KEYWORDS)
    )
    styles: Mapping[LogLevel, LevelStyle] = field(default_factory=lambda: dict(LEVEL_STYLES))

    def classify(self, line: str) -> Classification:
        for level, keys in self.keywords.items():
            if any(k in line for k in keys):
                style = self.styles.get(level)
                return Classification(level=level, color=style.color if style else "")
        return _OTHER

    def levels(self) -> list[LogLevel]:
        """Levels this classifier can produce, OTHER last."""
        return [*self.keywords.keys(), LogLevel.OTHER]


_DEFAULT = SeverityClassifier()


def classify(line: str) -> Classification:
    """Classify a line with the default keyword table."""
    return _DEFAULT.classify(line)


def level_priority(level: LogLevel) -> int | None:
    style = LEVEL_STYLES.get(level)
    return style.priority if style else None
