"""Filter and search over the accumulated line history.

Both functions are read-only and recompute from scratch on every call.
They accept classified lines or plain strings (the position in the sequence
is then the index, and plain strings are classified on the fly).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .classifier import SeverityClassifier
from .models import ClassifiedLine, LogLevel

MIN_QUERY_CHARS = 2

_DEFAULT_CLASSIFIER = SeverityClassifier()


@dataclass(frozen=True, slots=True)
class FilterMatch:
    line: str
    index: int
    level: LogLevel


def _iter_items(
    lines: Iterable[ClassifiedLine | str],
    classifier: SeverityClassifier,
) -> Iterable[tuple[str, int, LogLevel]]:
    for pos, item in enumerate(lines):
        if isinstance(item, ClassifiedLine):
            yield item.text, item.index, item.level
        else:
            yield item, pos, classifier.classify(item).level


def filter_lines(
    lines: Iterable[ClassifiedLine | str],
    active_levels: Iterable[LogLevel],
    *,
    classifier: SeverityClassifier | None = None,
) -> list[FilterMatch]:
    """Lines whose level is in ``active_levels``, in original order."""
    allowed = set(active_levels)
    if not allowed:
        return []
    clf = classifier or _DEFAULT_CLASSIFIER
    return [
        FilterMatch(line=text, index=index, level=level)
        for text, index, level in _iter_items(lines, clf)
        if level in allowed
    ]


def search_lines(
    lines: Sequence[ClassifiedLine | str],
    query: str | None,
    *,
    min_chars: int = MIN_QUERY_CHARS,
) -> list[int]:
    """Indices of lines containing ``query`` (case-insensitive).

    Queries shorter than ``min_chars`` return nothing.
    """
    if not query or len(query) < min_chars:
        return []
    needle = query.lower()
    out: list[int] = []
    for pos, item in enumerate(lines):
        if isinstance(item, ClassifiedLine):
            if needle in item.text.lower():
                out.append(item.index)
        elif needle in item.lower():
            out.append(pos)
    return out
