"""Per-line processing: classification, region matching and bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field

from .classifier import SeverityClassifier
from .models import ClassifiedLine, RegionRecord
from .records import PresentationRecord
from .regions import RegionExtractor
from .stats import AggregateStats


@dataclass(frozen=True, slots=True)
class ProcessedLine:
    line: ClassifiedLine
    record: PresentationRecord
    completed: tuple[RegionRecord, ...] = ()


def element_id_for(index: int, *, is_start: bool) -> str:
    return f"test{index}" if is_start else f"line-{index}"


@dataclass(slots=True)
class LineProcessor:
    """Owns everything derived from the line stream.

    Lines must be fed in strictly increasing index order; the history list
    is append-only and ``history[i].index == i`` holds between resets.
    """

    classifier: SeverityClassifier = field(default_factory=SeverityClassifier)
    extractor: RegionExtractor = field(default_factory=RegionExtractor)
    stats: AggregateStats = field(default_factory=AggregateStats)
    history: list[ClassifiedLine] = field(default_factory=list)

    @property
    def regions(self) -> list[RegionRecord]:
        return self.extractor.regions

    def process(self, text: str, index: int) -> ProcessedLine:
        cls = self.classifier.classify(text)
        self.stats.record(cls.level)

        info = self.extractor.feed(index, text)
        line = ClassifiedLine(
            index=index,
            text=text,
            level=cls.level,
            color=cls.color,
            region_name=info.region_name,
            element_id=element_id_for(index, is_start=info.is_start),
            is_region_boundary=info.is_boundary,
        )
        self.history.append(line)
        return ProcessedLine(
            line=line,
            record=PresentationRecord.from_line(line),
            completed=info.completed,
        )

    def finish(self) -> RegionRecord | None:
        return self.extractor.finish()

    def reset(self) -> None:
        self.extractor.reset()
        self.stats.reset()
        self.history = []
