"""Output records handed to consumers (renderers, MCP clients)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .models import ClassifiedLine, LogLevel, RegionOutcome, RegionRecord


class PresentationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int = Field(description="Zero-based position in the full line sequence.")
    text: str = Field(description="Raw line text.")
    level: LogLevel = Field(description="Computed severity level.")
    color: str = Field(default="", description="Display color for the level, empty for OTHER.")
    is_region_boundary: bool = Field(
        default=False, description="True when the line starts or ends a navigable region."
    )
    element_id: str = Field(description="Stable identifier for the rendered line.")
    region_name: str = Field(default="", description="Region containing the line, if any.")

    @classmethod
    def from_line(cls, line: ClassifiedLine) -> PresentationRecord:
        return cls(
            index=line.index,
            text=line.text,
            level=line.level,
            color=line.color,
            is_region_boundary=line.is_region_boundary,
            element_id=line.element_id,
            region_name=line.region_name,
        )


class NavigationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Region display name.")
    kind: str = Field(description="Region kind: test, stage or step.")
    outcome: RegionOutcome = Field(description="pending, passed or failed.")
    anchor_id: str = Field(description="Element id of the region's start line.")
    start_line: int = Field(description="Index of the region's first line.")
    end_line: int | None = Field(default=None, description="Index of the region's last line.")
    icon: str = Field(default="", description="Display icon for the region kind.")

    @classmethod
    def from_region(cls, region: RegionRecord) -> NavigationEntry:
        return cls(
            name=region.name,
            kind=region.kind,
            outcome=region.outcome,
            anchor_id=region.anchor_id,
            start_line=region.start_line,
            end_line=region.end_line,
            icon=region.icon,
        )


class StatsSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    level_counts: dict[LogLevel, int] = Field(
        default_factory=dict, description="Lines seen per severity level."
    )
    total: int = Field(default=0, description="Lines seen in total.")
