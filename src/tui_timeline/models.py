"""Data models for TUI Timeline."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path


class EntityKind(Enum):
    """Kind of a timeline row."""

    PROJECT = "project"
    TASK = "task"


class ProjectStatus(Enum):
    """Project status as reported by the tracker backend."""

    ACTIVE = "Active"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class TaskStatus(Enum):
    """Task status as reported by the tracker backend."""

    YET_TO_START = "Yet to Start"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class Scale(Enum):
    """Granularity of the unit sequence."""

    DAY = "day"
    MONTH = "month"


class SegmentKind(Enum):
    """Which side of the today marker a bar segment lies on."""

    ELAPSED = "elapsed"
    REMAINING = "remaining"


DAY_UNIT_CAP = 370
MONTH_UNIT_CAP = 60

DEFAULT_MIN_SPAN_DAYS = 13 * 7 - 1  # 13 weeks of day cells
PROJECT_DEFAULT_SPAN_DAYS = 30
DEFAULT_ANCHOR = date(2025, 8, 8)

STATUS_ICONS = {
    ProjectStatus.ACTIVE: "●",
    ProjectStatus.COMPLETED: "✔",
    ProjectStatus.ON_HOLD: "‖",
    TaskStatus.YET_TO_START: "○",
    TaskStatus.IN_PROGRESS: "◐",
    TaskStatus.COMPLETED: "●",
    TaskStatus.BLOCKED: "✖",
    TaskStatus.ON_HOLD: "‖",
    TaskStatus.CANCELLED: "–",
}


def parse_status(kind: EntityKind, value: str) -> ProjectStatus | TaskStatus:
    """Map a backend status string to its enum, falling back to the first member."""
    enum_cls = ProjectStatus if kind == EntityKind.PROJECT else TaskStatus
    value = (value or "").strip()
    for member in enum_cls:
        if member.value.lower() == value.lower():
            return member
    return next(iter(enum_cls))


@dataclass(frozen=True)
class TimelineEntity:
    """A project or task, unified for layout. Dates are kept as raw ISO strings."""

    id: str
    label: str
    kind: EntityKind = EntityKind.TASK
    start_date: str | None = None
    end_date: str | None = None
    status: ProjectStatus | TaskStatus = TaskStatus.YET_TO_START
    parent_id: str | None = None

    @property
    def is_project(self) -> bool:
        return self.kind == EntityKind.PROJECT

    @property
    def status_icon(self) -> str:
        return STATUS_ICONS.get(self.status, "?")


@dataclass(frozen=True)
class TimeRange:
    """Visible timeline span, inclusive on both ends."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True)
class Segment:
    """A drawable sub-range of a bar on the active scale."""

    start_index: float
    end_index: float
    kind: SegmentKind


@dataclass(frozen=True)
class WeekGroup:
    """A run of up to 7 day units, anchored to the range start."""

    label: str
    start_index: int
    end_index: int

    @property
    def length(self) -> int:
        return self.end_index - self.start_index


@dataclass
class RejectedRecord:
    """A record value that could not be used as-is."""

    source: str
    record_id: str
    field: str
    value: str
    message: str

    def __str__(self) -> str:
        where = f"{self.source}: " if self.source else ""
        rid = self.record_id or "?"
        return f"{where}[{rid}] {self.field}={self.value!r}: {self.message}"


@dataclass(frozen=True)
class BarLayout:
    """One chart row: the entity, its bar edges and segments.

    ``start_date``/``end_date`` are the dates the bar is drawn from, after
    inheritance and defaults. ``end_date`` is None when no bar is drawn.
    """

    entity: TimelineEntity
    depth: int
    start_index: float
    end_index: float
    segments: tuple[Segment, ...] = ()
    start_date: date | None = None
    end_date: date | None = None


@dataclass
class TimelineLayout:
    """Everything the rendering layer needs for a single pass."""

    range: TimeRange
    scale: Scale
    units: list[date]
    today: date
    today_index: float
    week_groups: list[WeekGroup] = field(default_factory=list)
    bars: list[BarLayout] = field(default_factory=list)
    rejected: list[RejectedRecord] = field(default_factory=list)

    @property
    def unit_count(self) -> int:
        return len(self.units)

    @property
    def visible_end(self) -> date:
        """Last date the unit sequence covers, which the unit cap may cut short."""
        if not self.units:
            return self.range.start
        last = self.units[-1]
        if self.scale == Scale.MONTH:
            last = last.replace(day=calendar.monthrange(last.year, last.month)[1])
        return min(last, self.range.end)

    @property
    def truncated(self) -> bool:
        return self.visible_end < self.range.end

    def children_of(self, project_id: str) -> list[BarLayout]:
        """Return task rows belonging to a project, in row order."""
        return [
            bar for bar in self.bars
            if bar.entity.parent_id == project_id and not bar.entity.is_project
        ]


@dataclass
class TimelineDataset:
    """Records loaded from a single export file."""

    path: Path | None = None
    entities: list[TimelineEntity] = field(default_factory=list)
    warnings: list[RejectedRecord] = field(default_factory=list)

    @property
    def projects(self) -> list[TimelineEntity]:
        return [e for e in self.entities if e.is_project]

    @property
    def tasks(self) -> list[TimelineEntity]:
        return [e for e in self.entities if not e.is_project]


@dataclass
class ProjectConfig:
    """Viewer configuration stored in .tui-timeline/config.toml."""

    name: str = ""
    anchor: date = DEFAULT_ANCHOR
    today: date | None = None
    min_span_days: int = DEFAULT_MIN_SPAN_DAYS
    scale: Scale = Scale.DAY
    label_width: int = 28
    records_file: str = ""
