"""Timeline layout engine.

Turns project/task date ranges into positions on a discrete scale:

- ``resolve_range``  : visible span from the anchor and all end dates
- ``build_units``    : day or first-of-month sequence for that span
- ``index_of``       : date -> fractional position on the scale
- ``percent``        : position -> CSS percentage of the track width
- ``partition``      : bar -> elapsed / remaining segments at today
- ``group_weeks``    : day units -> "Week N" header groups
- ``week_of``        : date -> its week group with first and last day

Every function is pure and total: malformed or out-of-range input is
recovered with a safe default instead of raising.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from tui_timeline.models import (
    DAY_UNIT_CAP,
    DEFAULT_MIN_SPAN_DAYS,
    MONTH_UNIT_CAP,
    PROJECT_DEFAULT_SPAN_DAYS,
    BarLayout,
    RejectedRecord,
    Scale,
    Segment,
    SegmentKind,
    TimelineEntity,
    TimelineLayout,
    TimeRange,
    WeekGroup,
)

logger = logging.getLogger(__name__)

DateLike = date | str | None


def _clamp(n: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, n))


def parse_date(value: object) -> date | None:
    """Parse a date, an ISO date string or an ISO datetime string. None on failure."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        # Backend timestamps look like 2025-08-20T00:00:00.000Z
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _reject(
    rejected: list[RejectedRecord] | None,
    entity: TimelineEntity,
    field: str,
    value: object,
    message: str,
) -> None:
    logger.debug("%s %s: %s=%r %s", entity.kind.value, entity.id, field, value, message)
    if rejected is not None:
        rejected.append(
            RejectedRecord(
                source=entity.kind.value,
                record_id=entity.id,
                field=field,
                value="" if value is None else str(value),
                message=message,
            )
        )


def resolved_end(
    entity: TimelineEntity,
    anchor: date,
    rejected: list[RejectedRecord] | None = None,
) -> date | None:
    """End date used for range resolution.

    Projects without a due date end 30 days after the anchor. Tasks without
    an end date and unparsable dates of either kind resolve to None.
    """
    raw = entity.end_date
    if raw is None or not str(raw).strip():
        if entity.is_project:
            return anchor + timedelta(days=PROJECT_DEFAULT_SPAN_DAYS)
        _reject(rejected, entity, "end_date", raw, "missing end date, skipped")
        return None
    parsed = parse_date(raw)
    if parsed is None:
        _reject(rejected, entity, "end_date", raw, "unparsable end date, skipped")
    return parsed


def resolve_range(
    anchor: date,
    entities: Iterable[TimelineEntity],
    min_span_days: int = DEFAULT_MIN_SPAN_DAYS,
    rejected: list[RejectedRecord] | None = None,
) -> TimeRange:
    """Compute the visible span: starts at *anchor*, ends at the latest end date.

    The span is never shorter than *min_span_days*.
    """
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    end = anchor + timedelta(days=max(0, min_span_days))
    for entity in entities:
        candidate = resolved_end(entity, anchor, rejected)
        if candidate is not None and candidate > end:
            end = candidate
    return TimeRange(start=anchor, end=end)


def _next_month(d: date) -> date:
    return date(d.year + d.month // 12, d.month % 12 + 1, 1)


def build_units(time_range: TimeRange, scale: Scale) -> list[date]:
    """Build the unit sequence for *scale*, capped to bound rendering cost."""
    units: list[date] = []
    if scale == Scale.MONTH:
        cur = time_range.start.replace(day=1)
        last = time_range.end.replace(day=1)
        while cur <= last and len(units) < MONTH_UNIT_CAP:
            units.append(cur)
            cur = _next_month(cur)
        return units

    cur = time_range.start
    while cur <= time_range.end and len(units) < DAY_UNIT_CAP:
        units.append(cur)
        cur += timedelta(days=1)
    return units


def index_of(value: DateLike, units: list[date], scale: Scale) -> float:
    """Position of a date on the scale, clamped to ``[0, len(units)]``.

    Day scale yields whole days from the first unit. Month scale yields the
    month offset plus ``day / days_in_month``; months outside the sequence
    clamp to either end. Unparsable dates map to 0.
    """
    d = parse_date(value)
    if d is None or not units:
        return 0
    count = len(units)
    first = units[0]
    if scale == Scale.MONTH:
        offset = (d.year - first.year) * 12 + (d.month - first.month)
        if offset < 0:
            return 0
        if offset >= count:
            return count
        days_in_month = calendar.monthrange(d.year, d.month)[1]
        return offset + d.day / days_in_month
    return int(_clamp((d - first).days, 0, count))


def today_index(today: DateLike, units: list[date], scale: Scale) -> float:
    """Position of the today marker. Centred within its cell on the day scale."""
    if scale == Scale.MONTH:
        return index_of(today, units, scale)
    d = parse_date(today)
    if d is None or not units:
        return 0
    return _clamp((d - units[0]).days + 0.5, 0, len(units))


def bar_indices(
    start: DateLike, end: DateLike, units: list[date], scale: Scale
) -> tuple[float, float]:
    """Bar edges on the scale. The end day's cell is included on the day scale."""
    start_idx = index_of(start, units, scale)
    end_d = parse_date(end)
    if end_d is None or not units:
        return start_idx, start_idx
    if scale == Scale.DAY:
        end_idx: float = _clamp((end_d - units[0]).days + 1, 0, len(units))
    else:
        end_idx = index_of(end_d, units, scale)
    return start_idx, max(start_idx, end_idx)


def fraction(index: float, unit_count: int) -> float:
    """Clamped share of the track width covered up to *index*."""
    if unit_count <= 0:
        return 0.0
    return _clamp(index, 0, unit_count) / unit_count


def percent(index: float, unit_count: int) -> str:
    """Format *index* as a CSS percentage of the track width."""
    text = f"{fraction(index, unit_count) * 100:.4f}".rstrip("0").rstrip(".")
    return f"{text}%"


def column(index: float, unit_count: int, width: int) -> int:
    """Terminal column for *index* on a track *width* characters wide."""
    return int(fraction(index, unit_count) * width + 0.5)


def partition(start_index: float, end_index: float, today: float) -> list[Segment]:
    """Split a bar at *today* into at most an elapsed and a remaining segment."""
    if end_index <= start_index:
        return []
    split = _clamp(today, start_index, end_index)
    segments: list[Segment] = []
    if split > start_index:
        segments.append(Segment(start_index, split, SegmentKind.ELAPSED))
    if end_index > split:
        segments.append(Segment(split, end_index, SegmentKind.REMAINING))
    return segments


def group_weeks(unit_count: int) -> list[WeekGroup]:
    """Partition day units into runs of 7 starting at index 0.

    Boundaries follow the range start, not ISO weeks.
    """
    groups: list[WeekGroup] = []
    start = 0
    number = 1
    while start < unit_count:
        end = min(unit_count, start + 7)
        groups.append(WeekGroup(label=f"Week {number}", start_index=start, end_index=end))
        start = end
        number += 1
    return groups


def week_of(layout: TimelineLayout, day: date) -> tuple[WeekGroup, date, date] | None:
    """Week group holding *day* with its first and last date, or None off the day scale."""
    if layout.scale != Scale.DAY or not layout.units:
        return None
    if not layout.units[0] <= day <= layout.units[-1]:
        return None
    offset = (day - layout.units[0]).days
    for group in layout.week_groups:
        if group.start_index <= offset < group.end_index:
            return group, layout.units[group.start_index], layout.units[group.end_index - 1]
    return None


def _ordered_rows(
    entities: list[TimelineEntity],
) -> list[tuple[TimelineEntity, int, TimelineEntity | None]]:
    """Projects each followed by their tasks; orphan tasks go last."""
    projects = [e for e in entities if e.is_project]
    project_ids = {p.id for p in projects}
    tasks_by_project: dict[str, list[TimelineEntity]] = {}
    orphans: list[TimelineEntity] = []
    for entity in entities:
        if entity.is_project:
            continue
        if entity.parent_id in project_ids:
            tasks_by_project.setdefault(entity.parent_id, []).append(entity)
        else:
            orphans.append(entity)

    rows: list[tuple[TimelineEntity, int, TimelineEntity | None]] = []
    for project in projects:
        rows.append((project, 0, None))
        for task in tasks_by_project.get(project.id, []):
            rows.append((task, 1, project))
    for task in orphans:
        rows.append((task, 0, None))
    return rows


def _has_text(value: object) -> bool:
    return value is not None and bool(str(value).strip())


def build_layout(
    entities: Iterable[TimelineEntity],
    scale: Scale,
    anchor: date,
    today: date | None = None,
    min_span_days: int = DEFAULT_MIN_SPAN_DAYS,
) -> TimelineLayout:
    """Run one full layout pass over *entities*.

    *today* defaults to *anchor*. Nothing is cached between calls.
    """
    entity_list = list(entities)
    rejected: list[RejectedRecord] = []
    today = today or anchor

    time_range = resolve_range(anchor, entity_list, min_span_days, rejected)
    units = build_units(time_range, scale)
    today_idx = today_index(today, units, scale)

    bars: list[BarLayout] = []
    for entity, depth, parent in _ordered_rows(entity_list):
        start = entity.start_date
        if not _has_text(start) and parent is not None:
            start = parent.start_date
        if not _has_text(start):
            start = anchor.isoformat()
        elif parse_date(start) is None:
            _reject(rejected, entity, "start_date", start, "unparsable start date, placed at range start")

        end: DateLike = entity.end_date
        if entity.is_project and not _has_text(end):
            end = resolved_end(entity, anchor)

        start_idx, end_idx = bar_indices(start, end, units, scale)
        start_d = parse_date(start) or time_range.start
        end_d = parse_date(end)
        if end_d is not None and end_d < start_d:
            end_d = None
        bars.append(
            BarLayout(
                entity=entity,
                depth=depth,
                start_index=start_idx,
                end_index=end_idx,
                segments=tuple(partition(start_idx, end_idx, today_idx)),
                start_date=start_d,
                end_date=end_d,
            )
        )

    return TimelineLayout(
        range=time_range,
        scale=scale,
        units=units,
        today=today,
        today_index=today_idx,
        week_groups=group_weeks(len(units)) if scale == Scale.DAY else [],
        bars=bars,
        rejected=rejected,
    )
