"""Gantt chart custom widget."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import NamedTuple

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget

from rich.segment import Segment
from rich.style import Style
from rich.text import Text

from tui_timeline.models import (
    DEFAULT_ANCHOR,
    DEFAULT_MIN_SPAN_DAYS,
    BarLayout,
    Scale,
    SegmentKind,
    TimelineEntity,
    TimelineLayout,
)
from tui_timeline.timeline import build_layout, column
from tui_timeline import theme


COL_WIDTH_MAP: dict[Scale, int] = {
    Scale.DAY: 2,
    Scale.MONTH: 8,
}

LABEL_WIDTH = 28

SCALE_KEYS = [Scale.DAY, Scale.MONTH]
SCALE_LABELS = {Scale.DAY: "D", Scale.MONTH: "M"}

_DAY_INITIALS = "MTWTFSS"  # Mon=0..Sun=6

ELAPSED_CHAR = "█"
REMAINING_CHAR = "░"
TODAY_CHAR = "│"
NO_TASKS_LABEL = "No tasks"


class ChartRow(NamedTuple):
    """A visible chart row: a bar, or a "No tasks" placeholder under a project."""

    bar: BarLayout | None
    project_id: str


def flatten_rows(layout: TimelineLayout | None, expanded: set[str]) -> list[ChartRow]:
    """Visible rows: projects, tasks of expanded projects, and top-level tasks."""
    if layout is None:
        return []
    rows: list[ChartRow] = []
    for bar in layout.bars:
        entity = bar.entity
        if entity.is_project:
            rows.append(ChartRow(bar, entity.id))
            if entity.id in expanded and not layout.children_of(entity.id):
                rows.append(ChartRow(None, entity.id))
        elif bar.depth == 0:
            rows.append(ChartRow(bar, ""))
        elif entity.parent_id in expanded:
            rows.append(ChartRow(bar, entity.parent_id or ""))
    return rows


def _band_bg(char_col: int, band_style: Style, base_style: Style, col_width: int) -> Style:
    """Odd unit cells get band_style, even ones base_style."""
    if (char_col // col_width) % 2 == 1:
        return band_style
    return base_style


def _fit(text: str, width: int) -> str:
    """Truncate with an ellipsis or pad *text* to exactly *width* cells."""
    if width <= 0:
        return ""
    if len(text) > width:
        return text[: width - 1] + "…"
    return text.ljust(width)


class _GanttColors:
    """Shared dark/light style lookups for the header and the bar view."""

    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark  # type: ignore[attr-defined]
        except Exception:
            return True

    @property
    def _band_style(self) -> Style:
        return Style(bgcolor=theme.GANTT_BAND_BG.resolve(self._is_dark))

    @property
    def _base_style(self) -> Style:
        return Style(bgcolor=theme.GANTT_BASE_BG.resolve(self._is_dark))


class GanttToolbar(Widget):
    """1-line toolbar showing today's date, a legend and clickable scale buttons."""

    class ScaleChanged(Message):
        def __init__(self, scale: Scale) -> None:
            super().__init__()
            self.scale = scale

    DEFAULT_CSS = """
    GanttToolbar {
        height: 1;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._scale: Scale = Scale.DAY
        self._today: date = DEFAULT_ANCHOR
        self._button_regions: list[tuple[int, int, Scale]] = []

    def update_toolbar(self, scale: Scale, today: date | None = None) -> None:
        self._scale = scale
        if today is not None:
            self._today = today
        self.refresh()

    @property
    def _is_dark(self) -> bool:
        try:
            return self.app.current_theme.dark
        except Exception:
            return True

    def render(self) -> Text:
        dark = self._is_dark
        text = Text()

        text.append(f"Today: {self._today.isoformat()}", Style(bold=True, color=theme.GANTT_TODAY_MARKER.resolve(dark)))
        text.append("  │ ", Style(dim=True))
        text.append(ELAPSED_CHAR, Style(color=theme.GANTT_BAR_ELAPSED.resolve(dark)))
        text.append(" Completed (till today)  ")
        text.append(REMAINING_CHAR, Style(color=theme.GANTT_BAR_REMAINING.resolve(dark)))
        text.append(" Remaining")
        text.append("  │ ", Style(dim=True))

        self._button_regions = []
        for i, scale in enumerate(SCALE_KEYS):
            label = SCALE_LABELS[scale]
            start = len(text)
            if scale == self._scale:
                text.append(f" {label} ", Style(bold=True, reverse=True))
            else:
                text.append(f" {label} ", Style(dim=True))
            end = len(text)
            self._button_regions.append((start, end, scale))
            if i < len(SCALE_KEYS) - 1:
                text.append("│", Style(dim=True))

        return text

    def on_click(self, event) -> None:
        for start, end, scale in self._button_regions:
            if start <= event.x < end:
                if scale != self._scale:
                    self.post_message(self.ScaleChanged(scale))
                return


class GanttHeader(_GanttColors, Widget):
    """Fixed header: week/year groups, day/month labels and the today marker."""

    DEFAULT_CSS = """
    GanttHeader {
        height: 3;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._timeline: TimelineLayout | None = None
        self._col_width: int = COL_WIDTH_MAP[Scale.DAY]
        self._label_width: int = LABEL_WIDTH
        self._col_offset: int = 0

    def update_header(
        self,
        layout: TimelineLayout | None,
        col_width: int,
        label_width: int,
        col_offset: int,
    ) -> None:
        self._timeline = layout
        self._col_width = col_width
        self._label_width = label_width
        self._col_offset = col_offset
        self.refresh()

    @property
    def track_width(self) -> int:
        if self._timeline is None:
            return 0
        return self._timeline.unit_count * self._col_width

    def _visible_cols(self) -> range:
        avail = max(0, self.size.width - self._label_width) or self.track_width
        return range(self._col_offset, self._col_offset + avail)

    def render_line(self, y: int) -> Strip:
        if self._timeline is None or not self._timeline.units or y > 2:
            return Strip.blank(self.size.width)
        header_style = Style(bold=True, color=theme.GANTT_HEADER.resolve(self._is_dark))
        label = "Project / Task" if y == 1 else ""
        segments = [Segment(_fit(label, self._label_width), header_style + self._base_style)]
        if y == 0:
            segments.extend(self._render_group_row())
        elif y == 1:
            segments.extend(self._render_detail_row())
        else:
            segments.extend(self._render_today_line())
        return Strip(segments)

    def _group_spans(self) -> list[tuple[str, int, int, Style]]:
        """(label, start_col, end_col, style) for the top header row."""
        layout = self._timeline
        assert layout is not None
        n = layout.unit_count
        width = self.track_width
        dark = self._is_dark
        spans: list[tuple[str, int, int, Style]] = []
        if layout.scale == Scale.DAY:
            for i, group in enumerate(layout.week_groups):
                bg = theme.week_color(i).resolve(dark)
                spans.append((
                    group.label,
                    column(group.start_index, n, width),
                    column(group.end_index, n, width),
                    Style(bold=True, color="white", bgcolor=bg),
                ))
            return spans

        start = 0
        for i in range(1, n + 1):
            if i == n or layout.units[i].year != layout.units[start].year:
                bg = self._band_style if len(spans) % 2 == 1 else self._base_style
                spans.append((
                    str(layout.units[start].year),
                    column(start, n, width),
                    column(i, n, width),
                    Style(bold=True, color=theme.GANTT_HEADER.resolve(dark)) + bg,
                ))
                start = i
        return spans

    def _render_group_row(self) -> list[Segment]:
        cells = [(" ", self._base_style)] * self.track_width
        for label, start, end, style in self._group_spans():
            text = label[: end - start].center(end - start)
            for offset, ch in enumerate(text):
                cells[start + offset] = (ch, style)
        return [Segment(*cells[c]) if c < len(cells) else Segment(" ", self._base_style) for c in self._visible_cols()]

    def _render_detail_row(self) -> list[Segment]:
        layout = self._timeline
        assert layout is not None
        cw = self._col_width
        header_style = Style(bold=True, color=theme.GANTT_HEADER.resolve(self._is_dark))
        band, base = self._band_style, self._base_style
        cells: list[tuple[str, Style]] = []
        for i, unit in enumerate(layout.units):
            if layout.scale == Scale.DAY:
                label = _DAY_INITIALS[unit.weekday()]
            else:
                label = unit.strftime("%b %Y")
            text = label[:cw].center(cw)
            for offset, ch in enumerate(text):
                cells.append((ch, header_style + _band_bg(i * cw + offset, band, base, cw)))
        return [Segment(*cells[c]) if c < len(cells) else Segment(" ", base) for c in self._visible_cols()]

    def _render_today_line(self) -> list[Segment]:
        layout = self._timeline
        assert layout is not None
        width = self.track_width
        today_col = min(column(layout.today_index, layout.unit_count, width), width - 1)
        marker = Style(color=theme.GANTT_TODAY_MARKER.resolve(self._is_dark))
        dim_style = Style(dim=True)
        band, base, cw = self._band_style, self._base_style, self._col_width
        segments: list[Segment] = []
        for c in self._visible_cols():
            bg = _band_bg(c, band, base, cw)
            if c == today_col:
                segments.append(Segment("▼", marker + bg))
            elif c < width:
                segments.append(Segment("┄", dim_style + bg))
            else:
                segments.append(Segment(" ", base))
        return segments


class GanttView(_GanttColors, ScrollView):
    """Renders the label column and bars (data rows only, no header)."""

    class CursorMoved(Message):
        """Emitted when the highlighted row changes."""

        def __init__(self, row: int) -> None:
            super().__init__()
            self.row = row

    BINDINGS = [
        Binding("up", "cursor_up", show=False),
        Binding("down", "cursor_down", show=False),
    ]

    DEFAULT_CSS = """
    GanttView {
        height: 1fr;
        background: $background;
        overflow-y: auto;
        overflow-x: hidden;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._timeline: TimelineLayout | None = None
        self._rows: list[ChartRow] = []
        self._expanded: set[str] = set()
        self._col_width: int = COL_WIDTH_MAP[Scale.DAY]
        self._label_width: int = LABEL_WIDTH
        self._col_offset: int = 0
        self._highlighted_row: int = 0

    def update_gantt(
        self,
        layout: TimelineLayout | None,
        expanded: set[str],
        col_width: int,
        label_width: int,
        col_offset: int,
    ) -> None:
        self._timeline = layout
        self._expanded = expanded
        self._rows = flatten_rows(layout, expanded)
        self._col_width = col_width
        self._label_width = label_width
        self._col_offset = col_offset
        if self._highlighted_row >= len(self._rows):
            self._highlighted_row = max(0, len(self._rows) - 1)
        self.virtual_size = Size(self._label_width, len(self._rows))
        self.refresh()

    @property
    def rows(self) -> list[ChartRow]:
        return self._rows

    @property
    def track_width(self) -> int:
        if self._timeline is None:
            return 0
        return self._timeline.unit_count * self._col_width

    @property
    def highlighted_row(self) -> int:
        return self._highlighted_row

    @property
    def highlighted_bar(self) -> BarLayout | None:
        """Bar under the cursor; None on a "No tasks" placeholder or an empty chart."""
        if not self._rows:
            return None
        return self._rows[self._highlighted_row].bar

    def move_cursor(self, delta: int) -> None:
        if not self._rows:
            return
        new_row = max(0, min(len(self._rows) - 1, self._highlighted_row + delta))
        if new_row != self._highlighted_row:
            self._highlighted_row = new_row
            if new_row < self.scroll_y:
                self.scroll_to(y=new_row, animate=False)
            elif new_row >= self.scroll_y + self.size.height:
                self.scroll_to(y=new_row - self.size.height + 1, animate=False)
            self.post_message(self.CursorMoved(new_row))
            self.refresh()

    def action_cursor_up(self) -> None:
        self.move_cursor(-1)

    def action_cursor_down(self) -> None:
        self.move_cursor(1)

    def current_project_id(self) -> str:
        """Project of the highlighted row ("" for top-level tasks)."""
        if not self._rows:
            return ""
        return self._rows[self._highlighted_row].project_id

    def render_line(self, y: int) -> Strip:
        width = self.size.width

        # Apply vertical scroll offset (ScrollView doesn't offset y automatically)
        virtual_y = y + int(self.scroll_y)

        if not self._rows:
            if y == 0:
                text = Text("  No Gantt data", style="dim")
                return Strip(text.render(self.app.console))
            return Strip.blank(width)

        if virtual_y < 0 or virtual_y >= len(self._rows):
            return Strip.blank(width, self._base_style)

        return self._render_row(self._rows[virtual_y], virtual_y)

    def _visible_cols(self) -> range:
        avail = max(0, self.size.width - self._label_width) or self.track_width
        return range(self._col_offset, self._col_offset + avail)

    def _label_segments(self, row: ChartRow, bg: Style) -> list[Segment]:
        dark = self._is_dark
        if row.bar is None:
            style = Style(italic=True, color=theme.GANTT_EMPTY_LABEL.resolve(dark))
            return [Segment(_fit(f"    {NO_TASKS_LABEL}", self._label_width), style + bg)]
        entity = row.bar.entity
        status_color = theme.STATUS_COLORS[entity.status].resolve(dark)
        if entity.is_project:
            arrow = "▼" if entity.id in self._expanded else "▶"
            text = f"{arrow} {entity.status_icon} {entity.label}"
            style = Style(bold=True, color=theme.GANTT_PROJECT_LABEL.resolve(dark))
        else:
            indent = "  " * (row.bar.depth + 1)
            text = f"{indent}{entity.status_icon} {entity.label}"
            style = Style(color=theme.GANTT_TASK_LABEL.resolve(dark))
        fitted = _fit(text, self._label_width)
        # colour just the status icon
        icon_at = fitted.find(entity.status_icon)
        if icon_at < 0:
            return [Segment(fitted, style + bg)]
        return [
            Segment(fitted[:icon_at], style + bg),
            Segment(fitted[icon_at], Style(color=status_color) + bg),
            Segment(fitted[icon_at + 1:], style + bg),
        ]

    def _render_row(self, row: ChartRow, row_y: int) -> Strip:
        layout = self._timeline
        assert layout is not None
        dark = self._is_dark
        band, base = self._band_style, self._base_style
        cw = self._col_width
        n = layout.unit_count
        width = self.track_width

        # Row banding: odd rows swap band/base
        if row_y % 2 == 1:
            band, base = base, band
        if row_y == self._highlighted_row:
            hl = Style(bgcolor=theme.GANTT_HIGHLIGHT_BG.resolve(dark))
            band = base = hl

        segments = self._label_segments(row, base)

        # column -> segment kind
        fill: dict[int, SegmentKind] = {}
        if row.bar is not None:
            for seg in row.bar.segments:
                for c in range(column(seg.start_index, n, width), column(seg.end_index, n, width)):
                    fill[c] = seg.kind

        today_col = min(column(layout.today_index, n, width), width - 1)
        today_style = Style(color=theme.GANTT_TODAY_MARKER.resolve(dark))

        for c in self._visible_cols():
            if c >= width:
                segments.append(Segment(" ", base))
                continue
            bg = _band_bg(c, band, base, cw)
            kind = fill.get(c)
            if kind is not None:
                ch = ELAPSED_CHAR if kind == SegmentKind.ELAPSED else REMAINING_CHAR
                segments.append(Segment(ch, Style(color=theme.SEGMENT_COLORS[kind].resolve(dark)) + bg))
            elif c == today_col:
                segments.append(Segment(TODAY_CHAR, today_style + bg))
            else:
                segments.append(Segment(" ", bg))

        return Strip(segments)


class GanttChart(Container):
    """Gantt chart widget: recomputes the timeline layout on every change."""

    DEFAULT_CSS = """
    GanttChart {
        width: 1fr;
        height: 1fr;
    }
    GanttChart #gantt-header {
        height: 3;
    }
    GanttChart #gantt-view {
        height: 1fr;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._entities: list[TimelineEntity] = []
        self._scale: Scale = Scale.DAY
        self._anchor_date: date = DEFAULT_ANCHOR
        self._today: date = DEFAULT_ANCHOR
        self._min_span_days: int = DEFAULT_MIN_SPAN_DAYS
        self._col_widths: dict[Scale, int] = dict(COL_WIDTH_MAP)
        self._label_width: int = LABEL_WIDTH
        self._unit_offset: int = 0  # in units
        self._expanded: set[str] = set()
        self._timeline: TimelineLayout | None = None
        self._pending_rebuild: bool = False

    def compose(self) -> ComposeResult:
        yield GanttHeader(id="gantt-header")
        yield GanttView(id="gantt-view")

    def on_mount(self) -> None:
        """Push pending data after children are composed."""
        if self._timeline is not None:
            self._push_to_view()

    @property
    def timeline_layout(self) -> TimelineLayout | None:
        return self._timeline

    @property
    def scale(self) -> Scale:
        return self._scale

    @property
    def expanded(self) -> set[str]:
        return set(self._expanded)

    def configure(
        self,
        col_widths: dict[Scale, int] | None = None,
        label_width: int | None = None,
        min_span_days: int | None = None,
    ) -> None:
        if col_widths:
            self._col_widths.update(col_widths)
        if label_width is not None:
            self._label_width = label_width
        if min_span_days is not None:
            self._min_span_days = min_span_days

    def update_data(
        self,
        entities: list[TimelineEntity],
        anchor: date,
        today: date,
        scale: Scale | None = None,
        expand_first: bool = True,
    ) -> None:
        """Replace the entity collection and reference dates."""
        self._entities = list(entities)
        self._anchor_date = anchor
        self._today = today
        if scale is not None:
            self._scale = scale
        known = {e.id for e in self._entities if e.is_project}
        self._expanded &= known
        if expand_first and not self._expanded:
            first = next((e for e in self._entities if e.is_project), None)
            if first is not None:
                self._expanded.add(first.id)
        self._rebuild()

    def set_scale(self, scale: Scale | str) -> None:
        try:
            scale = Scale(scale)
        except ValueError:
            return
        if scale != self._scale:
            self._scale = scale
            self._unit_offset = 0
            self._rebuild()

    def toggle_project(self, project_id: str) -> None:
        if not project_id:
            return
        if project_id in self._expanded:
            self._expanded.discard(project_id)
        else:
            self._expanded.add(project_id)
        self._push_to_view()

    def set_all_expanded(self, expanded: bool) -> None:
        if expanded:
            self._expanded = {e.id for e in self._entities if e.is_project}
        else:
            self._expanded = set()
        self._push_to_view()

    def scroll_gantt(self, delta: int) -> None:
        max_offset = max(0, (self._timeline.unit_count - 1) if self._timeline else 0)
        self._unit_offset = max(0, min(max_offset, self._unit_offset + delta))
        self._push_to_view()

    def go_to_today(self) -> None:
        """Scroll so the today marker is near the left edge of the track."""
        if self._timeline is None:
            self._unit_offset = 0
        else:
            margin = 7 if self._scale == Scale.DAY else 1
            self._unit_offset = max(0, int(self._timeline.today_index) - margin)
        self._push_to_view()

    def go_to_start(self) -> None:
        self._unit_offset = 0
        self._push_to_view()

    def _rebuild(self) -> None:
        self._timeline = build_layout(
            self._entities,
            self._scale,
            self._anchor_date,
            self._today,
            self._min_span_days,
        )
        self._unit_offset = min(self._unit_offset, max(0, self._timeline.unit_count - 1))
        self._push_to_view()

    def _push_to_view(self) -> None:
        """Push the current layout to the GanttView and GanttHeader."""
        try:
            view = self.query_one("#gantt-view", GanttView)
            header = self.query_one("#gantt-header", GanttHeader)
            col_width = self._col_widths.get(self._scale, COL_WIDTH_MAP[self._scale])
            col_offset = self._unit_offset * col_width
            view.update_gantt(self._timeline, self._expanded, col_width, self._label_width, col_offset)
            header.update_header(self._timeline, col_width, self._label_width, col_offset)
            self._pending_rebuild = False
        except Exception:
            if not self._pending_rebuild:
                try:
                    asyncio.get_running_loop()
                except RuntimeError:
                    return
                self._pending_rebuild = True
                self.set_timer(0.01, self._push_to_view)
