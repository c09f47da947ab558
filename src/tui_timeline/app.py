"""Main Textual App for TUI Timeline."""

from __future__ import annotations

import logging
import os
from datetime import date
from pathlib import Path

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.widgets import Footer, Header, Static

from tui_timeline.commands import TimelineCommandProvider
from tui_timeline.config import (
    get_column_widths,
    get_scroll_step,
    load_config,
    load_settings,
    resolve_today,
)
from tui_timeline.models import BarLayout, ProjectConfig, RejectedRecord, Scale, TimelineDataset
from tui_timeline.records import find_records_file, load_records
from tui_timeline.screens.export_screen import ExportScreen
from tui_timeline.screens.help_screen import HelpScreen
from tui_timeline.screens.warning_screen import WarningScreen
from tui_timeline.timeline import week_of
from tui_timeline.widgets.gantt_chart import GanttChart, GanttToolbar, GanttView
from tui_timeline import theme

logger = logging.getLogger(__name__)


def _describe_bar(bar: BarLayout) -> str:
    """Status bar text for a row: "label: start → end (status)"."""
    entity = bar.entity
    start = bar.start_date.isoformat() if bar.start_date else "?"
    end = bar.end_date.isoformat() if bar.end_date else "?"
    return f"{escape(entity.label)}: {start} → {end} ({entity.status.value})"


class TimelineApp(App):
    """TUI Timeline Application."""

    TITLE = "TUI Timeline"
    CSS = """
    #main-content {
        height: 1fr;
        border: round $surface-lighten-2;
        border-title-align: left;
    }
    #main-content:focus-within {
        border: round $accent;
        border-title-color: $accent;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    COMMANDS = App.COMMANDS | {TimelineCommandProvider}

    BINDINGS = [
        Binding("question_mark", "help", "Help"),
        Binding("exclamation_mark", "warnings", "Warnings"),
        Binding("q", "quit_app", "Quit"),
        Binding("space", "toggle_project", "Fold/Unfold"),
        Binding("e", "toggle_all", "Fold all", show=False),
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
        # Timeline scale
        Binding("D", "scale_day", "Day"),
        Binding("M", "scale_month", "Month"),
        Binding("t", "gantt_today", "Today", show=False),
        Binding("g", "gantt_start", show=False),
        Binding("h", "scroll_left", show=False),
        Binding("l", "scroll_right", show=False),
        # Data
        Binding("r", "reload", "Reload", show=False),
        Binding("ctrl+e", "export", "Export", show=False),
    ]

    def __init__(
        self,
        project_dir: Path,
        records_path: Path | None = None,
        no_color: bool = False,
        demo_mode: bool = False,
        scale: Scale | None = None,
        anchor: date | None = None,
        today: date | None = None,
    ) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.project_dir = project_dir
        self.records_path = records_path
        self.no_color = no_color
        self.demo_mode = demo_mode
        self.config: ProjectConfig = ProjectConfig()
        self.dataset: TimelineDataset = TimelineDataset()
        self._scale_override = scale
        self._anchor_override = anchor
        self._today_override = today
        self._anchor_date: date = self.config.anchor
        self._today: date = resolve_today(self.config, today)
        self._settings: dict = {}

    def compose(self) -> ComposeResult:
        yield Header()
        yield GanttToolbar(id="gantt-toolbar")
        with Container(id="main-content"):
            yield GanttChart(id="gantt-chart")
        yield Static("", id="status-bar")
        yield Footer()

    def on_mount(self) -> None:
        self.set_timer(0.01, self._load_project)

    # ── Loading ──

    def _load_project(self) -> None:
        if self.demo_mode:
            self._load_demo_project()
            return
        theme.load_theme(self.project_dir)
        self.config = load_config(self.project_dir)
        self._settings = load_settings(self.project_dir)
        self._anchor_date = self._anchor_override or self.config.anchor
        self._today = resolve_today(self.config, self._today_override)

        path = self.records_path or find_records_file(self.project_dir, self.config.records_file)
        if path is None:
            self.dataset = TimelineDataset(
                warnings=[RejectedRecord(str(self.project_dir), "", "file", "", "No records.json or records.yaml found")]
            )
            self.notify("No records file found", severity="warning")
        else:
            self.dataset = load_records(path)
        self._finish_load()

    def _load_demo_project(self) -> None:
        from tui_timeline.demo_data import DEMO_FILE, demo_anchor, demo_today, get_demo_dir

        demo_dir = get_demo_dir()
        theme.load_theme()
        self.config = load_config(demo_dir)
        self.config.name = self.config.name or "Project Tracker (Demo)"
        self._settings = load_settings()
        self._anchor_date = self._anchor_override or demo_anchor()
        self._today = self._today_override or demo_today()
        self.dataset = load_records(demo_dir / DEMO_FILE)
        self._finish_load()

    def _finish_load(self) -> None:
        project_name = self.config.name or self.project_dir.name
        self.title = f"TUI Timeline - {project_name}"
        try:
            self.query_one("#main-content", Container).border_title = project_name
        except Exception:
            pass
        gantt = self.query_one(GanttChart)
        gantt.configure(
            col_widths=get_column_widths(self._settings),
            label_width=self.config.label_width,
            min_span_days=self.config.min_span_days,
        )
        gantt.update_data(
            self.dataset.entities,
            anchor=self._anchor_date,
            today=self._today,
            scale=self._scale_override or self.config.scale,
            expand_first=bool(self._settings.get("expand_first_project", True)),
        )
        self._refresh_ui()

    # ── UI Refresh ──

    @property
    def warnings(self) -> list[RejectedRecord]:
        """Loader warnings plus dates the layout engine had to skip."""
        result = list(self.dataset.warnings)
        try:
            layout = self.query_one(GanttChart).timeline_layout
        except Exception:
            layout = None
        if layout is not None:
            result.extend(layout.rejected)
        return result

    def _refresh_ui(self) -> None:
        try:
            gantt = self.query_one(GanttChart)
            self.query_one(GanttToolbar).update_toolbar(gantt.scale, self._today)
        except Exception:
            return
        self._update_status_bar()

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
            gantt = self.query_one(GanttChart)
        except Exception:
            return
        parts: list[str] = []
        if self.demo_mode:
            color = theme.STATUSBAR_DEMO.dark
            parts.append(f"[bold {color}]DEMO[/bold {color}]")
        warning_count = len(self.warnings)
        if warning_count > 0:
            color = theme.STATUSBAR_WARNING.dark
            parts.append(f"[{color}]⚠ {warning_count} warning(s)[/{color}]")
        row = self._highlighted_bar()
        if row is not None:
            parts.append(_describe_bar(row))
        layout = gantt.timeline_layout
        if layout is not None:
            week = week_of(layout, layout.today)
            if week is not None:
                group, first, last = week
                parts.append(f"{group.label}: {first.isoformat()} → {last.isoformat()}")
        parts.append(f"{len(self.dataset.projects)} projects, {len(self.dataset.tasks)} tasks")
        if layout is not None:
            span = f"{layout.range.start.isoformat()} → {layout.visible_end.isoformat()}"
            if layout.truncated:
                span += " (truncated)"
            parts.append(span)
        parts.append(f"Scale: {gantt.scale.value}")
        bar.update(" | ".join(parts))

    def _highlighted_bar(self) -> BarLayout | None:
        try:
            return self.query_one(GanttView).highlighted_bar
        except Exception:
            return None

    def on_gantt_toolbar_scale_changed(self, event: GanttToolbar.ScaleChanged) -> None:
        """Handle scale button click from the toolbar."""
        self._set_scale(event.scale)

    def on_gantt_view_cursor_moved(self, event: GanttView.CursorMoved) -> None:
        self._update_status_bar()

    # ── Actions ──

    def _set_scale(self, scale: Scale) -> None:
        try:
            self.query_one(GanttChart).set_scale(scale)
        except Exception:
            return
        self._refresh_ui()

    def action_scale_day(self) -> None:
        self._set_scale(Scale.DAY)

    def action_scale_month(self) -> None:
        self._set_scale(Scale.MONTH)

    def action_gantt_today(self) -> None:
        try:
            self.query_one(GanttChart).go_to_today()
        except Exception:
            pass

    def action_gantt_start(self) -> None:
        try:
            self.query_one(GanttChart).go_to_start()
        except Exception:
            pass

    def _scroll(self, direction: int) -> None:
        try:
            gantt = self.query_one(GanttChart)
        except Exception:
            return
        gantt.scroll_gantt(direction * get_scroll_step(self._settings, gantt.scale))

    def action_scroll_left(self) -> None:
        self._scroll(-1)

    def action_scroll_right(self) -> None:
        self._scroll(1)

    def action_cursor_down(self) -> None:
        try:
            self.query_one(GanttView).move_cursor(1)
        except Exception:
            pass

    def action_cursor_up(self) -> None:
        try:
            self.query_one(GanttView).move_cursor(-1)
        except Exception:
            pass

    def action_toggle_project(self) -> None:
        try:
            view = self.query_one(GanttView)
            self.query_one(GanttChart).toggle_project(view.current_project_id())
        except Exception:
            return
        self._update_status_bar()

    def action_toggle_all(self) -> None:
        try:
            gantt = self.query_one(GanttChart)
        except Exception:
            return
        all_projects = {e.id for e in self.dataset.projects}
        gantt.set_all_expanded(not all_projects or gantt.expanded != all_projects)
        self._update_status_bar()

    def action_reload(self) -> None:
        try:
            self._scale_override = self.query_one(GanttChart).scale
        except Exception:
            pass
        self._load_project()
        self.notify("Records reloaded", severity="information")

    def action_help(self) -> None:
        self.push_screen(HelpScreen(), callback=self._on_help_action)

    def _on_help_action(self, action: str) -> None:
        if action:
            self.call_later(self.run_action, action)

    def action_warnings(self) -> None:
        self.push_screen(WarningScreen(self.warnings))

    def action_init_theme(self) -> None:
        if self.demo_mode:
            self.notify("Demo mode: theme init disabled", severity="warning")
            return
        try:
            dest = theme.init_theme(self.project_dir)
            self.notify(f"Created {dest}", severity="information")
        except FileExistsError:
            self.notify("Theme file already exists", severity="warning")

    def action_export(self) -> None:
        """Show export dialog."""
        self.push_screen(ExportScreen(), callback=self._on_export_chosen)

    def _on_export_chosen(self, choice: tuple[str, str] | None) -> None:
        if not choice:
            return
        from tui_timeline.export import export_layout

        fmt, filename = choice
        layout = self.query_one(GanttChart).timeline_layout
        if layout is None:
            return
        base_dir = Path.cwd() if self.demo_mode else self.project_dir
        output_path = base_dir / filename
        try:
            export_layout(layout, output_path, fmt)
            self.notify(f"Exported to {filename}", severity="information")
        except (OSError, ValueError) as e:
            logger.warning("Export to %s failed: %s", output_path, e)
            self.notify(f"Export failed: {e}", severity="error")

    def action_quit_app(self) -> None:
        self.exit()
