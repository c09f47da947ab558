"""Rejected records modal screen."""

from __future__ import annotations

from rich.markup import escape
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from tui_timeline.models import RejectedRecord
from tui_timeline import theme


class WarningScreen(ModalScreen[None]):
    """Modal screen listing records the loader or the layout engine could not use."""

    BINDINGS = [("escape", "dismiss", "Close")]

    DEFAULT_CSS = """
    WarningScreen {
        align: center middle;
    }
    #warning-container {
        width: 80;
        max-height: 80%;
        background: $surface;
        border: thick $warning;
        padding: 1 2;
    }
    #warning-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    """

    def __init__(self, warnings: list[RejectedRecord]) -> None:
        super().__init__()
        self.warnings = warnings

    def compose(self) -> ComposeResult:
        icon_color = theme.WARNING_ICON.dark
        with VerticalScroll(id="warning-container"):
            yield Static(
                f"[bold]Rejected Records ({len(self.warnings)})[/bold]",
                id="warning-title",
            )
            if not self.warnings:
                yield Static("No warnings.")
            else:
                for w in self.warnings:
                    yield Static(f"[{icon_color}]⚠[/{icon_color}] {escape(str(w))}", classes="warning-item")
