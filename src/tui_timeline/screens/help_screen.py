"""Help modal screen showing keybindings."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import OptionList, Static
from textual.widgets.option_list import Option


HELP_ITEMS: list[tuple[str, str, str]] = [
    # (key_display, description, action_name_or_empty)
    # -- Navigation --
    ("↑ / k", "Previous row", "cursor_up"),
    ("↓ / j", "Next row", "cursor_down"),
    ("Space", "Expand / collapse project", "toggle_project"),
    ("e", "Expand all / collapse all", "toggle_all"),
    # -- Timeline --
    ("D", "Day scale (week groups)", "scale_day"),
    ("M", "Month scale", "scale_month"),
    ("h / l", "Scroll timeline left / right", ""),
    ("t", "Scroll to today", "gantt_today"),
    ("g", "Scroll to timeline start", "gantt_start"),
    # -- Data --
    ("r", "Reload records", "reload"),
    ("!", "Rejected records", "warnings"),
    ("Ctrl+E", "Export layout (JSON/CSV/Mermaid)", "export"),
    # -- Common --
    ("?", "This help", ""),
    ("Esc", "Close modal", ""),
    ("q", "Quit", "quit_app"),
    # -- CLI --
    ("--demo", "Launch demo mode (tui-timeline --demo)", ""),
]


class HelpScreen(ModalScreen[str]):
    """Modal screen showing keybindings as a selectable list."""

    BINDINGS = [
        ("escape", "close", "Close"),
        ("question_mark", "close", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    #help-container {
        width: 72;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #help-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #help-list {
        height: auto;
        max-height: 100%;
    }
    #help-list > .option-list--option-highlighted {
        background: $accent;
        color: $text;
    }
    """

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="help-container"):
            yield Static(
                "[bold]Keybindings[/bold]  (Enter to execute)", id="help-title"
            )
            ol = OptionList(id="help-list")
            for key_display, desc, action in HELP_ITEMS:
                label = f"  {key_display:<12} {desc}"
                ol.add_option(Option(label, id=action if action else None))
            yield ol

    def on_mount(self) -> None:
        self.set_timer(0.01, self._focus_list)

    def _focus_list(self) -> None:
        self.query_one("#help-list", OptionList).focus()

    def on_option_list_option_selected(
        self, event: OptionList.OptionSelected
    ) -> None:
        action = event.option.id
        self.dismiss(action or "")

    def action_close(self) -> None:
        self.dismiss("")
