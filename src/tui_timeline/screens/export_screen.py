"""Export dialog: pick a format and an output file name."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from tui_timeline.export import EXPORT_FORMATS

FORMAT_LABELS = {
    "json": "JSON (layout with CSS positions)",
    "csv": "CSV (one row per segment)",
    "mermaid": "Mermaid Gantt (.mmd)",
}


class ExportScreen(ModalScreen[tuple[str, str] | None]):
    """Modal returning ``(format, file_name)`` or None when cancelled."""

    BINDINGS = [("escape", "cancel", "Cancel")]

    DEFAULT_CSS = """
    ExportScreen {
        align: center middle;
    }
    #export-container {
        width: 56;
        height: auto;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }
    #export-label {
        text-style: bold;
        margin-bottom: 1;
    }
    #export-formats {
        height: auto;
        margin-bottom: 1;
    }
    #export-formats > .option-list--option-highlighted {
        background: $accent;
        color: $text;
    }
    """

    def __init__(self, base_name: str = "timeline", initial_format: str = "json") -> None:
        super().__init__()
        self._base_name = base_name
        self._format = initial_format if initial_format in EXPORT_FORMATS else "json"

    def compose(self) -> ComposeResult:
        with Vertical(id="export-container"):
            yield Static("Export layout", id="export-label")
            ol = OptionList(id="export-formats")
            for fmt in EXPORT_FORMATS:
                ol.add_option(Option(f"  {FORMAT_LABELS[fmt]}", id=fmt))
            yield ol
            yield Input(value=self._file_name(), id="export-path")

    def _file_name(self) -> str:
        return f"{self._base_name}{EXPORT_FORMATS[self._format]}"

    def on_mount(self) -> None:
        ol = self.query_one("#export-formats", OptionList)
        ol.highlighted = list(EXPORT_FORMATS).index(self._format)
        ol.focus()

    def on_option_list_option_highlighted(
        self, event: OptionList.OptionHighlighted
    ) -> None:
        if event.option.id:
            self._format = event.option.id
            self.query_one("#export-path", Input).value = self._file_name()

    def on_option_list_option_selected(
        self, event: OptionList.OptionSelected
    ) -> None:
        if event.option.id:
            self._format = event.option.id
        self.query_one("#export-path", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        name = event.value.strip()
        if name:
            self.dismiss((self._format, name))

    def action_cancel(self) -> None:
        self.dismiss(None)
