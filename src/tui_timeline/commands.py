"""Command Palette provider for TUI Timeline."""

from __future__ import annotations

from dataclasses import dataclass

from textual.command import Hit, Hits, Provider


@dataclass(frozen=True)
class CommandDef:
    """A single command entry for the palette."""

    display: str
    action: str
    help: str = ""
    category: str = ""


COMMANDS: list[CommandDef] = [
    # -- File --
    CommandDef("Reload Records", "reload", "Re-read the records file (r)", "File"),
    CommandDef("Export", "export", "Export layout to JSON/CSV/Mermaid (Ctrl+E)", "File"),
    CommandDef("Init Theme", "init_theme", "Copy default theme to project (.tui-timeline/theme.yaml)", "File"),
    CommandDef("Quit", "quit_app", "Quit application (q)", "File"),
    # -- Timeline --
    CommandDef("Timeline: Day Scale", "scale_day", "Day cells grouped by week (D)", "Timeline"),
    CommandDef("Timeline: Month Scale", "scale_month", "One cell per month (M)", "Timeline"),
    CommandDef("Timeline: Go to Today", "gantt_today", "Scroll to the today marker (t)", "Timeline"),
    CommandDef("Timeline: Go to Start", "gantt_start", "Scroll to the anchor date (g)", "Timeline"),
    # -- View --
    CommandDef("Expand/Collapse Project", "toggle_project", "Toggle the selected project (Space)", "View"),
    CommandDef("Expand/Collapse All", "toggle_all", "Toggle every project (e)", "View"),
    CommandDef("Help", "help", "Show keybindings (?)", "View"),
    CommandDef("Rejected Records", "warnings", "Show records with unusable values (!)", "View"),
]


class TimelineCommandProvider(Provider):
    """Textual Command Palette provider for TUI Timeline actions."""

    async def discover(self) -> Hits:
        """Yield all commands."""
        for cmd in COMMANDS:
            yield Hit(
                1.0,
                cmd.display,
                self._make_callback(cmd.action),
                help=cmd.help,
            )

    async def search(self, query: str) -> Hits:
        """Search commands with fuzzy matching."""
        query = query.lower()
        for cmd in COMMANDS:
            # Match against display name, help text, and category
            searchable = f"{cmd.display} {cmd.help} {cmd.category}".lower()
            if self._fuzzy_match(query, searchable):
                yield Hit(
                    self._score(query, cmd.display.lower()),
                    cmd.display,
                    self._make_callback(cmd.action),
                    help=cmd.help,
                )

    def _make_callback(self, action: str):
        """Create a callback that runs the given action on the app."""
        async def callback() -> None:
            await self.app.run_action(action)
        return callback

    @staticmethod
    def _fuzzy_match(query: str, text: str) -> bool:
        """Check if all characters of query appear in order in text."""
        it = iter(text)
        return all(ch in it for ch in query)

    @staticmethod
    def _score(query: str, text: str) -> float:
        """Score a match: higher is better (closer to 1.0)."""
        if not query:
            return 0.5
        if text == query:
            return 1.0
        if text.startswith(query):
            return 0.9
        if query in text:
            return 0.8
        return 0.7
