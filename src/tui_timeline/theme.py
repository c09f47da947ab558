"""YAML-based centralized color system for TUI Timeline.

Loads colors from default_theme.yaml and optionally merges
project-level overrides from {project_dir}/.tui-timeline/theme.yaml.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import NamedTuple

import yaml

from tui_timeline.models import ProjectStatus, SegmentKind, TaskStatus


class ColorPair(NamedTuple):
    """A pair of colors for dark and light themes."""

    dark: str
    light: str

    def resolve(self, is_dark: bool) -> str:
        return self.dark if is_dark else self.light


# ── Module-level variables (populated by _apply) ──────────────────

STATUS_COLORS: dict[ProjectStatus | TaskStatus, ColorPair]

GANTT_HEADER: ColorPair
GANTT_TODAY_MARKER: ColorPair
GANTT_BAR_ELAPSED: ColorPair
GANTT_BAR_REMAINING: ColorPair
GANTT_BAND_BG: ColorPair
GANTT_BASE_BG: ColorPair
GANTT_HIGHLIGHT_BG: ColorPair
GANTT_PROJECT_LABEL: ColorPair
GANTT_TASK_LABEL: ColorPair
GANTT_EMPTY_LABEL: ColorPair
SEGMENT_COLORS: dict[SegmentKind, ColorPair]
WEEK_PALETTE: list[ColorPair]

STATUSBAR_DEMO: ColorPair
STATUSBAR_WARNING: ColorPair
WARNING_ICON: ColorPair


# ── Internal helpers ──────────────────────────────────────────────

def _load_yaml(path: Path) -> dict:
    """Load a YAML file and return a dict (empty dict on error)."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except Exception:
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (returns a new dict)."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _pair(d: object, default: str = "white") -> ColorPair:
    """Convert a {dark: ..., light: ...} dict (or a single color) to a ColorPair."""
    if isinstance(d, str):
        return ColorPair(d, d)
    if not isinstance(d, dict):
        return ColorPair(default, default)
    return ColorPair(str(d.get("dark", default)), str(d.get("light", default)))


def _status_key(member: ProjectStatus | TaskStatus) -> str:
    return member.value.lower().replace(" ", "_")


def _apply(data: dict) -> None:
    """Map parsed YAML data onto module-level constants."""
    mod = sys.modules[__name__]

    # ── Status ──
    status = data.get("status", {})
    projects = status.get("project", {}) if isinstance(status, dict) else {}
    tasks = status.get("task", {}) if isinstance(status, dict) else {}
    colors: dict[ProjectStatus | TaskStatus, ColorPair] = {}
    for p in ProjectStatus:
        colors[p] = _pair(projects.get(_status_key(p), {}))
    for t in TaskStatus:
        colors[t] = _pair(tasks.get(_status_key(t), {}))
    mod.STATUS_COLORS = colors

    # ── Gantt ──
    gantt = data.get("gantt", {})
    mod.GANTT_HEADER = _pair(gantt.get("header", {}))
    mod.GANTT_TODAY_MARKER = _pair(gantt.get("today_marker", {}))
    mod.GANTT_BAR_ELAPSED = _pair(gantt.get("bar_elapsed", {}))
    mod.GANTT_BAR_REMAINING = _pair(gantt.get("bar_remaining", {}))
    mod.GANTT_BAND_BG = _pair(gantt.get("band_bg", {}))
    mod.GANTT_BASE_BG = _pair(gantt.get("base_bg", {}))
    mod.GANTT_HIGHLIGHT_BG = _pair(gantt.get("highlight_bg", {}))
    mod.GANTT_PROJECT_LABEL = _pair(gantt.get("project_label", {}))
    mod.GANTT_TASK_LABEL = _pair(gantt.get("task_label", {}))
    mod.GANTT_EMPTY_LABEL = _pair(gantt.get("empty_label", {}), "grey50")
    mod.SEGMENT_COLORS = {
        SegmentKind.ELAPSED: mod.GANTT_BAR_ELAPSED,
        SegmentKind.REMAINING: mod.GANTT_BAR_REMAINING,
    }

    palette = gantt.get("week_palette", [])
    pairs = [_pair(entry) for entry in palette] if isinstance(palette, list) else []
    mod.WEEK_PALETTE = pairs or [ColorPair("cyan", "blue")]

    # ── UI ──
    ui = data.get("ui", {})
    mod.STATUSBAR_DEMO = _pair(ui.get("statusbar_demo", {}))
    mod.STATUSBAR_WARNING = _pair(ui.get("statusbar_warning", {}))
    mod.WARNING_ICON = _pair(ui.get("warning_icon", {}))


# ── Public API ────────────────────────────────────────────────────

def week_color(index: int) -> ColorPair:
    """Palette color for the week group at *index* (cycles)."""
    return WEEK_PALETTE[index % len(WEEK_PALETTE)]


def init_theme(project_dir: Path) -> Path:
    """Copy default_theme.yaml → {project_dir}/.tui-timeline/theme.yaml.

    Raises FileExistsError if the destination already exists.
    """
    dest = project_dir / ".tui-timeline" / "theme.yaml"
    if dest.exists():
        raise FileExistsError(str(dest))
    dest.parent.mkdir(parents=True, exist_ok=True)
    src = Path(__file__).parent / "default_theme.yaml"
    shutil.copy2(src, dest)
    return dest


def load_theme(project_dir: Path | None = None) -> None:
    """Load the default theme and optionally merge project overrides.

    1. Load ``default_theme.yaml`` bundled with the package.
    2. If *project_dir* is given and ``{project_dir}/.tui-timeline/theme.yaml``
       exists, deep-merge it on top of the defaults.
    3. Apply the merged data to module-level constants.
    """
    default_path = Path(__file__).parent / "default_theme.yaml"
    data = _load_yaml(default_path)

    if project_dir is not None:
        override_path = project_dir / ".tui-timeline" / "theme.yaml"
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    _apply(data)


# Apply default theme on module import
load_theme()
