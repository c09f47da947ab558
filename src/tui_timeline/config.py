"""Project configuration management using tomlkit."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import tomlkit
import yaml

from tui_timeline.models import ProjectConfig, Scale
from tui_timeline.timeline import parse_date

CONFIG_DIR = ".tui-timeline"
CONFIG_FILE = "config.toml"
SETTINGS_FILE = "settings.yaml"

MIN_LABEL_WIDTH = 12
MAX_LABEL_WIDTH = 60


def _get_config_path(project_dir: Path) -> Path:
    return project_dir / CONFIG_DIR / CONFIG_FILE


def load_config(project_dir: Path) -> ProjectConfig:
    """Load viewer configuration from .tui-timeline/config.toml.

    Missing or unreadable files give the defaults; bad values are ignored
    one field at a time.
    """
    config_path = _get_config_path(project_dir)
    config = ProjectConfig()

    if not config_path.exists():
        return config

    try:
        content = config_path.read_text(encoding="utf-8")
        doc = tomlkit.parse(content)
    except Exception:
        return config

    section = doc.get("timeline", {})
    if not isinstance(section, dict):
        return config

    config.name = str(section.get("name", ""))
    config.records_file = str(section.get("records_file", ""))

    anchor = parse_date(section.get("anchor"))
    if anchor is not None:
        config.anchor = anchor

    today_raw = section.get("today")
    config.today = parse_date(today_raw) if today_raw else None

    try:
        span = int(section.get("min_span_days", config.min_span_days))
        if span >= 0:
            config.min_span_days = span
    except (TypeError, ValueError):
        pass

    try:
        config.scale = Scale(str(section.get("scale", config.scale.value)).lower())
    except ValueError:
        pass

    try:
        width = int(section.get("label_width", config.label_width))
        config.label_width = max(MIN_LABEL_WIDTH, min(MAX_LABEL_WIDTH, width))
    except (TypeError, ValueError):
        pass

    return config


def save_config(project_dir: Path, config: ProjectConfig) -> None:
    """Save viewer configuration to .tui-timeline/config.toml."""
    config_path = _get_config_path(project_dir)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    doc = tomlkit.document()
    table = tomlkit.table()
    table.add("name", config.name)
    table.add("anchor", config.anchor.isoformat())
    table.add("today", config.today.isoformat() if config.today else "")
    table.add("min_span_days", config.min_span_days)
    table.add("scale", config.scale.value)
    table.add("label_width", config.label_width)
    if config.records_file:
        table.add("records_file", config.records_file)
    doc.add("timeline", table)

    config_path.write_text(tomlkit.dumps(doc), encoding="utf-8")


# ── Settings (YAML) ─────────────────────────────────────────────

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
            result[key] = val  # lists are replaced, not appended
    return result


def load_settings(project_dir: Path | None = None) -> dict[str, Any]:
    """Load settings from default_settings.yaml + optional project override.

    1. Load ``default_settings.yaml`` bundled with the package.
    2. If *project_dir* is given and ``{project_dir}/.tui-timeline/settings.yaml``
       exists, deep-merge it on top of the defaults.
    3. Return the merged dict.
    """
    default_path = Path(__file__).parent / "default_settings.yaml"
    data = _load_yaml(default_path)

    if project_dir is not None:
        override_path = project_dir / CONFIG_DIR / SETTINGS_FILE
        if override_path.is_file():
            override = _load_yaml(override_path)
            if override:
                data = _deep_merge(data, override)

    return data


def get_column_widths(settings: dict[str, Any]) -> dict[Scale, int]:
    """Character width of one unit cell for each scale."""
    raw = settings.get("column_width", {})
    widths = {Scale.DAY: 2, Scale.MONTH: 8}
    if isinstance(raw, dict):
        for scale in Scale:
            try:
                value = int(raw.get(scale.value, widths[scale]))
            except (TypeError, ValueError):
                continue
            if value > 0:
                widths[scale] = value
    return widths


def get_scroll_step(settings: dict[str, Any], scale: Scale) -> int:
    """Units moved per horizontal scroll key press."""
    raw = settings.get("scroll_step", {})
    default = 7 if scale == Scale.DAY else 1
    if not isinstance(raw, dict):
        return default
    try:
        return max(1, int(raw.get(scale.value, default)))
    except (TypeError, ValueError):
        return default


def resolve_today(config: ProjectConfig, override: date | None = None) -> date:
    """Explicit override, then configured today, then the wall-clock date."""
    return override or config.today or date.today()
