"""Tests for viewer configuration and settings."""

from datetime import date

from tui_timeline.config import (
    get_column_widths,
    get_scroll_step,
    load_config,
    load_settings,
    resolve_today,
    save_config,
)
from tui_timeline.models import DEFAULT_ANCHOR, DEFAULT_MIN_SPAN_DAYS, ProjectConfig, Scale


def _write_config(tmp_path, text):
    cfg_dir = tmp_path / ".tui-timeline"
    cfg_dir.mkdir()
    (cfg_dir / "config.toml").write_text(text, encoding="utf-8")


class TestLoadConfig:
    def test_load_nonexistent(self, tmp_path):
        config = load_config(tmp_path)
        assert config.anchor == DEFAULT_ANCHOR
        assert config.today is None
        assert config.min_span_days == DEFAULT_MIN_SPAN_DAYS
        assert config.scale == Scale.DAY

    def test_load_existing(self, tmp_path):
        _write_config(
            tmp_path,
            """
[timeline]
name = "Ops"
anchor = "2025-01-06"
today = "2025-02-01"
min_span_days = 30
scale = "Month"
label_width = 40
records_file = "export.json"
""",
        )
        config = load_config(tmp_path)
        assert config.name == "Ops"
        assert config.anchor == date(2025, 1, 6)
        assert config.today == date(2025, 2, 1)
        assert config.min_span_days == 30
        assert config.scale == Scale.MONTH
        assert config.label_width == 40
        assert config.records_file == "export.json"

    def test_bad_values_fall_back_per_field(self, tmp_path):
        _write_config(
            tmp_path,
            '[timeline]\nname = "X"\nanchor = "soon"\nmin_span_days = "many"\nscale = "week"\nlabel_width = 500\n',
        )
        config = load_config(tmp_path)
        assert config.name == "X"
        assert config.anchor == DEFAULT_ANCHOR
        assert config.min_span_days == DEFAULT_MIN_SPAN_DAYS
        assert config.scale == Scale.DAY
        assert config.label_width == 60

    def test_unparsable_toml(self, tmp_path):
        _write_config(tmp_path, "[timeline\nname = ")
        assert load_config(tmp_path) == ProjectConfig()


class TestSaveConfig:
    def test_save_and_reload(self, tmp_path):
        config = ProjectConfig(
            name="Round Trip",
            anchor=date(2025, 3, 1),
            today=date(2025, 3, 10),
            min_span_days=45,
            scale=Scale.MONTH,
            records_file="data.yaml",
        )
        save_config(tmp_path, config)
        assert load_config(tmp_path) == config

    def test_save_without_today(self, tmp_path):
        save_config(tmp_path, ProjectConfig(name="P"))
        text = (tmp_path / ".tui-timeline" / "config.toml").read_text(encoding="utf-8")
        assert "[timeline]" in text
        assert load_config(tmp_path).today is None


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert get_column_widths(settings) == {Scale.DAY: 2, Scale.MONTH: 8}
        assert get_scroll_step(settings, Scale.DAY) == 7
        assert get_scroll_step(settings, Scale.MONTH) == 1
        assert settings["expand_first_project"] is True

    def test_project_override_is_merged(self, tmp_path):
        cfg_dir = tmp_path / ".tui-timeline"
        cfg_dir.mkdir()
        (cfg_dir / "settings.yaml").write_text("column_width:\n  month: 12\n", encoding="utf-8")
        widths = get_column_widths(load_settings(tmp_path))
        assert widths == {Scale.DAY: 2, Scale.MONTH: 12}

    def test_invalid_widths_ignored(self):
        widths = get_column_widths({"column_width": {"day": "wide", "month": 0}})
        assert widths == {Scale.DAY: 2, Scale.MONTH: 8}

    def test_scroll_step_minimum(self):
        assert get_scroll_step({"scroll_step": {"day": 0}}, Scale.DAY) == 1
        assert get_scroll_step({"scroll_step": "x"}, Scale.MONTH) == 1


class TestResolveToday:
    def test_override_wins(self):
        config = ProjectConfig(today=date(2025, 1, 1))
        assert resolve_today(config, date(2025, 6, 1)) == date(2025, 6, 1)

    def test_configured(self):
        assert resolve_today(ProjectConfig(today=date(2025, 1, 1))) == date(2025, 1, 1)

    def test_wall_clock(self):
        assert resolve_today(ProjectConfig()) == date.today()
