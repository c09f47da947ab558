"""Tests for the click command line."""

import json

import pytest
from click.testing import CliRunner

from tui_timeline.cli import main
from tui_timeline.config import load_config
from tui_timeline.records import load_records


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def initialized(runner, tmp_path):
    result = runner.invoke(main, ["init", str(tmp_path), "--name", "Ops Board"])
    assert result.exit_code == 0, result.output
    return tmp_path


class TestInit:
    def test_creates_config_and_records(self, initialized):
        assert load_config(initialized).name == "Ops Board"
        dataset = load_records(initialized / "records.json")
        assert dataset.warnings == []
        assert [p.label for p in dataset.projects] == ["Ops Board"]
        assert len(dataset.tasks) == 3

    def test_refuses_existing_records(self, runner, initialized):
        result = runner.invoke(main, ["init", str(initialized), "--name", "Again"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_creates_missing_folder(self, runner, tmp_path):
        target = tmp_path / "new" / "board"
        result = runner.invoke(main, ["init", str(target), "--name", "X"])
        assert result.exit_code == 0
        assert (target / "records.json").is_file()


class TestExport:
    def test_json(self, runner, initialized, tmp_path):
        out = tmp_path / "layout.json"
        result = runner.invoke(
            main,
            ["export", str(initialized), "--output", str(out), "--today", "2025-08-20"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["scale"] == "day"
        assert data["today"]["date"] == "2025-08-20"
        assert data["range"]["start"] == "2025-08-08"
        assert len(data["bars"]) == 4

    def test_default_output_path(self, runner, initialized):
        result = runner.invoke(main, ["export", str(initialized), "--format", "mermaid"])
        assert result.exit_code == 0, result.output
        assert (initialized / "timeline.mmd").read_text(encoding="utf-8").startswith("gantt")

    def test_scale_and_anchor_overrides(self, runner, initialized, tmp_path):
        out = tmp_path / "layout.json"
        result = runner.invoke(
            main,
            ["export", str(initialized), "-o", str(out), "--scale", "month", "--anchor", "2025-07-15"],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["scale"] == "month"
        assert data["units"][0] == "2025-07-01"

    def test_missing_folder(self, runner, tmp_path):
        result = runner.invoke(main, ["export", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_no_records(self, runner, tmp_path):
        result = runner.invoke(main, ["export", str(tmp_path)])
        assert result.exit_code == 1
        assert "no records file" in result.output

    def test_unknown_format(self, runner, initialized):
        result = runner.invoke(main, ["export", str(initialized), "--format", "xml"])
        assert result.exit_code == 2

    def test_warnings_are_reported(self, runner, tmp_path):
        (tmp_path / "records.json").write_text(
            json.dumps({"tasks": [{"_id": "t1", "task": "Loose", "eta": "later"}]}),
            encoding="utf-8",
        )
        result = runner.invoke(main, ["export", str(tmp_path), "-o", str(tmp_path / "out.csv"), "--format", "csv"])
        assert result.exit_code == 0
        assert "Warning:" in result.output
        # the unparsable eta is reported once
        assert result.output.count("later") == 1
        assert (tmp_path / "out.csv").is_file()

    def test_demo(self, runner, tmp_path):
        out = tmp_path / "demo.json"
        result = runner.invoke(main, ["--demo", "export", "-o", str(out)])
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["today"]["date"] == "2025-08-20"
        assert len(data["bars"]) == 13


class TestOtherCommands:
    def test_run_is_default_command(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_init_theme(self, runner, tmp_path):
        result = runner.invoke(main, ["init-theme", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / ".tui-timeline" / "theme.yaml").is_file()
        result = runner.invoke(main, ["init-theme", str(tmp_path)])
        assert result.exit_code == 1

    def test_refresh_demo(self, runner, monkeypatch):
        calls = []
        monkeypatch.setattr("tui_timeline.demo_data.refresh_demo_dates", lambda target: calls.append(target))
        result = runner.invoke(main, ["refresh-demo", "--date", "2026-01-05"])
        assert result.exit_code == 0
        assert [d.isoformat() for d in calls] == ["2026-01-05"]
