"""Tests for --demo mode."""

from __future__ import annotations

import shutil
from datetime import date, timedelta

import pytest

from tui_timeline.demo_data import (
    DEMO_FILE,
    _extract_anchor,
    _shift_dates_in_content,
    demo_anchor,
    demo_today,
    get_demo_dir,
    refresh_demo_dates,
)
from tui_timeline.models import Scale, SegmentKind, TaskStatus
from tui_timeline.records import load_records
from tui_timeline.timeline import build_layout


@pytest.fixture
def demo_copy(tmp_path):
    """A writable copy of the bundled demo records."""
    dest = tmp_path / DEMO_FILE
    shutil.copy2(get_demo_dir() / DEMO_FILE, dest)
    return dest


# ── Unit tests for demo data ──


def test_demo_records_load_without_warnings():
    dataset = load_records(get_demo_dir() / DEMO_FILE)
    assert dataset.warnings == [], [str(w) for w in dataset.warnings]
    assert len(dataset.projects) == 4
    assert len(dataset.tasks) == 9


def test_demo_has_mixed_statuses():
    dataset = load_records(get_demo_dir() / DEMO_FILE)
    statuses = {t.status for t in dataset.tasks}
    assert {TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, TaskStatus.YET_TO_START} <= statuses


def test_demo_anchor_and_today(demo_copy):
    anchor = demo_anchor(demo_copy)
    assert anchor == date(2025, 8, 8)
    assert demo_today(demo_copy) == date(2025, 8, 20)


def test_demo_layout_splits_at_today(demo_copy):
    dataset = load_records(demo_copy)
    layout = build_layout(dataset.entities, Scale.DAY, demo_anchor(demo_copy), demo_today(demo_copy))
    assert layout.rejected == []
    assert layout.range.end == date(2025, 11, 28)
    kinds = {seg.kind for bar in layout.bars for seg in bar.segments}
    assert kinds == {SegmentKind.ELAPSED, SegmentKind.REMAINING}


def test_extract_anchor():
    assert _extract_anchor("# demo-anchor: 2024-02-29\n") == date(2024, 2, 29)
    assert _extract_anchor("projects: []\n") is None


def test_shift_dates_in_content():
    content = "# demo-anchor: 2025-08-08\nstartDate: \"2025-08-30\"\n"
    shifted = _shift_dates_in_content(content, timedelta(days=3))
    assert "# demo-anchor: 2025-08-11" in shifted
    assert '"2025-09-02"' in shifted


def test_shift_zero_is_identity():
    content = "x: 2025-01-01"
    assert _shift_dates_in_content(content, timedelta(0)) == content


def test_refresh_demo_dates(demo_copy):
    before = load_records(demo_copy)
    refresh_demo_dates(date(2026, 1, 1), demo_copy)
    assert demo_anchor(demo_copy) == date(2026, 1, 1)

    after = load_records(demo_copy)
    delta = date(2026, 1, 1) - date(2025, 8, 8)
    for old, new in zip(before.entities, after.entities):
        assert old.id == new.id
        if old.end_date:
            assert date.fromisoformat(new.end_date) - date.fromisoformat(old.end_date) == delta


def test_refresh_same_date_leaves_file(demo_copy):
    content = demo_copy.read_text(encoding="utf-8")
    refresh_demo_dates(date(2025, 8, 8), demo_copy)
    assert demo_copy.read_text(encoding="utf-8") == content


def test_missing_anchor_raises(tmp_path):
    path = tmp_path / DEMO_FILE
    path.write_text("projects: []\n", encoding="utf-8")
    with pytest.raises(ValueError):
        demo_anchor(path)
    with pytest.raises(ValueError):
        refresh_demo_dates(date(2026, 1, 1), path)
