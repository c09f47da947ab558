"""Tests for the records loader."""

import json
from datetime import date
from pathlib import Path

import pytest

from tui_timeline.models import EntityKind, ProjectStatus, Scale, TaskStatus, TimelineEntity
from tui_timeline.records import (
    entity_to_record,
    find_records_file,
    load_records,
    records_to_entities,
)
from tui_timeline.timeline import build_layout


SAMPLE = {
    "projects": [
        {"_id": "p1", "title": "Website", "status": "Active", "startDate": "2025-08-08", "dueDate": "2025-09-30"},
        {"id": "p2", "title": "Payroll", "status": "On Hold", "startDate": "2025-09-01T00:00:00.000Z"},
    ],
    "tasks": [
        {"_id": "t1", "projectId": "p1", "task": "Wireframes", "status": "Completed", "startDate": "2025-08-08", "eta": "2025-08-14"},
        {"_id": "t2", "projectId": "p1", "task": "Frontend", "status": "In Progress", "eta": "2025-09-12"},
    ],
}


@pytest.fixture
def json_file(tmp_path):
    path = tmp_path / "records.json"
    path.write_text(json.dumps(SAMPLE), encoding="utf-8")
    return path


class TestRecordsToEntities:
    def test_maps_projects_and_tasks(self):
        entities, warnings = records_to_entities(SAMPLE)
        assert warnings == []
        assert [e.id for e in entities] == ["p1", "p2", "t1", "t2"]
        p1 = entities[0]
        assert p1.kind == EntityKind.PROJECT
        assert p1.label == "Website"
        assert p1.end_date == "2025-09-30"
        assert p1.status == ProjectStatus.ACTIVE

    def test_plain_id_is_accepted(self):
        entities, _ = records_to_entities(SAMPLE)
        assert entities[1].id == "p2"
        assert entities[1].status == ProjectStatus.ON_HOLD
        assert entities[1].end_date is None

    def test_task_fields(self):
        entities, _ = records_to_entities(SAMPLE)
        t2 = entities[3]
        assert t2.kind == EntityKind.TASK
        assert t2.parent_id == "p1"
        assert t2.start_date is None
        assert t2.end_date == "2025-09-12"
        assert t2.status == TaskStatus.IN_PROGRESS

    def test_unknown_status_falls_back(self):
        entities, _ = records_to_entities({"tasks": [{"_id": "t", "task": "x", "status": "Weird", "eta": "2025-01-01"}]})
        assert entities[0].status == TaskStatus.YET_TO_START

    def test_missing_title_is_skipped(self):
        entities, warnings = records_to_entities({"projects": [{"_id": "p1"}]})
        assert entities == []
        assert len(warnings) == 1
        assert "missing id or title" in warnings[0].message

    def test_invalid_date_is_kept_for_the_layout_engine(self):
        data = {"projects": [{"_id": "p1", "title": "P", "dueDate": "end of Q3"}]}
        entities, warnings = records_to_entities(data, "records.json")
        assert entities[0].end_date == "end of Q3"
        # reported once, by build_layout
        assert warnings == []

    def test_task_without_eta_is_kept(self):
        data = {"projects": [{"_id": "p1", "title": "P"}], "tasks": [{"_id": "t1", "projectId": "p1", "task": "T"}]}
        entities, warnings = records_to_entities(data)
        assert len(entities) == 2
        assert entities[1].end_date is None
        assert warnings == []

    def test_bad_date_is_reported_once(self):
        data = {
            "projects": [{"_id": "p1", "title": "P", "startDate": "2025-08-08"}],
            "tasks": [{"_id": "t1", "projectId": "p1", "task": "T", "eta": "soon"}],
        }
        entities, warnings = records_to_entities(data)
        layout = build_layout(entities, Scale.DAY, date(2025, 8, 8))
        reported = warnings + layout.rejected
        assert [(w.record_id, w.field) for w in reported] == [("t1", "end_date")]

    def test_unknown_project_reference(self):
        data = {"tasks": [{"_id": "t1", "projectId": "nope", "task": "T", "eta": "2025-08-10"}]}
        _, warnings = records_to_entities(data)
        assert warnings[0].field == "projectId"
        assert warnings[0].value == "nope"

    def test_empty_section(self):
        entities, warnings = records_to_entities({"projects": None, "tasks": None})
        assert entities == []
        assert warnings == []

    def test_non_list_section(self):
        _, warnings = records_to_entities({"projects": {"a": 1}})
        assert "'projects' is not a list" in warnings[0].message

    def test_non_mapping_record(self):
        entities, warnings = records_to_entities({"projects": ["oops"]})
        assert entities == []
        assert warnings[0].message == "Record is not a mapping"


class TestLoadRecords:
    def test_load_json(self, json_file):
        dataset = load_records(json_file)
        assert dataset.path == json_file
        assert len(dataset.projects) == 2
        assert len(dataset.tasks) == 2
        assert dataset.warnings == []

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "records.yaml"
        path.write_text(
            "projects:\n"
            "  - _id: p1\n"
            "    title: Website\n"
            "    startDate: 2025-08-08\n"
            "    dueDate: '2025-09-30'\n",
            encoding="utf-8",
        )
        dataset = load_records(path)
        assert dataset.warnings == []
        assert dataset.projects[0].start_date == "2025-08-08"

    def test_missing_file(self, tmp_path):
        dataset = load_records(tmp_path / "records.json")
        assert dataset.entities == []
        assert "Cannot read file" in dataset.warnings[0].message

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text("{not json", encoding="utf-8")
        dataset = load_records(path)
        assert "Cannot parse file" in dataset.warnings[0].message

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_bytes(b"\xff\xfe\x00bad")
        dataset = load_records(path)
        assert "UTF-8" in dataset.warnings[0].message

    def test_yaml_with_empty_tasks_key(self, tmp_path):
        path = tmp_path / "records.yaml"
        path.write_text(
            "projects:\n"
            "  - _id: p1\n"
            "    title: Website\n"
            "tasks:\n",
            encoding="utf-8",
        )
        dataset = load_records(path)
        assert dataset.warnings == []
        assert len(dataset.projects) == 1
        assert dataset.tasks == []

    def test_top_level_list(self, tmp_path):
        path = tmp_path / "records.json"
        path.write_text("[]", encoding="utf-8")
        dataset = load_records(path)
        assert dataset.entities == []
        assert "Top level" in dataset.warnings[0].message


class TestFindRecordsFile:
    def test_none(self, tmp_path):
        assert find_records_file(tmp_path) is None

    def test_json_before_yaml(self, tmp_path):
        (tmp_path / "records.yaml").write_text("{}", encoding="utf-8")
        (tmp_path / "records.json").write_text("{}", encoding="utf-8")
        assert find_records_file(tmp_path).name == "records.json"

    def test_yml(self, tmp_path):
        (tmp_path / "records.yml").write_text("{}", encoding="utf-8")
        assert find_records_file(tmp_path).name == "records.yml"

    def test_configured_name(self, tmp_path):
        (tmp_path / "export.json").write_text("{}", encoding="utf-8")
        assert find_records_file(tmp_path, "export.json") == tmp_path / "export.json"
        assert find_records_file(tmp_path, "missing.json") is None


class TestEntityToRecord:
    def test_project_round_trip(self):
        project = TimelineEntity("p1", "Website", EntityKind.PROJECT, "2025-08-08", "2025-09-30", ProjectStatus.COMPLETED)
        entities, warnings = records_to_entities({"projects": [entity_to_record(project)]})
        assert warnings == []
        assert entities == [project]

    def test_task_without_start_omits_key(self):
        task = TimelineEntity("t1", "Build", EntityKind.TASK, None, "2025-09-01", TaskStatus.BLOCKED, "p1")
        record = entity_to_record(task)
        assert "startDate" not in record
        assert record["projectId"] == "p1"
        assert record["status"] == "Blocked"
