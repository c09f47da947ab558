"""Loader for project/task records exported from the tracker API."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from tui_timeline.models import (
    EntityKind,
    RejectedRecord,
    TimelineDataset,
    TimelineEntity,
    parse_status,
)

logger = logging.getLogger(__name__)

RECORD_FILE_NAMES = ("records.json", "records.yaml", "records.yml")


def _record_id(record: dict[str, Any]) -> str:
    """Backend records carry ``_id``; some payloads only have ``id``."""
    for key in ("_id", "id"):
        value = record.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return ""


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _project_entity(
    record: dict[str, Any], source: str, warnings: list[RejectedRecord]
) -> TimelineEntity | None:
    rid = _record_id(record)
    title = _optional_str(record.get("title"))
    if not rid or not title:
        warnings.append(RejectedRecord(source, rid, "title" if rid else "_id", title or "", "Project skipped: missing id or title"))
        return None
    start = _optional_str(record.get("startDate"))
    due = _optional_str(record.get("dueDate"))
    return TimelineEntity(
        id=rid,
        label=title,
        kind=EntityKind.PROJECT,
        start_date=start,
        end_date=due,
        status=parse_status(EntityKind.PROJECT, str(record.get("status", ""))),
    )


def _task_entity(
    record: dict[str, Any], source: str, warnings: list[RejectedRecord]
) -> TimelineEntity | None:
    rid = _record_id(record)
    label = _optional_str(record.get("task"))
    if not rid or not label:
        warnings.append(RejectedRecord(source, rid, "task" if rid else "_id", label or "", "Task skipped: missing id or name"))
        return None
    start = _optional_str(record.get("startDate"))
    eta = _optional_str(record.get("eta"))
    return TimelineEntity(
        id=rid,
        label=label,
        kind=EntityKind.TASK,
        start_date=start,
        end_date=eta,
        status=parse_status(EntityKind.TASK, str(record.get("status", ""))),
        parent_id=_optional_str(record.get("projectId")),
    )


def records_to_entities(
    data: dict[str, Any], source: str = ""
) -> tuple[list[TimelineEntity], list[RejectedRecord]]:
    """Convert a ``{"projects": [...], "tasks": [...]}`` payload to entities."""
    warnings: list[RejectedRecord] = []
    entities: list[TimelineEntity] = []

    for key, build in (("projects", _project_entity), ("tasks", _task_entity)):
        items = data.get(key)
        if items is None:
            # an empty YAML section ("tasks:") loads as None
            items = []
        if not isinstance(items, list):
            warnings.append(RejectedRecord(source, "", key, type(items).__name__, f"'{key}' is not a list"))
            continue
        for item in items:
            if not isinstance(item, dict):
                warnings.append(RejectedRecord(source, "", key, str(item), "Record is not a mapping"))
                continue
            entity = build(item, source, warnings)
            if entity is not None:
                entities.append(entity)

    project_ids = {e.id for e in entities if e.is_project}
    for entity in entities:
        if not entity.is_project and entity.parent_id not in project_ids:
            warnings.append(
                RejectedRecord(source, entity.id, "projectId", entity.parent_id or "", "Task references an unknown project")
            )

    return entities, warnings


def _read_payload(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def load_records(path: Path) -> TimelineDataset:
    """Load a JSON or YAML records file. Problems become warnings, never exceptions."""
    dataset = TimelineDataset(path=path)
    source = path.name

    try:
        payload = _read_payload(path)
    except OSError as e:
        dataset.warnings.append(RejectedRecord(source, "", "file", str(path), f"Cannot read file: {e}"))
        return dataset
    except UnicodeDecodeError:
        dataset.warnings.append(RejectedRecord(source, "", "file", str(path), "File is not valid UTF-8, skipping"))
        return dataset
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        dataset.warnings.append(RejectedRecord(source, "", "file", str(path), f"Cannot parse file: {e}"))
        return dataset

    if not isinstance(payload, dict):
        dataset.warnings.append(RejectedRecord(source, "", "file", str(path), "Top level must be a mapping with 'projects' and 'tasks'"))
        return dataset

    dataset.entities, dataset.warnings = records_to_entities(payload, source)
    logger.info(
        "Loaded %d projects and %d tasks from %s (%d warnings)",
        len(dataset.projects), len(dataset.tasks), path, len(dataset.warnings),
    )
    return dataset


def find_records_file(project_dir: Path, configured: str = "") -> Path | None:
    """Return the records file of a project folder, or None."""
    if configured:
        candidate = project_dir / configured
        return candidate if candidate.is_file() else None
    for name in RECORD_FILE_NAMES:
        candidate = project_dir / name
        if candidate.is_file():
            return candidate
    return None


def entity_to_record(entity: TimelineEntity) -> dict[str, Any]:
    """Inverse of the loader mapping, used when writing sample files."""
    if entity.is_project:
        return {
            "_id": entity.id,
            "title": entity.label,
            "status": entity.status.value,
            "startDate": entity.start_date or "",
            "dueDate": entity.end_date or "",
        }
    record: dict[str, Any] = {
        "_id": entity.id,
        "projectId": entity.parent_id or "",
        "task": entity.label,
        "status": entity.status.value,
        "eta": entity.end_date or "",
    }
    if entity.start_date:
        record["startDate"] = entity.start_date
    return record
