"""Export a computed timeline layout to JSON, CSV, and Mermaid Gantt formats."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from tui_timeline.models import BarLayout, Scale, Segment, TimelineLayout
from tui_timeline.timeline import percent

EXPORT_FORMATS = {
    "json": ".json",
    "csv": ".csv",
    "mermaid": ".mmd",
}


def _span(start: float, end: float, unit_count: int) -> dict[str, str]:
    left = percent(start, unit_count)
    right = percent(end, unit_count)
    return {"left": left, "width": f"calc({right} - {left})"}


def _segment_to_dict(segment: Segment, unit_count: int) -> dict:
    d = {
        "kind": segment.kind.value,
        "start_index": segment.start_index,
        "end_index": segment.end_index,
    }
    d.update(_span(segment.start_index, segment.end_index, unit_count))
    return d


def _bar_to_dict(bar: BarLayout, unit_count: int) -> dict:
    entity = bar.entity
    return {
        "id": entity.id,
        "label": entity.label,
        "kind": entity.kind.value,
        "status": entity.status.value,
        "parent_id": entity.parent_id,
        "depth": bar.depth,
        "start_date": bar.start_date.isoformat() if bar.start_date else "",
        "end_date": bar.end_date.isoformat() if bar.end_date else "",
        "start_index": bar.start_index,
        "end_index": bar.end_index,
        "segments": [_segment_to_dict(s, unit_count) for s in bar.segments],
    }


def layout_to_dict(layout: TimelineLayout) -> dict:
    """Serializable form of a layout with CSS positions for a web renderer."""
    n = layout.unit_count
    return {
        "range": {
            "start": layout.range.start.isoformat(),
            "end": layout.range.end.isoformat(),
            "visible_end": layout.visible_end.isoformat(),
            "truncated": layout.truncated,
        },
        "scale": layout.scale.value,
        "units": [u.isoformat() for u in layout.units],
        "today": {
            "date": layout.today.isoformat(),
            "index": layout.today_index,
            "left": percent(layout.today_index, n),
        },
        "week_groups": [
            {"label": g.label, "start_index": g.start_index, "end_index": g.end_index, **_span(g.start_index, g.end_index, n)}
            for g in layout.week_groups
        ],
        "bars": [_bar_to_dict(b, n) for b in layout.bars],
        "rejected": [str(r) for r in layout.rejected],
    }


def export_json(layout: TimelineLayout, output_path: Path) -> None:
    """Export layout to JSON file."""
    output_path.write_text(
        json.dumps(layout_to_dict(layout), indent=2, ensure_ascii=False), encoding="utf-8"
    )


def export_csv(layout: TimelineLayout, output_path: Path) -> None:
    """Export layout to CSV file, one row per drawn segment."""
    headers = [
        "id", "label", "kind", "status", "parent_id", "segment",
        "start_index", "end_index", "left", "width",
    ]
    n = layout.unit_count

    rows: list[dict[str, str]] = []
    for bar in layout.bars:
        for segment in bar.segments:
            span = _span(segment.start_index, segment.end_index, n)
            rows.append({
                "id": bar.entity.id,
                "label": bar.entity.label,
                "kind": bar.entity.kind.value,
                "status": bar.entity.status.value,
                "parent_id": bar.entity.parent_id or "",
                "segment": segment.kind.value,
                "start_index": f"{segment.start_index:g}",
                "end_index": f"{segment.end_index:g}",
                "left": span["left"],
                "width": span["width"],
            })

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=headers)
        writer.writeheader()
        writer.writerows(rows)


def _safe_mermaid_id(text: str) -> str:
    """Create a safe Mermaid task ID."""
    return "".join(ch if ch.isalnum() else "_" for ch in text)[:30] or "item"


def _safe_mermaid_label(text: str) -> str:
    return text.replace(":", " ").replace("#", " ").strip()


def export_mermaid(layout: TimelineLayout, output_path: Path) -> None:
    """Export layout to Mermaid Gantt chart (.mmd) file."""
    lines: list[str] = ["gantt"]
    lines.append("    dateFormat YYYY-MM-DD")
    if layout.scale == Scale.MONTH:
        lines.append("    axisFormat %b %Y")
    lines.append(f"    %% today: {layout.today.isoformat()}")
    lines.append("")

    for bar in layout.bars:
        entity = bar.entity
        if entity.is_project or bar.depth == 0:
            lines.append(f"    section {_safe_mermaid_label(entity.label)}")
        start, end = bar.start_date, bar.end_date
        if start is None or end is None:
            continue
        tag = "done, " if entity.status.value == "Completed" else ""
        lines.append(
            f"    {_safe_mermaid_label(entity.label)} :{tag}{_safe_mermaid_id(entity.id)}, "
            f"{start.isoformat()}, {end.isoformat()}"
        )

    output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def export_layout(layout: TimelineLayout, output_path: Path, fmt: str) -> None:
    """Dispatch on *fmt* (json, csv, mermaid)."""
    if fmt == "json":
        export_json(layout, output_path)
    elif fmt == "csv":
        export_csv(layout, output_path)
    elif fmt == "mermaid":
        export_mermaid(layout, output_path)
    else:
        raise ValueError(f"Unknown export format: {fmt}")
