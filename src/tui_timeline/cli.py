"""CLI entry point using Click."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from pathlib import Path

import click

from tui_timeline.models import Scale

_DATE = click.DateTime(formats=["%Y-%m-%d"])
_SCALE = click.Choice([s.value for s in Scale], case_sensitive=False)


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-timeline` routes to run

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


def _as_date(value: datetime | None) -> date | None:
    return value.date() if value is not None else None


def _as_scale(value: str | None) -> Scale | None:
    return Scale(value.lower()) if value else None


def _setup_logging(log_file: str | None, verbose: bool) -> None:
    if not log_file:
        return
    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _check_project_dir(project_dir: Path) -> None:
    if not project_dir.exists():
        click.echo(f"Error: '{project_dir}' does not exist.", err=True)
        raise SystemExit(1)
    if not project_dir.is_dir():
        click.echo(f"Error: '{project_dir}' is not a directory.", err=True)
        raise SystemExit(1)


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("--demo", is_flag=True, help="Launch with bundled demo records (read-only)")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write log messages to this file")
@click.option("--verbose", is_flag=True, help="Log at DEBUG level (with --log-file)")
@click.version_option(package_name="tui-timeline")
@click.pass_context
def main(ctx, no_color: bool, demo: bool, log_file: str | None, verbose: bool) -> None:
    """TUI Timeline - Terminal Gantt view of projects and tasks."""
    _setup_logging(log_file, verbose)
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    ctx.obj["demo"] = demo


@main.command()
@click.argument("path", default=".", type=click.Path())
@click.option("--scale", type=_SCALE, default=None, help="Initial time scale")
@click.option("--anchor", type=_DATE, default=None, help="Timeline start date (YYYY-MM-DD)")
@click.option("--today", type=_DATE, default=None, help="Reference 'today' (YYYY-MM-DD)")
@click.pass_context
def run(ctx, path: str, scale: str | None, anchor: datetime | None, today: datetime | None) -> None:
    """Opens the timeline for the records file in PATH."""
    from tui_timeline.app import TimelineApp

    no_color = ctx.obj["no_color"]
    demo = ctx.obj["demo"]

    if demo:
        from tui_timeline.demo_data import get_demo_dir

        project_dir = get_demo_dir()
    else:
        project_dir = Path(path).resolve()
        _check_project_dir(project_dir)

    app = TimelineApp(
        project_dir=project_dir,
        no_color=no_color,
        demo_mode=demo,
        scale=_as_scale(scale),
        anchor=_as_date(anchor),
        today=_as_date(today),
    )
    app.run()


def _sample_records(name: str, anchor: date) -> dict:
    from tui_timeline.models import EntityKind, ProjectStatus, TaskStatus, TimelineEntity
    from tui_timeline.records import entity_to_record

    def day(n: int) -> str:
        return (anchor + timedelta(days=n)).isoformat()

    project = TimelineEntity(
        id="p-1",
        label=name,
        kind=EntityKind.PROJECT,
        start_date=day(0),
        end_date=day(60),
        status=ProjectStatus.ACTIVE,
    )
    tasks = [
        TimelineEntity("t-1", "Plan", EntityKind.TASK, day(0), day(13), TaskStatus.IN_PROGRESS, "p-1"),
        TimelineEntity("t-2", "Build", EntityKind.TASK, day(14), day(44), TaskStatus.YET_TO_START, "p-1"),
        TimelineEntity("t-3", "Review", EntityKind.TASK, day(45), day(60), TaskStatus.YET_TO_START, "p-1"),
    ]
    return {
        "projects": [entity_to_record(project)],
        "tasks": [entity_to_record(t) for t in tasks],
    }


@main.command("init")
@click.argument("path", default=".", type=click.Path())
@click.option("--name", prompt="Project name", default="My Project", help="Project name")
def init_cmd(path: str, name: str) -> None:
    """Initialize a new timeline folder (config.toml + sample records.json)."""
    import json

    from tui_timeline.config import CONFIG_DIR, CONFIG_FILE, save_config
    from tui_timeline.models import ProjectConfig
    from tui_timeline.records import find_records_file

    project_dir = Path(path).resolve()

    existing = find_records_file(project_dir) if project_dir.is_dir() else None
    if existing is not None:
        click.echo(f"Records file already exists: {existing.name}", err=True)
        raise SystemExit(1)

    project_dir.mkdir(parents=True, exist_ok=True)

    config = ProjectConfig(name=name)
    save_config(project_dir, config)
    click.echo(f"Created {project_dir / CONFIG_DIR / CONFIG_FILE}")

    records_path = project_dir / "records.json"
    records_path.write_text(
        json.dumps(_sample_records(name, config.anchor), indent=2) + "\n",
        encoding="utf-8",
    )
    click.echo(f"Created {records_path}")

    click.echo(f"\nTimeline initialized at {project_dir}")
    click.echo("Run 'tui-timeline' to open it.")


@main.command("export")
@click.argument("path", default=".", type=click.Path())
@click.option("--format", "fmt", type=click.Choice(["json", "csv", "mermaid"]), default="json", help="Output format")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Output file")
@click.option("--scale", type=_SCALE, default=None, help="Time scale")
@click.option("--anchor", type=_DATE, default=None, help="Timeline start date (YYYY-MM-DD)")
@click.option("--today", type=_DATE, default=None, help="Reference 'today' (YYYY-MM-DD)")
@click.pass_context
def export_cmd(
    ctx,
    path: str,
    fmt: str,
    output: str | None,
    scale: str | None,
    anchor: datetime | None,
    today: datetime | None,
) -> None:
    """Compute the layout for PATH and write it without opening the TUI."""
    from tui_timeline.config import load_config, resolve_today
    from tui_timeline.export import EXPORT_FORMATS, export_layout
    from tui_timeline.records import find_records_file, load_records
    from tui_timeline.timeline import build_layout

    if ctx.obj["demo"]:
        from tui_timeline.demo_data import DEMO_FILE, demo_anchor, demo_today, get_demo_dir

        project_dir = get_demo_dir()
        config = load_config(project_dir)
        records_path: Path | None = project_dir / DEMO_FILE
        config.anchor = demo_anchor()
        config.today = demo_today()
        base_dir = Path.cwd()
    else:
        project_dir = Path(path).resolve()
        _check_project_dir(project_dir)
        config = load_config(project_dir)
        records_path = find_records_file(project_dir, config.records_file)
        base_dir = project_dir

    if records_path is None:
        click.echo(f"Error: no records file found in '{project_dir}'.", err=True)
        raise SystemExit(1)

    dataset = load_records(records_path)
    for warning in dataset.warnings:
        click.echo(f"Warning: {warning}", err=True)

    layout = build_layout(
        dataset.entities,
        _as_scale(scale) or config.scale,
        _as_date(anchor) or config.anchor,
        resolve_today(config, _as_date(today)),
        config.min_span_days,
    )
    for rejected in layout.rejected:
        click.echo(f"Warning: {rejected}", err=True)

    output_path = Path(output) if output else base_dir / f"timeline{EXPORT_FORMATS[fmt]}"
    try:
        export_layout(layout, output_path, fmt)
    except OSError as e:
        click.echo(f"Error: cannot write {output_path}: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Exported {len(layout.bars)} rows to {output_path}")


@main.command("init-theme")
@click.argument("path", default=".", type=click.Path())
def init_theme_cmd(path: str) -> None:
    """Copy default theme to .tui-timeline/theme.yaml for customization."""
    from tui_timeline.theme import init_theme

    project_dir = Path(path).resolve()
    _check_project_dir(project_dir)
    try:
        dest = init_theme(project_dir)
        click.echo(f"Created {dest}")
    except FileExistsError as e:
        click.echo(f"Already exists: {e}", err=True)
        raise SystemExit(1)


@main.command("refresh-demo")
@click.option("--date", "target", type=_DATE, default=None, help="New demo anchor (default: today)")
def refresh_demo_cmd(target: datetime | None) -> None:
    """Shift demo dates so the demo anchor becomes today."""
    from tui_timeline.demo_data import refresh_demo_dates

    refresh_demo_dates(_as_date(target))
    click.echo("Demo dates refreshed.")
