"""CLI commands for the study tracker.

Commands:
- semester-add / semesters / semester-rm: Manage semesters
- tracker-add / trackers / tracker-rm: Manage trackers (syllabus from a text file)
- show: Syllabus tree, progress and upcoming tests of a tracker
- toggle: Mark a topic complete or incomplete
- schedule-test / test: Schedule a test and inspect its coverage
- export / import: Move a tracker's syllabus between semesters or machines
- theme: Read or set the theme preference
- serve: Run the web API
"""

import json
from datetime import datetime
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from studytrack.core.errors import StudyTrackError
from studytrack.core.models import CoverageTarget, TestType
from studytrack.core.priority import TestDetails
from studytrack.core.syllabus_document import load_document
from studytrack.core.syllabus_parser import render_syllabus, render_warnings
from studytrack.core.tracker_service import TrackerService

app = typer.Typer(
    name="studytrack",
    help="Track syllabus progress and upcoming tests per semester.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def _get_service() -> TrackerService:
    return TrackerService.from_config()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _parse_datetime_ms(value: str) -> int:
    """Parse an ISO date/time (local time if no offset) into epoch ms."""
    try:
        moment = datetime.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO date/time: {value}") from None
    return int(moment.timestamp() * 1000)


def _format_ms(value: int) -> str:
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M")


def _progress_color(percentage: float) -> str:
    if percentage >= 75:
        return "green"
    if percentage >= 40:
        return "yellow"
    return "red"


# =============================================================================
# SEMESTERS
# =============================================================================


@app.command(name="semester-add")
def semester_add(name: str = typer.Argument(..., help="Semester name")) -> None:
    """Create a semester."""
    try:
        semester = _get_service().create_semester(name)
    except StudyTrackError as e:
        _fail(e.message)

    console.print("[green]✓ Semester created[/green]")
    console.print(f"  [dim]id:[/dim]   {semester.id}")
    console.print(f"  [dim]name:[/dim] {semester.name}")


@app.command(name="semesters")
def list_semesters() -> None:
    """List semesters, newest first."""
    try:
        semesters = _get_service().list_semesters()
    except StudyTrackError as e:
        _fail(e.message)

    if not semesters:
        console.print("[yellow]No semesters yet[/yellow]")
        console.print("  Use: studytrack semester-add <name>")
        return

    console.print(f"\n[bold]Semesters ({len(semesters)}):[/bold]\n")
    for semester in semesters:
        console.print(f"  [bold]{semester.name}[/bold]  [dim]{semester.id}[/dim]")


@app.command(name="semester-rm")
def semester_rm(
    semester_id: str = typer.Argument(..., help="Semester id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a semester with all its trackers."""
    if not yes and not typer.confirm("Delete semester and all its trackers?"):
        raise typer.Exit(code=1)

    try:
        deleted = _get_service().delete_semester(semester_id)
    except StudyTrackError as e:
        _fail(e.message)

    if not deleted:
        _fail(f"Semester not found: {semester_id}")
    console.print("[green]✓ Semester deleted[/green]")


# =============================================================================
# TRACKERS
# =============================================================================


@app.command(name="tracker-add")
def tracker_add(
    semester_id: str = typer.Argument(..., help="Semester id"),
    name: str = typer.Argument(..., help="Tracker name"),
    syllabus_file: Path = typer.Option(
        ..., "--file", "-f", help="Syllabus text file ('Subject >>> Unit >>> topics')"
    ),
    description: str | None = typer.Option(None, "--description", "-d"),
    color: str | None = typer.Option(None, "--color", "-c"),
) -> None:
    """Create a tracker from a syllabus text file."""
    if not syllabus_file.exists():
        _fail(f"File not found: {syllabus_file}")

    try:
        tracker = _get_service().create_tracker(
            semester_id,
            name,
            syllabus_file.read_text(encoding="utf-8"),
            description=description,
            color=color,
        )
    except StudyTrackError as e:
        _fail(e.message)

    console.print("[green]✓ Tracker created[/green]")
    console.print(f"  [dim]id:[/dim]       {tracker.id}")
    console.print(f"  [dim]subjects:[/dim] {tracker.total_subjects}")
    console.print(f"  [dim]units:[/dim]    {tracker.total_units}")
    console.print(f"  [dim]topics:[/dim]   {tracker.total_topics}")


@app.command(name="trackers")
def list_trackers(semester_id: str = typer.Argument(..., help="Semester id")) -> None:
    """List the trackers of a semester."""
    try:
        trackers = _get_service().list_trackers(semester_id)
    except StudyTrackError as e:
        _fail(e.message)

    if not trackers:
        console.print("[yellow]No trackers in this semester[/yellow]")
        return

    table = Table(title=f"Trackers ({len(trackers)})")
    table.add_column("Name", style="bold")
    table.add_column("Subjects", justify="right")
    table.add_column("Units", justify="right")
    table.add_column("Topics", justify="right")
    table.add_column("Id", style="dim")
    for tracker in trackers:
        table.add_row(
            tracker.name,
            str(tracker.total_subjects),
            str(tracker.total_units),
            str(tracker.total_topics),
            tracker.id,
        )
    console.print(table)


@app.command(name="tracker-rm")
def tracker_rm(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a tracker with its syllabus and tests."""
    if not yes and not typer.confirm("Delete tracker?"):
        raise typer.Exit(code=1)

    try:
        deleted = _get_service().delete_tracker(tracker_id)
    except StudyTrackError as e:
        _fail(e.message)

    if not deleted:
        _fail(f"Tracker not found: {tracker_id}")
    console.print("[green]✓ Tracker deleted[/green]")


@app.command()
def show(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    ids: bool = typer.Option(False, "--ids", help="Show unit and topic ids"),
) -> None:
    """Show syllabus progress and upcoming tests."""
    try:
        data = _get_service().get_tracker_data(tracker_id)
    except StudyTrackError as e:
        _fail(e.message)
    if data is None:
        _fail(f"Tracker not found: {tracker_id}")

    progress = data.progress
    color = _progress_color(progress.percentage)
    console.print(f"\n[bold]{data.tracker.name}[/bold]")
    console.print(
        f"  [{color}]{progress.percentage:.0f}%[/{color}] "
        f"({progress.completed_topics}/{progress.total_topics} topics)\n"
    )

    units_by_id = {
        unit_data.unit.id: unit_data
        for subject_data in data.subjects
        for unit_data in subject_data.units
    }

    for subject_progress in progress.subjects:
        console.print(
            f"[bold]{subject_progress.subject_name}[/bold] "
            f"[dim]{subject_progress.percentage:.0f}%[/dim]"
        )
        for unit_progress in subject_progress.units:
            unit_label = f"  {unit_progress.unit_name}"
            if ids:
                unit_label += f" [dim]{unit_progress.unit_id}[/dim]"
            console.print(
                f"{unit_label} [dim]({unit_progress.completed_topics}/"
                f"{unit_progress.total_topics})[/dim]"
            )
            for topic in units_by_id[unit_progress.unit_id].topics:
                mark = "[green]✓[/green]" if topic.completed else "[dim]·[/dim]"
                suffix = f" [dim]{topic.id}[/dim]" if ids else ""
                console.print(f"    {mark} {topic.name}{suffix}")
        console.print()

    if data.priority_tests:
        console.print("[bold]Upcoming tests (next 7 days):[/bold]")
        for details in data.priority_tests:
            _print_test_details(details)
    elif data.all_tests:
        console.print(f"[dim]{len(data.all_tests)} test(s) scheduled, none this week[/dim]")


def _print_test_details(details: TestDetails) -> None:
    test = details.test
    console.print(
        f"  [bold]{test.name}[/bold] [dim]({test.test_type.value}, {_format_ms(test.scheduled_date)})[/dim]"
    )
    console.print(f"    [dim]time left:[/dim] {details.time_remaining}")
    if details.covered_topics:
        console.print(f"    [dim]covers:[/dim]    {', '.join(details.covered_topics)}")


# =============================================================================
# TOPICS
# =============================================================================


@app.command()
def toggle(topic_id: str = typer.Argument(..., help="Topic id")) -> None:
    """Toggle a topic between complete and incomplete."""
    try:
        topic = _get_service().toggle_topic(topic_id)
    except StudyTrackError as e:
        _fail(e.message)
    if topic is None:
        _fail(f"Topic not found: {topic_id}")

    state = "[green]complete[/green]" if topic.completed else "[yellow]incomplete[/yellow]"
    console.print(f"✓ {topic.name}: {state}")


# =============================================================================
# TESTS
# =============================================================================


@app.command(name="schedule-test")
def schedule_test(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    name: str = typer.Argument(..., help="Test name"),
    date: str = typer.Option(..., "--date", help="ISO date/time, e.g. 2026-11-03T09:00"),
    test_type: str = typer.Option(
        TestType.CLASS_TEST.value,
        "--type",
        "-t",
        help="lab_practical, class_test, isa or esa",
    ),
    unit_ids: list[str] = typer.Option([], "--unit", "-u", help="Covered unit id (repeatable)"),
    topic_ids: list[str] = typer.Option([], "--topic", help="Covered topic id (repeatable)"),
) -> None:
    """Schedule a test covering units and/or topics."""
    scheduled_ms = _parse_datetime_ms(date)
    coverage = [CoverageTarget(unit_id=u) for u in unit_ids]
    coverage += [CoverageTarget(topic_id=t) for t in topic_ids]

    try:
        test = _get_service().schedule_test(tracker_id, name, test_type, scheduled_ms, coverage)
    except StudyTrackError as e:
        _fail(e.message)

    console.print("[green]✓ Test scheduled[/green]")
    console.print(f"  [dim]id:[/dim]   {test.id}")
    console.print(f"  [dim]date:[/dim] {_format_ms(test.scheduled_date)}")


@app.command(name="test")
def test_details(test_id: str = typer.Argument(..., help="Test id")) -> None:
    """Show a test with its covered topics."""
    try:
        details = _get_service().get_test_details(test_id)
    except StudyTrackError as e:
        _fail(e.message)
    if details is None:
        _fail(f"Test not found: {test_id}")
    _print_test_details(details)


# =============================================================================
# EXPORT / IMPORT
# =============================================================================


@app.command(name="export")
def export_syllabus(
    tracker_id: str = typer.Argument(..., help="Tracker id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file"),
    fmt: str = typer.Option("json", "--format", help="json or text"),
) -> None:
    """Export a tracker's syllabus as JSON or syllabus text."""
    if fmt not in ("json", "text"):
        raise typer.BadParameter("format must be 'json' or 'text'")

    try:
        document = _get_service().export_syllabus(tracker_id)
    except StudyTrackError as e:
        _fail(e.message)

    if fmt == "json":
        content = json.dumps(document.model_dump(), indent=2, ensure_ascii=False)
    else:
        entries = document.to_entries()
        for warning in render_warnings(entries):
            err_console.print(f"[yellow]⚠ {warning}[/yellow]")
        content = render_syllabus(entries)

    if output is None:
        typer.echo(content)
        return

    output.write_text(content + "\n", encoding="utf-8")
    console.print(f"[green]✓ Exported to {output}[/green]")


@app.command(name="import")
def import_syllabus(
    semester_id: str = typer.Argument(..., help="Target semester id"),
    file: Path = typer.Argument(..., help="Exported JSON document"),
) -> None:
    """Create a tracker from an exported JSON document."""
    if not file.exists():
        _fail(f"File not found: {file}")

    try:
        tracker = _get_service().import_syllabus(semester_id, load_document(file))
    except StudyTrackError as e:
        _fail(e.message)

    console.print(f"[green]✓ Imported '{tracker.name}'[/green]")
    console.print(f"  [dim]id:[/dim]     {tracker.id}")
    console.print(f"  [dim]topics:[/dim] {tracker.total_topics}")


# =============================================================================
# PREFERENCES
# =============================================================================


@app.command()
def theme(value: str | None = typer.Argument(None, help="light or dark")) -> None:
    """Show or set the theme preference."""
    try:
        service = _get_service()
        if value is None:
            console.print(service.get_theme())
            return
        service.set_theme(value)
    except StudyTrackError as e:
        _fail(e.message)
    console.print(f"[green]✓ Theme set to {value}[/green]")


# =============================================================================
# WEB API
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the web API with uvicorn."""
    import uvicorn

    console.print(f"[bold]StudyTrack API[/bold] on http://{host}:{port}")
    uvicorn.run("studytrack.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
