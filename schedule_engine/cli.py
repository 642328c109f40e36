"""
Command-line interface for the scheduling engine.

Usage:
    python -m schedule_engine validate catalog.json
    python -m schedule_engine generate catalog.json -s "1st Semester" -y 2024-2025 -o report.json
    python -m schedule_engine detect catalog.json entry.json
    python -m schedule_engine workload catalog.json -s "1st Semester" -y 2024-2025
    python -m schedule_engine view report.json --faculty fac-001
    python -m schedule_engine sample catalog.json --size small
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from .config import get_settings
from .data.generator import (
    GeneratorConfig,
    generate_large_catalog,
    generate_sample_catalog,
    generate_small_catalog,
    get_generation_stats,
    save_generated_catalog,
)
from .data.loader import load_catalog, normalize_catalog_data, save_catalog
from .data.models import Catalog, GenerationOptions, GenerationRequest, ScheduleEntry, Term
from .data.repository import InMemoryRepository
from .errors import SchedulingError
from .logging_config import setup_logging
from .output.schema import ScheduleReport, create_schedule_report
from .search import GenerationStatus
from .service import SchedulingService
from .timemodel import WeekDay

# Create Typer app
app = typer.Typer(
    name="schedule-engine",
    help="Academic timetable generation and conflict detection.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

STATUS_COLORS = {
    "satisfied": "green",
    "committed": "green",
    "partially-satisfied": "yellow",
    "infeasible": "red",
}


# =============================================================================
# Helper Functions
# =============================================================================

def _configure_logging(verbose: bool) -> None:
    setup_logging("DEBUG" if verbose else get_settings().log_level)


def load_input(catalog_path: Path) -> Catalog:
    """Load and validate a catalog file."""
    if not catalog_path.exists():
        console.print(f"[red]Error:[/red] Catalog file not found: {catalog_path}")
        raise typer.Exit(code=1)

    try:
        return load_catalog(catalog_path)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON:[/red] {e}")
        raise typer.Exit(code=1)
    except SchedulingError as e:
        console.print(f"[red]Error loading catalog:[/red] {e.message}")
        raise typer.Exit(code=1)


def load_report(report_path: Path) -> ScheduleReport:
    """Load a report JSON file."""
    if not report_path.exists():
        console.print(f"[red]Error:[/red] Report file not found: {report_path}")
        raise typer.Exit(code=1)

    try:
        with open(report_path) as f:
            data = json.load(f)
        return ScheduleReport.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Error loading report:[/red] {e}")
        raise typer.Exit(code=1)


def print_summary(report: ScheduleReport) -> None:
    """Print report summary to console."""
    color = STATUS_COLORS.get(report.status.value, "white")
    console.print(Panel(
        Text(report.status.value.upper(), style=f"bold {color}"),
        title=f"{report.semester} {report.academic_year}",
        subtitle=f"Generated in {report.elapsed_seconds:.2f}s",
    ))

    table = Table(title="Summary", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    entry_ids = {s.entry_id for s in report.sessions}
    table.add_row("Entries", str(len(entry_ids)))
    table.add_row("Sessions", str(len(report.sessions)))
    table.add_row("Faculty", str(len(report.views.by_faculty)))
    table.add_row("Classrooms Used", str(len(report.views.by_classroom)))
    table.add_row("Unresolved", str(len(report.unresolved)))
    table.add_row("Skipped", str(len(report.skipped_subject_ids)))
    if report.metrics:
        table.add_row("Average Room Utilization", f"{report.metrics.get('averageUtilization', 0)}%")
    console.print(table)


def print_unresolved(report: ScheduleReport) -> None:
    if not report.unresolved:
        return
    table = Table(title="Unresolved Subjects", show_header=True, header_style="bold yellow")
    table.add_column("Subject")
    table.add_column("Constraint")
    table.add_column("Attempts", justify="right")
    table.add_column("Reason")
    for item in report.unresolved:
        table.add_row(item.subject_id, item.constraint or "-", str(item.attempts), item.reason)
    console.print(table)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def validate(
    catalog_file: Path = typer.Argument(
        ...,
        help="Path to catalog JSON file to validate",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Show detailed validation results",
    ),
) -> None:
    """
    Validate a catalog file.

    Checks for:
    - Valid JSON structure
    - Schema compliance
    - Reference integrity (department, course, faculty IDs)
    - Logical consistency (faculty capacity, lab rooms)

    Example:
        python -m schedule_engine validate catalog.json
    """
    console.print(f"\n[bold]Validating:[/bold] {catalog_file}\n")

    if not catalog_file.exists():
        console.print(f"[red]Error:[/red] File not found: {catalog_file}")
        raise typer.Exit(code=1)

    # Step 1: JSON parsing
    console.print("[cyan]1. Checking JSON syntax...[/cyan]")
    try:
        with open(catalog_file) as f:
            json.load(f)
        console.print("   [green]JSON syntax is valid[/green]")
    except json.JSONDecodeError as e:
        console.print(f"   [red]Invalid JSON:[/red] {e}")
        raise typer.Exit(code=1)

    # Step 2: Schema and references
    console.print("[cyan]2. Validating schema and references...[/cyan]")
    try:
        catalog = load_catalog(catalog_file)
        console.print("   [green]Schema validation passed[/green]")
    except SchedulingError as e:
        console.print("   [red]Validation failed:[/red]")
        for line in e.message.split("\n"):
            console.print(f"   {line}")
        raise typer.Exit(code=1)

    # Step 3: Logical consistency
    console.print("[cyan]3. Checking logical consistency...[/cyan]")
    stats = get_generation_stats(catalog)
    warnings = []

    for dept_id, figures in stats["by_department"].items():
        if figures["subject_hours"] > figures["faculty_capacity"]:
            warnings.append(
                f"Department '{dept_id}' needs {figures['subject_hours']}h "
                f"but its faculty can carry {figures['faculty_capacity']}h"
            )

    if stats["lab_subjects"] and not stats["lab_rooms"]:
        warnings.append(f"{stats['lab_subjects']} subjects have lab units but no lab rooms exist")

    if warnings:
        console.print("   [yellow]Warnings found:[/yellow]")
        for w in warnings:
            console.print(f"   - {w}")
    else:
        console.print("   [green]No logical consistency issues[/green]")

    # Summary
    console.print("\n[bold]Summary:[/bold]")
    table = Table(show_header=False, box=None)
    table.add_column("Entity", style="cyan")
    table.add_column("Count", style="white")
    for key in ("departments", "courses", "faculty", "classrooms", "subjects", "entries"):
        table.add_row(key.capitalize(), str(stats[key]))
    table.add_row("Total subject hours", f"{stats['total_subject_hours']:g}")
    console.print(table)

    if verbose:
        console.print("\n[bold]Detailed breakdown:[/bold]")
        for dept_id, figures in stats["by_department"].items():
            console.print(
                f"  {dept_id}: {figures['subject_hours']}h of "
                f"{figures['faculty_capacity']}h ({figures['utilization']}%)"
            )

    console.print("\n[green]Validation complete.[/green]\n")


@app.command()
def generate(
    catalog_file: Path = typer.Argument(
        ...,
        help="Path to catalog JSON file",
        exists=True,
    ),
    semester: str = typer.Option(..., "--semester", "-s", help="Semester, e.g. '1st Semester'"),
    academic_year: str = typer.Option(..., "--academic-year", "-y", help="Academic year, e.g. '2024-2025'"),
    subject: Optional[list[str]] = typer.Option(None, "--subject", help="Subject ID (repeatable)"),
    department: Optional[list[str]] = typer.Option(None, "--department", "-d", help="Department ID (repeatable)"),
    allowed_day: Optional[list[str]] = typer.Option(None, "--day", help="Allowed day (repeatable)"),
    max_trials: Optional[int] = typer.Option(None, "--max-trials", min=1, help="Detector call budget"),
    time_limit: Optional[float] = typer.Option(None, "--time-limit", "-t", help="Time limit in seconds"),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Path to write the report JSON",
    ),
    commit_to: Optional[Path] = typer.Option(
        None,
        "--commit-to",
        help="Commit the drafts and write the updated catalog here",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Generate draft schedule entries for a term.

    Example:
        python -m schedule_engine generate catalog.json -s "1st Semester" -y 2024-2025 -o report.json
    """
    _configure_logging(verbose)
    catalog = load_input(catalog_file)
    console.print(
        f"[green]Loaded:[/green] {len(catalog.subjects)} subjects, "
        f"{len(catalog.faculty)} faculty, {len(catalog.classrooms)} classrooms"
    )

    try:
        request = GenerationRequest(
            semester=semester,
            academic_year=academic_year,
            subject_ids=subject or [],
            department_ids=department or [],
            options=GenerationOptions(
                allowed_days=[WeekDay.parse(d) for d in allowed_day or []],
                max_trials=max_trials,
                time_limit_seconds=time_limit,
            ),
        )
    except (ValidationError, SchedulingError) as e:
        console.print(f"[red]Invalid request:[/red] {e}")
        raise typer.Exit(code=1)

    repository = InMemoryRepository(catalog)
    service = SchedulingService(repository)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Searching for a conflict-free schedule...", total=None)
            result = service.generate_schedules(request)
    except SchedulingError as e:
        console.print(f"[red]Generation failed:[/red] {e.message}")
        raise typer.Exit(code=1)

    report = create_schedule_report(result.assigned, catalog, result.term, result)
    console.print()
    print_summary(report)
    print_unresolved(report)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w") as f:
            f.write(report.to_json())
        console.print(f"\n[green]Report saved to:[/green] {output}")

    if commit_to and result.assigned:
        try:
            stored = service.commit_generated(result)
        except SchedulingError as e:
            console.print(f"[red]Commit failed:[/red] {e.message}")
            raise typer.Exit(code=1)
        save_catalog(repository.snapshot(), commit_to)
        console.print(f"[green]Committed {len(stored)} drafts to:[/green] {commit_to}")

    if result.status == GenerationStatus.INFEASIBLE:
        raise typer.Exit(code=1)


@app.command()
def detect(
    catalog_file: Path = typer.Argument(..., help="Path to catalog JSON file", exists=True),
    entry_file: Path = typer.Argument(..., help="Path to a proposed entry JSON file", exists=True),
) -> None:
    """
    Check a proposed entry for conflicts without saving it.

    Exits with code 1 when any hard constraint is violated.

    Example:
        python -m schedule_engine detect catalog.json entry.json
    """
    catalog = load_input(catalog_file)
    try:
        with open(entry_file) as f:
            raw = json.load(f)
        candidate = ScheduleEntry.model_validate(normalize_catalog_data({"entries": [raw]})["entries"][0])
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid entry:[/red] {e}")
        raise typer.Exit(code=1)

    service = SchedulingService(InMemoryRepository(catalog))
    try:
        conflicts = service.detect_conflicts(candidate)
    except SchedulingError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)

    console.print(Panel(candidate.describe(), title="Proposed Entry"))
    if not conflicts:
        console.print("[green]No conflicts found.[/green]")
        return

    table = Table(title=f"{len(conflicts)} Conflict(s)", show_header=True, header_style="bold red")
    table.add_column("Kind")
    table.add_column("Entry")
    table.add_column("Overlap")
    table.add_column("Message")
    for conflict in conflicts:
        table.add_row(
            conflict.kind.value,
            conflict.conflicting_entry_id or "-",
            str(conflict.overlap) if conflict.overlap else "-",
            conflict.message,
        )
    console.print(table)
    raise typer.Exit(code=1)


@app.command()
def workload(
    catalog_file: Path = typer.Argument(..., help="Path to catalog JSON file", exists=True),
    semester: str = typer.Option(..., "--semester", "-s"),
    academic_year: str = typer.Option(..., "--academic-year", "-y"),
    faculty: Optional[str] = typer.Option(None, "--faculty", "-f", help="Show one faculty member"),
    department: Optional[str] = typer.Option(None, "--department", "-d", help="Show one department"),
) -> None:
    """
    Show faculty teaching loads for a term.

    Example:
        python -m schedule_engine workload catalog.json -s "1st Semester" -y 2024-2025 -d dept-ccs
    """
    catalog = load_input(catalog_file)
    service = SchedulingService(InMemoryRepository(catalog))
    term = Term(semester=semester, academic_year=academic_year)

    try:
        if faculty:
            workloads = [service.faculty_workload(faculty, term)]
        elif department:
            workloads = service.department_workload(department, term)
        else:
            workloads = [
                w for dept in catalog.departments
                for w in service.department_workload(dept.id, term)
            ]
    except SchedulingError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)

    table = Table(title=f"Faculty Workload - {term}", show_header=True, header_style="bold cyan")
    table.add_column("Faculty")
    table.add_column("Department")
    table.add_column("Hours", justify="right")
    table.add_column("Band", justify="right")
    table.add_column("Preps", justify="right")
    table.add_column("Status")

    for w in workloads:
        color = {"optimal": "green", "underloaded": "yellow", "overloaded": "red"}[w.status.value]
        table.add_row(
            f"{w.faculty_name} ({w.faculty_id})",
            w.department_id,
            f"{w.total_hours:.2f}",
            f"{w.min_load:g}-{w.max_load:g}",
            f"{w.preparations}/{w.max_preparations}",
            f"[{color}]{w.status.value}[/{color}]",
        )
    console.print(table)


@app.command()
def view(
    report_file: Path = typer.Argument(
        ...,
        help="Path to report JSON file",
        exists=True,
    ),
    faculty: Optional[str] = typer.Option(
        None,
        "--faculty", "-f",
        help="Show schedule for specific faculty ID",
    ),
    room: Optional[str] = typer.Option(
        None,
        "--room", "-r",
        help="Show schedule for specific classroom ID",
    ),
    day: Optional[str] = typer.Option(
        None,
        "--day", "-D",
        help="Show schedule for specific day (monday, tuesday, etc.)",
    ),
) -> None:
    """
    Display specific views of a schedule report.

    Examples:
        python -m schedule_engine view report.json --faculty fac-001
        python -m schedule_engine view report.json --room room-l01
        python -m schedule_engine view report.json --day monday
    """
    report = load_report(report_file)

    if faculty:
        _show_entity(report.views.by_faculty, faculty, "Faculty Schedule")
    elif room:
        _show_entity(report.views.by_classroom, room, "Classroom Schedule")
    elif day:
        _show_day_view(report, day)
    else:
        _show_overview(report)


def _show_entity(schedules: dict, entity_id: str, title: str) -> None:
    schedule = schedules.get(entity_id)
    if not schedule:
        console.print(f"[red]Error:[/red] '{entity_id}' not found")
        console.print(f"Available: {', '.join(schedules.keys())}")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold]{schedule.name}[/bold] ({schedule.id}) - {schedule.hours:g}h/week",
        title=title,
    ))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Day", style="cyan")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Faculty")
    table.add_column("Room")

    for d in sorted(schedule.by_day, key=lambda d: d.week_index):
        for session in schedule.by_day[d]:
            table.add_row(
                d.label,
                f"{session.start_time}-{session.end_time}",
                session.subject_code or session.subject_id,
                session.faculty_name or session.faculty_id,
                session.room_name or session.classroom_id,
            )
    console.print(table)


def _show_day_view(report: ScheduleReport, day_name: str) -> None:
    """Show schedule for a specific day."""
    try:
        day = WeekDay.parse(day_name)
    except SchedulingError:
        console.print(f"[red]Error:[/red] Invalid day '{day_name}'")
        console.print(f"Valid days: {', '.join(d.value for d in WeekDay)}")
        raise typer.Exit(code=1)

    day_schedule = report.views.by_day.get(day)
    if not day_schedule:
        console.print(f"[yellow]No sessions scheduled for {day.label}[/yellow]")
        return

    console.print(Panel(f"[bold]{day_schedule.day_name}[/bold]", title="Daily Schedule"))

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Faculty")
    table.add_column("Room")
    for session in sorted(day_schedule.sessions, key=lambda s: s.start_time):
        table.add_row(
            f"{session.start_time}-{session.end_time}",
            session.subject_code or session.subject_id,
            session.faculty_name or session.faculty_id,
            session.room_name or session.classroom_id,
        )
    console.print(table)


def _show_overview(report: ScheduleReport) -> None:
    """Show overview of the schedule."""
    print_summary(report)
    print_unresolved(report)

    console.print("\n[bold]Weekly Overview:[/bold]")
    start_times = sorted({s.start_time for s in report.sessions})
    days = sorted(report.views.by_day, key=lambda d: d.week_index)

    if not start_times or not days:
        console.print("[yellow]No sessions scheduled[/yellow]")
        return

    table = Table(title="Week Grid", show_header=True, header_style="bold cyan")
    table.add_column("Start", style="dim")
    for d in days:
        table.add_column(d.label[:3], justify="center")

    for start in start_times:
        row = [start]
        for d in days:
            count = sum(1 for s in report.views.by_day[d].sessions if s.start_time == start)
            row.append(str(count) if count else "-")
        table.add_row(*row)
    console.print(table)


@app.command()
def sample(
    output: Path = typer.Argument(..., help="Path to write the generated catalog"),
    size: str = typer.Option("medium", "--size", help="small, medium or large"),
    seed: int = typer.Option(42, "--seed", help="Random seed"),
) -> None:
    """
    Generate a sample catalog.

    Example:
        python -m schedule_engine sample catalog.json --size small
    """
    generators = {
        "small": generate_small_catalog,
        "medium": lambda s: generate_sample_catalog(GeneratorConfig(seed=s)),
        "large": generate_large_catalog,
    }
    if size not in generators:
        console.print(f"[red]Error:[/red] Unknown size '{size}' (choose small, medium or large)")
        raise typer.Exit(code=1)

    catalog = generators[size](seed)
    save_generated_catalog(catalog, output)
    stats = get_generation_stats(catalog)
    console.print(
        f"[green]Wrote {size} catalog to {output}:[/green] {stats['subjects']} subjects, "
        f"{stats['faculty']} faculty, {stats['classrooms']} classrooms"
    )


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
