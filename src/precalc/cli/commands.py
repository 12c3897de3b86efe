"""CLI commands for the precalculus course site.

Commands:
- init-db: Create the database schema
- seed: Load a YAML fixture into the database
- schedule: Show a student's pace order and exam deadlines
- set-order: Set a student's pace order
- serve: Run the Web API
"""

from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from precalc.config.app_config import load_app_config
from precalc.core.pace_order import PaceOrderError
from precalc.core.schedule import (
    ScheduleError,
    StudentSchedule,
    choose_pace_order,
    load_student_schedule,
)
from precalc.db.database import init_db as do_init_db
from precalc.db.fixtures import FixtureError, load_fixture

app = typer.Typer(
    name="precalc",
    help="Precalculus course site: schedules, pace ordering and course records.",
    no_args_is_help=True,
)

console = Console()

URGENCY_STYLES = {"normal": "", "soon": "yellow", "overdue": "red"}


def _db_path(db: str | None) -> Path:
    return Path(db) if db else load_app_config().db_path


def _parse_today(today: str | None) -> date:
    if today is None:
        return date.today()
    try:
        return datetime.strptime(today, "%Y-%m-%d").date()
    except ValueError:
        console.print(f"[red]✗ Invalid date (expected YYYY-MM-DD): {today}[/red]")
        raise typer.Exit(code=1)


def _print_schedule(schedule: StudentSchedule) -> None:
    console.print(
        f"[bold]{schedule.term.name}[/bold]  "
        f"[dim]pace:[/dim] {schedule.pace}  [dim]track:[/dim] {schedule.track}"
    )

    if not schedule.resolved:
        console.print("[yellow]⚠ Pace order needs a choice. Options:[/yellow]")
        for option in schedule.options:
            orders = ", ".join(f"{n}={cid}" for n, cid in option.orders.items())
            console.print(f"  {option.option_number}. {orders}")
        return

    view = schedule.view
    for line in view.opening:
        console.print(line)

    for inc in view.incompletes:
        suffix = f" [red]({inc.proximity})[/red]" if inc.proximity else ""
        console.print(f"  [dim]incomplete:[/dim] {inc.label} by {inc.deadline.isoformat()}{suffix}")

    for course in view.courses:
        console.print(f"\n[bold]{course.pace_order}. {course.label}[/bold] {course.name}")
        if course.config_error:
            console.print(f"  [red]✗ {course.config_error}[/red]")
            continue

        table = Table(show_header=True, header_style="bold")
        table.add_column("Exam")
        table.add_column("Deadline")
        table.add_column("Status")
        for row in course.deadlines:
            style = URGENCY_STYLES.get(row.urgency, "")
            table.add_row(row.exam_title, row.deadline.isoformat(), row.status, style=style)
        console.print(table)

        if course.last_try:
            console.print(
                f"  [dim]last try:[/dim] by {course.last_try.deadline.isoformat()} "
                f"({course.last_try.attempts_taken}/{course.last_try.attempts_allowed} used)"
            )
        for note in course.notes:
            console.print(f"  [dim]{note}[/dim]")

    for note in view.notes:
        console.print(f"\n[dim]{note}[/dim]")


@app.command()
def init_db(
    db: str | None = typer.Option(None, "--db", help="Database path (default from config)"),
) -> None:
    """Create the database schema."""
    path = _db_path(db)
    do_init_db(path)
    console.print(f"[green]✓ Database ready[/green]  [dim]{path}[/dim]")


@app.command()
def seed(
    fixture: str = typer.Argument(..., help="Path to YAML fixture"),
    db: str | None = typer.Option(None, "--db", help="Database path (default from config)"),
) -> None:
    """Load a YAML fixture into the database."""
    do_init_db(_db_path(db))
    try:
        counts = load_fixture(Path(fixture).expanduser())
    except FixtureError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print("[green]✓ Fixture loaded[/green]")
    for section, count in counts.items():
        console.print(f"  [dim]{section}:[/dim] {count}")


@app.command()
def schedule(
    student_id: str = typer.Argument(..., help="Student ID"),
    today: str | None = typer.Option(None, "--today", help="Date to evaluate (YYYY-MM-DD)"),
    db: str | None = typer.Option(None, "--db", help="Database path (default from config)"),
) -> None:
    """Show a student's pace order and exam deadlines."""
    do_init_db(_db_path(db))
    try:
        result = load_student_schedule(student_id, _parse_today(today))
    except ScheduleError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    _print_schedule(result)


@app.command()
def set_order(
    student_id: str = typer.Argument(..., help="Student ID"),
    courses: list[str] = typer.Argument(..., help="Course IDs in pace order, e.g. 'M 117' 'M 118'"),
    today: str | None = typer.Option(None, "--today", help="Date to evaluate (YYYY-MM-DD)"),
    db: str | None = typer.Option(None, "--db", help="Database path (default from config)"),
) -> None:
    """Set a student's pace order (first course listed is order 1)."""
    do_init_db(_db_path(db))
    choices = {index: course_id for index, course_id in enumerate(courses, start=1)}
    try:
        updated, result = choose_pace_order(student_id, choices, _parse_today(today))
    except (ScheduleError, PaceOrderError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Updated {updated} registration(s)[/green]")
    _print_schedule(result)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Serving on http://{host}:{port}[/blue]")
    uvicorn.run("precalc.web.api:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
