"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of tracking data.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import format_seconds
from ..core.models import (
    BUCKET_NAMES,
    AssignmentStatus,
    Athlete,
    AthleteHistoryRow,
    SessionSummary,
    Training,
    TrackingBuckets,
    TrainingAssignment,
)

console = Console()

STATUS_STYLES: dict[AssignmentStatus, str] = {
    AssignmentStatus.ASSIGNED: "cyan",
    AssignmentStatus.IN_PROGRESS: "yellow",
    AssignmentStatus.DONE: "green",
    AssignmentStatus.MISSED: "red",
    AssignmentStatus.EXEMPTED: "dim",
}


def _status_cell(status: AssignmentStatus) -> str:
    style = STATUS_STYLES.get(status, "white")
    return f"[{style}]{status.value}[/{style}]"


def _elapsed_cell(elapsed: int, target: int) -> str:
    return f"{format_seconds(elapsed)} / {format_seconds(target)}"


def format_roster_table(athletes: list[Athlete]) -> Table:
    table = Table(title="Roster")
    table.add_column("ID", justify="right", style="dim")
    table.add_column("No.", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Position", style="magenta")
    for a in athletes:
        table.add_row(
            str(a.athlete_no),
            str(a.player_no) if a.player_no is not None else "-",
            a.display_name,
            a.position or "-",
        )
    return table


def format_training_table(training: Training) -> Table:
    """
    Create a Rich table listing a training's exercises.

    Args:
        training: Template to display

    Returns:
        Rich Table object
    """
    table = Table(
        title=(
            f"{training.name} (v{training.version}) · {training.date} {training.time}"
            f" · {format_seconds(training.duration_seconds)}"
        )
    )
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Target", justify="right")
    for i, ex in enumerate(training.exercises, 1):
        table.add_row(
            str(i), ex.name, str(ex.sets), str(ex.reps), format_seconds(ex.duration_seconds)
        )
    return table


def format_trainings_table(trainings: list[Training]) -> Table:
    table = Table(title="Trainings")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Duration", justify="right")
    table.add_column("Exercises", justify="right")
    table.add_column("Ver.", justify="right", style="dim")
    for t in trainings:
        table.add_row(
            t.training_id,
            t.name,
            t.date,
            t.time,
            format_seconds(t.duration_seconds),
            str(len(t.exercises)),
            str(t.version),
        )
    return table


def format_tracking_table(buckets: TrackingBuckets) -> Table:
    """
    Create a Rich table of one training's assignments, grouped by bucket.

    Args:
        buckets: Aggregated tracking buckets

    Returns:
        Rich Table object
    """
    training = buckets.training
    table = Table(title=f"Tracking · {training.name} · {buckets.date} {training.time}")
    table.add_column("Bucket", style="bold")
    table.add_column("No.", justify="right")
    table.add_column("Athlete", style="cyan")
    table.add_column("Position", style="magenta")
    table.add_column("Status")
    table.add_column("Elapsed / target", justify="right")
    table.add_column("Executed")

    for name in BUCKET_NAMES:
        rows = buckets.bucket(name)
        label = f"{name} ({len(rows)})"
        if not rows:
            table.add_row(label, "", "[dim]-[/dim]", "", "", "", "")
            continue
        for i, row in enumerate(rows):
            table.add_row(
                label if i == 0 else "",
                str(row.player_no) if row.player_no is not None else "-",
                row.name,
                row.position or "-",
                _status_cell(row.status),
                _elapsed_cell(row.elapsed_seconds, row.target_seconds),
                row.date_executed or "-",
            )
        table.add_section()
    return table


def print_tracking(buckets: TrackingBuckets) -> None:
    """
    Print tracking buckets and a one-line completion summary.

    Args:
        buckets: Aggregated tracking buckets
    """
    if buckets.total == 0:
        console.print("[yellow]No assignments for this training on this date.[/yellow]")
        return
    console.print(format_tracking_table(buckets))
    counts = buckets.counts()
    console.print(
        "  ".join(f"{name}: {counts[name]}" for name in BUCKET_NAMES)
        + f"  ·  completion {buckets.completion_rate():.0%}"
    )


def format_history_table(athlete: Athlete, rows: list[AthleteHistoryRow]) -> Table:
    table = Table(title=f"Training history · {athlete.display_name}")
    table.add_column("Assignment", style="dim")
    table.add_column("Training", style="cyan")
    table.add_column("Scheduled")
    table.add_column("Status")
    table.add_column("Elapsed / target", justify="right")
    table.add_column("Executed")
    for r in rows:
        table.add_row(
            r.assignment_id,
            r.training_name,
            f"{r.scheduled_date} {r.scheduled_time}",
            _status_cell(r.status),
            _elapsed_cell(r.elapsed_seconds, r.target_seconds),
            r.date_executed or "-",
        )
    return table


def format_assignments_table(assignments: list[TrainingAssignment]) -> Table:
    table = Table(title="New assignments")
    table.add_column("Assignment", style="dim")
    table.add_column("Athlete", justify="right")
    table.add_column("Date")
    table.add_column("Exercises", justify="right")
    for a in assignments:
        table.add_row(a.assignment_id, str(a.athlete_no), a.scheduled_date, str(len(a.exercises)))
    return table


def format_summary_table(summary: SessionSummary) -> Table:
    """Per-exercise recap of a session."""
    table = Table(
        title=(
            f"Session {summary.assignment_id} · {summary.status.value}"
            f" · {_elapsed_cell(summary.elapsed_seconds, summary.target_seconds)}"
        )
    )
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Elapsed / target", justify="right")
    table.add_column("", justify="center")
    for i, ex in enumerate(summary.exercises, 1):
        mark = "[green]✓[/green]" if ex.completed else ("[dim]skipped[/dim]" if ex.exempted else "")
        table.add_row(
            str(i),
            ex.name,
            f"{ex.sets_finished}/{ex.target_sets}",
            f"{ex.reps_finished}/{ex.target_reps}",
            _elapsed_cell(ex.elapsed_seconds, ex.target_seconds),
            mark,
        )
    return table


def print_timers(elapsed: int, target: int, exercise_left: int | None) -> None:
    """One status line with the session stopwatch and the exercise countdown."""
    line = f"  [dim]Session[/dim] {_elapsed_cell(elapsed, target)}"
    if exercise_left is not None:
        if exercise_left > 0:
            line += f"  [dim]Exercise[/dim] {format_seconds(exercise_left)} left"
        else:
            line += "  [bold yellow]Exercise time is up[/bold yellow]"
    console.print(line)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
