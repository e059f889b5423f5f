"""Assignment and tracking commands: assign, tracking, athlete, status, exempt, summary."""

import json
from dataclasses import asdict
from typing import Annotated, Optional

import typer

from ...core.errors import DuplicateAssignmentError, NotFoundError
from ...core.models import BUCKET_NAMES
from .. import views
from ..app import DataDirOption, JsonOption, app, get_tracker, require_store


def _jsonable(record) -> dict:
    data = asdict(record)
    if "status" in data:
        data["status"] = str(data["status"])
    return data


@app.command()
def assign(
    training_id: Annotated[str, typer.Option("--training", "-t", help="Training id")],
    athletes: Annotated[
        list[int], typer.Option("--athlete", "-a", help="Athlete id; repeat for several")
    ],
    dates: Annotated[
        Optional[list[str]],
        typer.Option("--date", "-d", help="Date (YYYY-MM-DD); repeat for several. "
                     "Default: the training's date"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Assign a training to every selected athlete on every selected date.

    Nothing is created when any athlete already holds the training on any
    of the dates; the colliding pairs are listed instead.
    """
    store = require_store(data_dir)
    tracker = get_tracker(store)
    try:
        created = tracker.generate_assignments(training_id, athletes, dates or None)
    except DuplicateAssignmentError as e:
        views.print_error(f"Training {e.training_id} is already assigned:")
        for athlete_no, on_date in e.pairs:
            views.console.print(f"  athlete #{athlete_no} on {on_date}")
        raise typer.Exit(1)
    except (NotFoundError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([a.assignment_id for a in created], indent=2))
        return
    views.console.print(views.format_assignments_table(created))
    views.print_success(f"Created {len(created)} assignments for {training_id}")


@app.command()
def tracking(
    training_id: Annotated[str, typer.Argument(help="Training id")],
    on_date: Annotated[
        Optional[str], typer.Option("--date", "-d", help="Date (default: the training's date)")
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show who is assigned, exempted, missed or done for a training.

    Assignments whose date has passed without being finished are reported
    as missed.
    """
    store = require_store(data_dir)
    try:
        buckets = get_tracker(store).get_tracking_buckets(training_id, on_date)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        output = {
            "training_id": buckets.training.training_id,
            "date": buckets.date,
            "counts": buckets.counts(),
            "completion_rate": round(buckets.completion_rate(), 4),
        }
        for name in BUCKET_NAMES:
            output[name] = [_jsonable(row) for row in buckets.bucket(name)]
        print(json.dumps(output, indent=2))
        return
    views.print_tracking(buckets)


@app.command()
def athlete(
    athlete_no: Annotated[int, typer.Argument(help="Athlete id")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show every training assigned to one athlete, newest first."""
    store = require_store(data_dir)
    try:
        profile = store.load_athlete(athlete_no)
        rows = get_tracker(store).get_athlete_history(athlete_no)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([_jsonable(r) for r in rows], indent=2))
        return
    if not rows:
        views.console.print(f"[yellow]No trainings assigned to {profile.display_name}.[/yellow]")
        return
    views.console.print(views.format_history_table(profile, rows))


@app.command()
def status(
    assignment_id: Annotated[str, typer.Argument(help="Assignment id")],
    data_dir: DataDirOption = None,
) -> None:
    """Print the current status of one assignment."""
    store = require_store(data_dir)
    try:
        current = get_tracker(store).assignment_status(assignment_id)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    print(current.value)


@app.command()
def exempt(
    assignment_id: Annotated[str, typer.Argument(help="Assignment id")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """Exempt an athlete from one assignment."""
    store = require_store(data_dir)
    tracker = get_tracker(store)
    try:
        assignment = store.load_assignment(assignment_id)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not force and not views.confirm_action(
        f"Exempt athlete #{assignment.athlete_no} from {assignment.training_id} "
        f"on {assignment.scheduled_date}?"
    ):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    outcome = tracker.exempt_assignment(assignment_id)
    if not outcome.ok:
        views.print_error(str(outcome.error))
        raise typer.Exit(1)
    views.print_success(f"Assignment {assignment_id} exempted")


@app.command()
def summary(
    assignment_id: Annotated[str, typer.Argument(help="Assignment id")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show the per-exercise recap of a session."""
    store = require_store(data_dir)
    try:
        recap = get_tracker(store).session_summary(assignment_id)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(_jsonable(recap), indent=2))
        return
    views.console.print(views.format_summary_table(recap))
    if recap.date_executed:
        views.print_info(f"Executed on {recap.date_executed}")
