"""Session execution command: run."""

from typing import Annotated, TypeVar

import typer

from ...core.config import format_seconds
from ...core.errors import NotFoundError
from ...core.models import ExerciseAssignment, TrainingAssignment
from ...core.service import Outcome, TrainingTracker
from .. import views
from ..app import DataDirOption, app, get_tracker, require_store

T = TypeVar("T")


def _prompt_counts(exercise: ExerciseAssignment) -> tuple[int, int]:
    """
    Ask for finished sets and reps of the running exercise.

    Accepts "SETS REPS", or an empty line for the targets.
    """
    while True:
        raw = views.console.input(
            f"  Sets and reps done [dim](Enter = {exercise.target_sets} "
            f"{exercise.target_reps})[/dim]: "
        ).strip()
        if not raw:
            return exercise.target_sets, exercise.target_reps
        parts = raw.replace(",", " ").split()
        if len(parts) == 2 and all(p.isdigit() for p in parts):
            return int(parts[0]), int(parts[1])
        views.print_error("Enter two whole numbers, e.g. 3 10")


def _checked(outcome: Outcome[T]) -> T:
    """Value of an accepted operation; exits with the reason otherwise."""
    if not outcome.ok:
        views.print_error(str(outcome.error))
        raise typer.Exit(1)
    return outcome.value  # type: ignore[return-value]


def _show_timers(tracker: TrainingTracker, assignment: TrainingAssignment) -> None:
    elapsed, left = tracker.timer_readout(assignment.assignment_id)
    views.print_timers(elapsed, assignment.target_seconds, left)


def _run_exercise(tracker: TrainingTracker, assignment_id: str, index: int) -> bool:
    """Drive one exercise; returns False when the user asked to stop."""
    assignment = tracker.get_assignment(assignment_id)
    exercise = assignment.exercises[index]
    views.console.print(
        f"\n[bold]{index + 1}/{len(assignment.exercises)} {exercise.name}[/bold]"
        f"  {exercise.target_sets} x {exercise.target_reps}"
        f"  · {format_seconds(exercise.target_seconds)}"
    )
    _show_timers(tracker, assignment)
    choice = views.console.input(
        "  (Enter) start  (s) skip  (q) stop for now: "
    ).strip().lower()
    if choice == "q":
        return False
    if choice == "s":
        _checked(tracker.exempt_exercise(assignment_id, index))
        views.print_info(f"  Skipped {exercise.name}")
        return True

    _checked(tracker.begin_exercise(assignment_id, index))
    _show_timers(tracker, assignment)

    sets_done, reps_done = _prompt_counts(exercise)
    _checked(tracker.record_progress(assignment_id, index, sets_done, reps_done))
    _show_timers(tracker, assignment)
    done = _checked(tracker.complete_exercise(assignment_id, index))
    views.print_success(
        f"  {done.name}: {done.sets_finished}/{done.target_sets} sets, "
        f"{done.reps_finished}/{done.target_reps} reps in {format_seconds(done.elapsed_seconds)}"
    )
    return True


@app.command()
def run(
    assignment_id: Annotated[str, typer.Argument(help="Assignment id")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Run a training session exercise by exercise.

    Exercises are taken in order starting from the first one not yet
    finished; an interrupted session picks up where it stopped and keeps
    its elapsed time.
    """
    store = require_store(data_dir)
    tracker = get_tracker(store)
    try:
        current = tracker.assignment_status(assignment_id)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    if current.is_terminal:
        views.print_error(f"Assignment {assignment_id} is {current.value}")
        raise typer.Exit(1)

    try:
        while True:
            assignment = tracker.get_assignment(assignment_id)
            if assignment.status.is_terminal or assignment.cursor >= len(assignment.exercises):
                break
            if not _run_exercise(tracker, assignment_id, assignment.cursor):
                elapsed = tracker.suspend_session(assignment_id)
                views.print_info(
                    f"Session stopped at {format_seconds(elapsed)}; "
                    f"run it again to continue."
                )
                return
    except KeyboardInterrupt:
        elapsed = tracker.suspend_session(assignment_id)
        views.console.print()
        views.print_warning(f"Interrupted; session kept at {format_seconds(elapsed)}")
        raise typer.Exit(130)

    views.console.print()
    views.console.print(views.format_summary_table(tracker.session_summary(assignment_id)))
