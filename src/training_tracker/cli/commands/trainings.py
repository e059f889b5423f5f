"""Training template commands: add-training, revise-training, show-training, list-trainings."""

import json
from typing import Annotated, Optional

import typer

from ...core.errors import NotFoundError
from ...core.models import Training
from ...io.serializers import ValidationError, parse_exercise_spec, training_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_tracker, require_store

ExerciseSpecsOption = Annotated[
    Optional[list[str]],
    typer.Option(
        "--exercise",
        "-x",
        help="Exercise as id:sets:reps:seconds[:name]; repeat in order, "
        "e.g. -x 'slides:3:10:300:Defensive Slides'",
    ),
]


def _parse_exercises(specs: list[str]):
    try:
        return tuple(parse_exercise_spec(s) for s in specs)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


@app.command("add-training")
def add_training(
    training_id: Annotated[str, typer.Option("--id", help="Training id (unique)")],
    name: Annotated[str, typer.Option("--name", help="Training name")],
    date: Annotated[str, typer.Option("--date", "-d", help="Scheduled date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Option("--time", "-t", help="Time of day (HH:MM)")] = "07:00",
    duration: Annotated[
        int, typer.Option("--duration", help="Planned session duration in seconds")
    ] = 3600,
    exercises: ExerciseSpecsOption = None,
    coach_no: Annotated[Optional[int], typer.Option("--coach", help="Coach number")] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Create a training template.

      training-tracker add-training --id t1 --name "Conditioning" \\
        --date 2026-09-15 --time 07:00 --duration 3600 \\
        -x "slides:3:10:300:Defensive Slides" -x "plank:1:1:600:Plank Hold"
    """
    store = require_store(data_dir)
    if training_id in store.load_trainings():
        views.print_error(f"Training {training_id} already exists; use revise-training")
        raise typer.Exit(1)
    try:
        training = Training(
            training_id=training_id,
            name=name,
            date=date,
            time=time,
            duration_seconds=duration,
            exercises=_parse_exercises(exercises or []),
            coach_no=coach_no,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    get_tracker(store).add_training(training)
    views.print_success(f"Added training {training_id} with {len(training.exercises)} exercises")


@app.command("revise-training")
def revise_training(
    training_id: Annotated[str, typer.Option("--id", help="Training id")],
    name: Annotated[Optional[str], typer.Option("--name", help="New name")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="New date")] = None,
    time: Annotated[Optional[str], typer.Option("--time", "-t", help="New time of day")] = None,
    duration: Annotated[
        Optional[int], typer.Option("--duration", help="New planned duration in seconds")
    ] = None,
    exercises: ExerciseSpecsOption = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Save a new version of a training template.

    Assignments already generated keep the targets they were created with;
    only assignments generated afterwards use the new version.
    """
    store = require_store(data_dir)
    changes: dict = {}
    if name is not None:
        changes["name"] = name
    if date is not None:
        changes["date"] = date
    if time is not None:
        changes["time"] = time
    if duration is not None:
        changes["duration_seconds"] = duration
    if exercises:
        changes["exercises"] = _parse_exercises(exercises)
    if not changes:
        views.print_warning("Nothing to change.")
        raise typer.Exit(0)

    try:
        revised = get_tracker(store).revise_training(training_id, **changes)
    except (NotFoundError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_success(f"Training {training_id} is now at version {revised.version}")


@app.command("show-training")
def show_training(
    training_id: Annotated[str, typer.Argument(help="Training id")],
    version: Annotated[
        Optional[int], typer.Option("--version", help="Specific version (default: latest)")
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show a training template and its exercises."""
    store = require_store(data_dir)
    try:
        training = store.load_training(training_id, version)
    except NotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    if json_out:
        print(json.dumps(training_to_dict(training), indent=2))
        return
    views.console.print(views.format_training_table(training))


@app.command("list-trainings")
def list_trainings(data_dir: DataDirOption = None, json_out: JsonOption = False) -> None:
    """List the latest version of every training, by date."""
    store = require_store(data_dir)
    trainings = sorted(store.load_trainings().values(), key=lambda t: (t.date, t.time))
    if json_out:
        print(json.dumps([training_to_dict(t) for t in trainings], indent=2))
        return
    if not trainings:
        views.console.print("[yellow]No trainings defined yet.[/yellow]")
        return
    views.console.print(views.format_trainings_table(trainings))
