"""Roster commands: init, add-athlete, list-athletes."""

import json
from typing import Annotated, Optional

import typer

from ...core.models import Athlete
from ...io.serializers import athlete_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store, require_store


@app.command()
def init(data_dir: DataDirOption = None) -> None:
    """
    Create the tracking data directory and empty data files.

    Existing files are left untouched, so running init twice is safe.
    """
    store = get_store(data_dir)
    existed = store.exists()
    store.init()
    if existed:
        views.print_info(f"Tracking data already present in {store.data_dir}")
    else:
        views.print_success(f"Initialized tracking data in {store.data_dir}")


@app.command("add-athlete")
def add_athlete(
    athlete_no: Annotated[int, typer.Option("--id", help="Athlete number (unique)")],
    first_name: Annotated[str, typer.Option("--first-name", "-f", help="First name")],
    last_name: Annotated[str, typer.Option("--last-name", "-l", help="Last name")],
    middle_name: Annotated[
        Optional[str], typer.Option("--middle-name", help="Middle name")
    ] = None,
    position: Annotated[str, typer.Option("--position", help="Playing position")] = "",
    player_no: Annotated[
        Optional[int], typer.Option("--number", "-n", help="Jersey number")
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add an athlete to the roster, or update one with the same id."""
    store = require_store(data_dir)
    try:
        athlete = Athlete(
            athlete_no=athlete_no,
            first_name=first_name,
            last_name=last_name,
            middle_name=middle_name,
            position=position,
            player_no=player_no,
        )
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    replaced = athlete_no in store.load_athletes()
    store.save_athlete(athlete)
    verb = "Updated" if replaced else "Added"
    views.print_success(f"{verb} athlete #{athlete_no}: {athlete.display_name}")


@app.command("list-athletes")
def list_athletes(data_dir: DataDirOption = None, json_out: JsonOption = False) -> None:
    """Show the roster ordered by jersey number."""
    store = require_store(data_dir)
    athletes = sorted(
        store.load_athletes().values(),
        key=lambda a: (a.player_no is None, a.player_no or 0, a.athlete_no),
    )
    if json_out:
        print(json.dumps([athlete_to_dict(a) for a in athletes], indent=2))
        return
    if not athletes:
        views.console.print("[yellow]No athletes on the roster yet.[/yellow]")
        return
    views.console.print(views.format_roster_table(athletes))
