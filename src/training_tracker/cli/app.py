"""Shared Typer app object, shared option types, and store utilities."""

import logging
import os
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import LOG_LEVEL_ENV_VAR
from ..core.engine.config_loader import get_setting
from ..core.service import TrainingTracker
from ..io.tracking_store import JsonTrackingStore, get_default_data_dir
from . import views

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        "-D",
        help="Directory holding trainings, athletes and assignments "
        "(default: $TRAINING_TRACKER_HOME or ~/.training-tracker)",
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="training-tracker",
    help="Assign trainings to athletes, run sessions and track completion.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log lifecycle transitions and timer events"),
    ] = False,
) -> None:
    """
    Training assignment and execution tracker.
    """
    configure_logging(verbose)


def configure_logging(verbose: bool = False) -> None:
    """
    Configure the root logger.

    Level precedence: --verbose, then $TRAINING_TRACKER_LOG_LEVEL, then the
    ``logging.level`` setting.
    """
    if verbose:
        level_name = "DEBUG"
    else:
        level_name = os.getenv(LOG_LEVEL_ENV_VAR) or get_setting("logging", "level", "WARNING")
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.WARNING),
        format="%(asctime)s [%(name)s:%(levelname)s] %(message)s",
        stream=sys.stderr,
        force=True,
    )


def get_store(data_dir: Path | None) -> JsonTrackingStore:
    """Get the tracking store from path or default location."""
    if data_dir is None:
        data_dir = get_default_data_dir()
    return JsonTrackingStore(data_dir)


def require_store(data_dir: Path | None) -> JsonTrackingStore:
    """Get the store, exiting with a hint when it hasn't been initialized."""
    store = get_store(data_dir)
    if not store.exists():
        views.print_error(f"No tracking data in {store.data_dir}")
        views.print_info("Run 'init' first.")
        raise typer.Exit(1)
    return store


def get_tracker(store: JsonTrackingStore) -> TrainingTracker:
    return TrainingTracker(store)
