"""
CLI entry point using Typer.

Provides commands for training tracking:
- init: Create the tracking data directory
- add-athlete / list-athletes: Manage the roster
- add-training / revise-training / show-training / list-trainings: Templates
- assign: Assign a training to athletes on dates
- run: Execute a session exercise by exercise
- tracking / athlete / status / summary: Coach dashboards
- exempt: Exempt an athlete from an assignment
"""

from .app import app

# Importing the command modules registers their commands on ``app``.
from .commands import execution, roster, tracking, trainings  # noqa: F401

if __name__ == "__main__":
    app()
