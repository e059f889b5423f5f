"""
Assignment generation.

Fans a Training template out to selected athletes and dates, one
TrainingAssignment per (athlete, date) pair, each with its own snapshot of
the template's exercise targets.
"""

import logging
import uuid
from typing import Callable, Iterable

from .errors import DuplicateAssignmentError
from .models import (
    AssignmentStatus,
    ExerciseAssignment,
    Training,
    TrainingAssignment,
    validate_iso_date,
)

logger = logging.getLogger(__name__)


def new_assignment_id() -> str:
    """Random short identifier for a new assignment."""
    return uuid.uuid4().hex[:12]


def snapshot_exercises(assignment_id: str, training: Training) -> list[ExerciseAssignment]:
    """Exactly one zero-progress ExerciseAssignment per exercise reference."""
    return [
        ExerciseAssignment.from_reference(f"{assignment_id}-{i}", ref)
        for i, ref in enumerate(training.exercises, 1)
    ]


def build_assignments(
    training: Training,
    athlete_nos: Iterable[int],
    dates: Iterable[str],
    existing_keys: Iterable[tuple[int, str, str]] = (),
    id_factory: Callable[[], str] = new_assignment_id,
) -> list[TrainingAssignment]:
    """
    Create one assignment per (athlete, date) pair.

    All-or-nothing: if any pair is already assigned this training on that
    date, nothing is built.

    Args:
        training: Template to assign
        athlete_nos: Selected athletes (repeats are ignored)
        dates: Selected ISO dates (repeats are ignored)
        existing_keys: (athlete_no, training_id, date) keys already stored
        id_factory: Produces assignment ids

    Returns:
        New assignments ordered by date, then athlete

    Raises:
        ValueError: If no athletes, no dates, or the training has no exercises
        DuplicateAssignmentError: Naming only the colliding pairs
    """
    athletes = sorted(set(athlete_nos))
    target_dates = sorted(set(dates))
    if not athletes:
        raise ValueError("Select at least one athlete")
    if not target_dates:
        raise ValueError("Select at least one date")
    if not training.exercises:
        raise ValueError(f"Training {training.training_id} has no exercises")
    for d in target_dates:
        validate_iso_date(d)

    existing = set(existing_keys)
    collisions = [
        (athlete_no, d)
        for d in target_dates
        for athlete_no in athletes
        if (athlete_no, training.training_id, d) in existing
    ]
    if collisions:
        raise DuplicateAssignmentError(training.training_id, collisions)

    assignments: list[TrainingAssignment] = []
    for d in target_dates:
        for athlete_no in athletes:
            assignment_id = id_factory()
            assignments.append(
                TrainingAssignment(
                    assignment_id=assignment_id,
                    training_id=training.training_id,
                    training_version=training.version,
                    athlete_no=athlete_no,
                    scheduled_date=d,
                    scheduled_time=training.time,
                    target_seconds=training.duration_seconds,
                    status=AssignmentStatus.ASSIGNED,
                    exercises=snapshot_exercises(assignment_id, training),
                )
            )

    logger.info(
        "Built %d assignments of training %s (v%d) for %d athletes x %d dates",
        len(assignments), training.training_id, training.version,
        len(athletes), len(target_dates),
    )
    return assignments
