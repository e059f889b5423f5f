"""
Tracking aggregation for coach-facing dashboards.

Everything here is a pure read: assignments are copied before the
lazy-missed rule is applied, so callers' records are never modified and the
result can be recomputed at any time from the stored population.
"""

import copy
from datetime import date
from typing import Iterable, Mapping

from .lifecycle import resolve_status
from .models import (
    Athlete,
    AssignmentStatus,
    AthleteHistoryRow,
    ExerciseSummary,
    SessionSummary,
    Training,
    TrackingBuckets,
    TrackingRow,
    TrainingAssignment,
)

# Resolved status -> dashboard bucket.
_BUCKET_FOR_STATUS: dict[AssignmentStatus, str] = {
    AssignmentStatus.ASSIGNED: "assigned",
    AssignmentStatus.IN_PROGRESS: "assigned",
    AssignmentStatus.EXEMPTED: "exempted",
    AssignmentStatus.MISSED: "missed",
    AssignmentStatus.DONE: "done",
}


def _row_sort_key(row: TrackingRow) -> tuple:
    # Jersey number first, athletes without one last, athlete_no breaks ties.
    return (row.player_no is None, row.player_no or 0, row.athlete_no, row.assignment_id)


def _tracking_row(
    assignment: TrainingAssignment,
    status: AssignmentStatus,
    athlete: Athlete | None,
) -> TrackingRow:
    return TrackingRow(
        assignment_id=assignment.assignment_id,
        athlete_no=assignment.athlete_no,
        player_no=athlete.player_no if athlete else None,
        name=athlete.display_name if athlete else f"Athlete #{assignment.athlete_no}",
        position=athlete.position if athlete else "",
        status=status,
        elapsed_seconds=assignment.elapsed_seconds,
        target_seconds=assignment.target_seconds,
        date_executed=assignment.date_executed,
    )


def build_tracking_buckets(
    training: Training,
    assignments: Iterable[TrainingAssignment],
    athletes: Mapping[int, Athlete],
    today: date,
    on_date: str | None = None,
) -> TrackingBuckets:
    """
    Partition one training's assignments on one date into status buckets.

    Args:
        training: Template the assignments belong to
        assignments: Assignments for ``training`` on ``on_date``
        athletes: Roster lookup by athlete_no; unknown athletes get a
            placeholder name rather than being dropped
        today: Date used for the lazy-missed rule
        on_date: Date being reported (defaults to the training's date)

    Returns:
        TrackingBuckets in which every assignment appears exactly once
    """
    snapshot = copy.deepcopy(list(assignments))
    buckets = TrackingBuckets(training=training, date=on_date or training.date)

    for assignment in snapshot:
        if assignment.training_id != training.training_id:
            raise ValueError(
                f"Assignment {assignment.assignment_id} belongs to training "
                f"{assignment.training_id}, not {training.training_id}"
            )
        status = resolve_status(assignment, today)
        row = _tracking_row(assignment, status, athletes.get(assignment.athlete_no))
        buckets.bucket(_BUCKET_FOR_STATUS[status]).append(row)

    for name in ("assigned", "exempted", "missed", "done"):
        buckets.bucket(name).sort(key=_row_sort_key)

    return buckets


def build_athlete_history(
    athlete_no: int,
    trainings: Mapping[str, Training],
    assignments: Iterable[TrainingAssignment],
    today: date,
) -> list[AthleteHistoryRow]:
    """
    One athlete's assignments across all trainings, newest first.

    Assignments of other athletes are ignored.  A training missing from
    ``trainings`` is shown by its id.
    """
    rows: list[AthleteHistoryRow] = []
    for assignment in copy.deepcopy(list(assignments)):
        if assignment.athlete_no != athlete_no:
            continue
        training = trainings.get(assignment.training_id)
        rows.append(
            AthleteHistoryRow(
                assignment_id=assignment.assignment_id,
                training_id=assignment.training_id,
                training_name=training.name if training else assignment.training_id,
                scheduled_date=assignment.scheduled_date,
                scheduled_time=assignment.scheduled_time,
                status=resolve_status(assignment, today),
                elapsed_seconds=assignment.elapsed_seconds,
                target_seconds=assignment.target_seconds,
                date_executed=assignment.date_executed,
            )
        )
    rows.sort(key=lambda r: (r.scheduled_date, r.scheduled_time, r.assignment_id), reverse=True)
    return rows


def summarize_session(assignment: TrainingAssignment, today: date) -> SessionSummary:
    """Per-exercise elapsed vs target for one assignment, plus session totals."""
    return SessionSummary(
        assignment_id=assignment.assignment_id,
        status=resolve_status(assignment, today),
        elapsed_seconds=assignment.elapsed_seconds,
        target_seconds=assignment.target_seconds,
        date_executed=assignment.date_executed,
        exercises=tuple(
            ExerciseSummary(
                name=e.name,
                sets_finished=e.sets_finished,
                target_sets=e.target_sets,
                reps_finished=e.reps_finished,
                target_reps=e.target_reps,
                elapsed_seconds=e.elapsed_seconds,
                target_seconds=e.target_seconds,
                completed=e.completed,
                exempted=e.exempted,
            )
            for e in assignment.exercises
        ),
    )
