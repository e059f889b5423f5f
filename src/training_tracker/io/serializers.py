"""
JSON serialization for tracking data models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
from typing import Any

from ..core.models import (
    AssignmentStatus,
    Athlete,
    ExerciseAssignment,
    ExerciseReference,
    Training,
    TrainingAssignment,
)


class ValidationError(Exception):
    """Raised when a stored record cannot be converted back to a model."""

    pass


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_status(status: str) -> AssignmentStatus:
    """
    Validate an assignment status string.

    Raises:
        ValidationError: If status is not a known AssignmentStatus
    """
    try:
        return AssignmentStatus(status)
    except ValueError:
        valid = tuple(s.value for s in AssignmentStatus)
        raise ValidationError(
            f"Invalid status: {status}. Must be one of {valid}"
        ) from None


def _build(model: type, **kwargs: Any) -> Any:
    """Construct a model, turning its own validation failures into ValidationError."""
    try:
        return model(**kwargs)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


# =============================================================================
# Athletes
# =============================================================================


def athlete_to_dict(athlete: Athlete) -> dict[str, Any]:
    return {
        "athlete_no": athlete.athlete_no,
        "first_name": athlete.first_name,
        "middle_name": athlete.middle_name,
        "last_name": athlete.last_name,
        "position": athlete.position,
        "player_no": athlete.player_no,
    }


def dict_to_athlete(data: dict[str, Any]) -> Athlete:
    try:
        return _build(
            Athlete,
            athlete_no=int(data["athlete_no"]),
            first_name=str(data["first_name"]),
            last_name=str(data["last_name"]),
            middle_name=data.get("middle_name"),
            position=str(data.get("position", "")),
            player_no=int(data["player_no"]) if data.get("player_no") is not None else None,
        )
    except KeyError as e:
        raise ValidationError(f"Athlete record missing field {e}") from e


# =============================================================================
# Trainings
# =============================================================================


def exercise_reference_to_dict(ref: ExerciseReference) -> dict[str, Any]:
    return {
        "exercise_id": ref.exercise_id,
        "name": ref.name,
        "sets": ref.sets,
        "reps": ref.reps,
        "duration": ref.duration_seconds,
    }


def dict_to_exercise_reference(data: dict[str, Any]) -> ExerciseReference:
    try:
        return _build(
            ExerciseReference,
            exercise_id=str(data["exercise_id"]),
            name=str(data.get("name", data["exercise_id"])),
            sets=int(data["sets"]),
            reps=int(data["reps"]),
            duration_seconds=int(data.get("duration", 0)),
        )
    except KeyError as e:
        raise ValidationError(f"Exercise reference missing field {e}") from e


def training_to_dict(training: Training) -> dict[str, Any]:
    """
    Convert Training to JSON-compatible dict.

    Durations are stored in seconds under the short key "duration".
    """
    return {
        "training_id": training.training_id,
        "version": training.version,
        "name": training.name,
        "date": training.date,
        "time": training.time,
        "duration": training.duration_seconds,
        "coach_no": training.coach_no,
        "exercises": [exercise_reference_to_dict(e) for e in training.exercises],
    }


def dict_to_training(data: dict[str, Any]) -> Training:
    """
    Convert dict to Training.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        validate_non_negative(data.get("duration", 0), "duration")
        return _build(
            Training,
            training_id=str(data["training_id"]),
            version=int(data.get("version", 1)),
            name=str(data["name"]),
            date=str(data["date"]),
            time=str(data.get("time", "00:00")),
            duration_seconds=int(data.get("duration", 0)),
            coach_no=data.get("coach_no"),
            exercises=tuple(dict_to_exercise_reference(e) for e in data.get("exercises", [])),
        )
    except KeyError as e:
        raise ValidationError(f"Training record missing field {e}") from e


# =============================================================================
# Assignments
# =============================================================================


def exercise_assignment_to_dict(ex: ExerciseAssignment) -> dict[str, Any]:
    return {
        "id": ex.exercise_assignment_id,
        "exercise_id": ex.exercise_id,
        "name": ex.name,
        "sets": ex.target_sets,
        "reps": ex.target_reps,
        "duration": ex.target_seconds,
        "sets_finished": ex.sets_finished,
        "reps_finished": ex.reps_finished,
        "time_elapsed": ex.elapsed_seconds,
        "started": ex.started,
        "completed": ex.completed,
        "exempted": ex.exempted,
    }


def dict_to_exercise_assignment(data: dict[str, Any]) -> ExerciseAssignment:
    try:
        return _build(
            ExerciseAssignment,
            exercise_assignment_id=str(data["id"]),
            exercise_id=str(data["exercise_id"]),
            name=str(data.get("name", data["exercise_id"])),
            target_sets=int(data["sets"]),
            target_reps=int(data["reps"]),
            target_seconds=int(data.get("duration", 0)),
            sets_finished=int(data.get("sets_finished", 0)),
            reps_finished=int(data.get("reps_finished", 0)),
            elapsed_seconds=int(data.get("time_elapsed", 0)),
            started=bool(data.get("started", False)),
            completed=bool(data.get("completed", False)),
            exempted=bool(data.get("exempted", False)),
        )
    except KeyError as e:
        raise ValidationError(f"Exercise assignment missing field {e}") from e


def assignment_to_dict(assignment: TrainingAssignment) -> dict[str, Any]:
    """
    Convert TrainingAssignment to JSON-compatible dict.

    Args:
        assignment: TrainingAssignment to convert

    Returns:
        Dict representation
    """
    return {
        "assignment_id": assignment.assignment_id,
        "training_id": assignment.training_id,
        "training_version": assignment.training_version,
        "athlete_no": assignment.athlete_no,
        "date": assignment.scheduled_date,
        "time": assignment.scheduled_time,
        "duration": assignment.target_seconds,
        "status": assignment.status.value,
        "time_elapsed": assignment.elapsed_seconds,
        "date_executed": assignment.date_executed,
        "cursor": assignment.cursor,
        "exercises": [exercise_assignment_to_dict(e) for e in assignment.exercises],
    }


def dict_to_assignment(data: dict[str, Any]) -> TrainingAssignment:
    """
    Convert dict to TrainingAssignment.

    Args:
        data: Dict representation

    Returns:
        TrainingAssignment instance

    Raises:
        ValidationError: If data is invalid
    """
    try:
        validate_non_negative(data.get("time_elapsed", 0), "time_elapsed")
        return _build(
            TrainingAssignment,
            assignment_id=str(data["assignment_id"]),
            training_id=str(data["training_id"]),
            training_version=int(data.get("training_version", 1)),
            athlete_no=int(data["athlete_no"]),
            scheduled_date=str(data["date"]),
            scheduled_time=str(data.get("time", "00:00")),
            target_seconds=int(data.get("duration", 0)),
            status=validate_status(data.get("status", "assigned")),
            elapsed_seconds=int(data.get("time_elapsed", 0)),
            date_executed=data.get("date_executed"),
            cursor=int(data.get("cursor", 0)),
            exercises=[dict_to_exercise_assignment(e) for e in data.get("exercises", [])],
        )
    except KeyError as e:
        raise ValidationError(f"Assignment record missing field {e}") from e


def assignment_to_json_line(assignment: TrainingAssignment) -> str:
    """Serialize an assignment as a single JSONL line (no trailing newline)."""
    return json.dumps(assignment_to_dict(assignment), separators=(",", ":"))


def parse_exercise_spec(spec: str) -> ExerciseReference:
    """
    Parse a compact exercise description.

    Format: ``id:sets:reps:seconds[:name]``
    e.g. ``slides:3:10:300:Defensive Slides``.  The name defaults to the id.

    Raises:
        ValidationError: If the string is malformed
    """
    parts = [p.strip() for p in spec.split(":", 4)]
    if len(parts) < 4:
        raise ValidationError(
            f"Invalid exercise: {spec!r}. Expected id:sets:reps:seconds[:name]"
        )
    exercise_id, sets, reps, seconds = parts[:4]
    name = parts[4] if len(parts) == 5 and parts[4] else exercise_id
    try:
        values = int(sets), int(reps), int(seconds)
    except ValueError as e:
        raise ValidationError(f"Invalid numbers in exercise {spec!r}") from e
    return _build(
        ExerciseReference,
        exercise_id=exercise_id,
        name=name,
        sets=values[0],
        reps=values[1],
        duration_seconds=values[2],
    )
