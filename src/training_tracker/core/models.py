"""
Data models for training-tracker.

All core dataclasses representing athletes, training templates, per-athlete
assignments and the derived tracking views built from them.  Persisted
records (Training, TrainingAssignment, ExerciseAssignment, Athlete) validate
themselves on construction; derived views are plain containers.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum


class AssignmentStatus(str, Enum):
    """Lifecycle status of one athlete's assignment to one training."""

    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    MISSED = "missed"
    EXEMPTED = "exempted"

    @property
    def is_terminal(self) -> bool:
        """True for done, missed and exempted: no transition leaves these."""
        return self in TERMINAL_STATUSES

    def __str__(self) -> str:
        return self.value


TERMINAL_STATUSES = frozenset(
    {AssignmentStatus.DONE, AssignmentStatus.MISSED, AssignmentStatus.EXEMPTED}
)

# Dashboard buckets. in_progress has no bucket of its own and is reported
# under "assigned" until it reaches a terminal status.
BUCKET_NAMES = ("assigned", "exempted", "missed", "done")


def validate_iso_date(date_str: str) -> None:
    """Validate date string is ISO format YYYY-MM-DD."""
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")
    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}") from e


def _validate_time(time_str: str) -> None:
    """Validate time-of-day string is HH:MM."""
    try:
        datetime.strptime(time_str, "%H:%M")
    except ValueError as e:
        raise ValueError(f"Invalid time: {time_str}. Expected HH:MM") from e


@dataclass
class Athlete:
    """
    An athlete on the roster.

    ``athlete_no`` is the stable identifier; ``player_no`` is the jersey
    number shown on dashboards and used as the primary sort key there.
    """

    athlete_no: int
    first_name: str
    last_name: str
    position: str = ""
    player_no: int | None = None
    middle_name: str | None = None

    def __post_init__(self) -> None:
        if self.athlete_no <= 0:
            raise ValueError("athlete_no must be positive")
        if not self.first_name.strip() or not self.last_name.strip():
            raise ValueError("first_name and last_name must be non-empty")
        if self.player_no is not None and self.player_no < 0:
            raise ValueError("player_no must be non-negative")

    @property
    def display_name(self) -> str:
        """'Last, First' with the middle name appended when present."""
        name = f"{self.last_name}, {self.first_name}"
        if self.middle_name:
            name += f" {self.middle_name}"
        return name


@dataclass(frozen=True)
class ExerciseReference:
    """
    One exercise slot inside a Training template.

    Targets here are copied into each ExerciseAssignment when a training is
    assigned, so later template revisions never reach existing assignments.
    """

    exercise_id: str
    name: str
    sets: int
    reps: int
    duration_seconds: int  # target time for the whole exercise

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValueError("exercise_id must be non-empty")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")


@dataclass(frozen=True)
class Training:
    """
    A reusable workout template scheduled for a date and time of day.

    Templates are versioned rather than edited: ``revise`` returns a new
    Training with the next version number and leaves this one untouched.
    """

    training_id: str
    name: str
    date: str  # ISO format: YYYY-MM-DD
    time: str  # HH:MM
    duration_seconds: int
    exercises: tuple[ExerciseReference, ...] = ()
    coach_no: int | None = None
    version: int = 1

    def __post_init__(self) -> None:
        if not self.training_id:
            raise ValueError("training_id must be non-empty")
        validate_iso_date(self.date)
        _validate_time(self.time)
        if self.duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")
        if self.version < 1:
            raise ValueError("version must be at least 1")
        # Accept any sequence, store a tuple so the template stays immutable.
        if not isinstance(self.exercises, tuple):
            object.__setattr__(self, "exercises", tuple(self.exercises))

    def revise(self, **changes) -> "Training":
        """Return the next version of this template with ``changes`` applied."""
        if "training_id" in changes or "version" in changes:
            raise ValueError("training_id and version cannot be revised")
        return replace(self, version=self.version + 1, **changes)

    @property
    def exercise_seconds(self) -> int:
        """Sum of the per-exercise target durations."""
        return sum(e.duration_seconds for e in self.exercises)


@dataclass
class ExerciseAssignment:
    """
    Progress on one exercise inside one TrainingAssignment.

    Targets are a snapshot of the ExerciseReference at assignment time.
    """

    exercise_assignment_id: str
    exercise_id: str
    name: str
    target_sets: int
    target_reps: int
    target_seconds: int
    sets_finished: int = 0
    reps_finished: int = 0
    elapsed_seconds: int = 0
    started: bool = False
    completed: bool = False
    exempted: bool = False

    def __post_init__(self) -> None:
        for name in (
            "target_sets",
            "target_reps",
            "target_seconds",
            "sets_finished",
            "reps_finished",
            "elapsed_seconds",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.completed and self.exempted:
            raise ValueError("an exercise cannot be both completed and exempted")

    @property
    def is_settled(self) -> bool:
        """True once the exercise no longer accepts progress."""
        return self.completed or self.exempted

    @classmethod
    def from_reference(
        cls, exercise_assignment_id: str, ref: ExerciseReference
    ) -> "ExerciseAssignment":
        """Create a zero-progress assignment with targets copied from ``ref``."""
        return cls(
            exercise_assignment_id=exercise_assignment_id,
            exercise_id=ref.exercise_id,
            name=ref.name,
            target_sets=ref.sets,
            target_reps=ref.reps,
            target_seconds=ref.duration_seconds,
        )


@dataclass
class TrainingAssignment:
    """
    One athlete's instance of a Training for one date.

    ``cursor`` is the index of the exercise currently due; it equals
    ``len(exercises)`` once every exercise is settled.
    """

    assignment_id: str
    training_id: str
    athlete_no: int
    scheduled_date: str  # ISO format: YYYY-MM-DD
    scheduled_time: str = "00:00"
    target_seconds: int = 0
    training_version: int = 1
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    elapsed_seconds: int = 0
    date_executed: str | None = None
    cursor: int = 0
    exercises: list[ExerciseAssignment] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_iso_date(self.scheduled_date)
        _validate_time(self.scheduled_time)
        if self.date_executed is not None:
            validate_iso_date(self.date_executed)
        if not isinstance(self.status, AssignmentStatus):
            self.status = AssignmentStatus(self.status)
        if self.elapsed_seconds < 0:
            raise ValueError("elapsed_seconds must be non-negative")
        if not 0 <= self.cursor <= len(self.exercises):
            raise ValueError(
                f"cursor {self.cursor} out of range for {len(self.exercises)} exercises"
            )

    @property
    def key(self) -> tuple[int, str, str]:
        """(athlete, training, date) identity used for duplicate detection."""
        return (self.athlete_no, self.training_id, self.scheduled_date)

    @property
    def exercise_elapsed_total(self) -> int:
        """Sum of the snapshotted per-exercise elapsed seconds."""
        return sum(e.elapsed_seconds for e in self.exercises)

    @property
    def completed_count(self) -> int:
        return sum(1 for e in self.exercises if e.completed)


# =============================================================================
# Derived views (never persisted)
# =============================================================================


@dataclass(frozen=True)
class TrackingRow:
    """One dashboard line: who, what state, how long against the target."""

    assignment_id: str
    athlete_no: int
    player_no: int | None
    name: str
    position: str
    status: AssignmentStatus
    elapsed_seconds: int
    target_seconds: int
    date_executed: str | None


@dataclass
class TrackingBuckets:
    """Assignments of one training on one date, grouped by resolved status."""

    training: Training
    date: str
    assigned: list[TrackingRow] = field(default_factory=list)
    exempted: list[TrackingRow] = field(default_factory=list)
    missed: list[TrackingRow] = field(default_factory=list)
    done: list[TrackingRow] = field(default_factory=list)

    def bucket(self, name: str) -> list[TrackingRow]:
        if name not in BUCKET_NAMES:
            raise ValueError(f"Unknown bucket: {name}")
        return getattr(self, name)

    def counts(self) -> dict[str, int]:
        return {name: len(self.bucket(name)) for name in BUCKET_NAMES}

    @property
    def total(self) -> int:
        return sum(self.counts().values())

    def completion_rate(self) -> float:
        """Share of non-exempted assignments that are done (0.0 when none)."""
        required = self.total - len(self.exempted)
        if required <= 0:
            return 0.0
        return len(self.done) / required


@dataclass(frozen=True)
class AthleteHistoryRow:
    """One assignment in an athlete's tracking history."""

    assignment_id: str
    training_id: str
    training_name: str
    scheduled_date: str
    scheduled_time: str
    status: AssignmentStatus
    elapsed_seconds: int
    target_seconds: int
    date_executed: str | None


@dataclass(frozen=True)
class ExerciseSummary:
    name: str
    sets_finished: int
    target_sets: int
    reps_finished: int
    target_reps: int
    elapsed_seconds: int
    target_seconds: int
    completed: bool
    exempted: bool


@dataclass(frozen=True)
class SessionSummary:
    """Post-session recap of one assignment."""

    assignment_id: str
    status: AssignmentStatus
    elapsed_seconds: int
    target_seconds: int
    date_executed: str | None
    exercises: tuple[ExerciseSummary, ...]

    @property
    def exercise_elapsed_total(self) -> int:
        return sum(e.elapsed_seconds for e in self.exercises)
