"""
Application-facing facade over the tracking core.

TrainingTracker wires a persistence collaborator (anything satisfying
TrackingStore) to the lifecycle, aggregation and generation logic, keeps the
live AssignmentSession of every athlete currently executing, and saves each
assignment at its durability points: begin, complete, exempt, finish and
suspend.

Expected conditions (InvalidStateError, OutOfOrderError) come back as an
Outcome carrying the error; NotFoundError, DuplicateAssignmentError and
storage failures are raised to the caller.
"""

import copy
import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Callable, Generic, Iterable, Protocol, TypeVar

from .aggregator import build_athlete_history, build_tracking_buckets, summarize_session
from .builder import build_assignments
from .config import DEFAULT_EXERCISE_SECONDS, ELAPSED_TOLERANCE_SECONDS
from .engine.config_loader import get_setting
from .errors import InvalidStateError, NotFoundError, OutOfOrderError, TrackingError
from .lifecycle import AssignmentSession, resolve_status
from .models import (
    AssignmentStatus,
    Athlete,
    AthleteHistoryRow,
    ExerciseAssignment,
    SessionSummary,
    Training,
    TrackingBuckets,
    TrainingAssignment,
)
from .timer import Clock, TimerEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TrackingStore(Protocol):
    """Persistence collaborator consumed by the core."""

    def load_training(self, training_id: str, version: int | None = None) -> Training: ...

    def load_trainings(self) -> dict[str, Training]: ...

    def save_training(self, training: Training) -> None: ...

    def load_athletes(self) -> dict[int, Athlete]: ...

    def load_assignments(
        self, training_id: str, date: str | None = None
    ) -> list[TrainingAssignment]: ...

    def load_athlete_assignments(self, athlete_no: int) -> list[TrainingAssignment]: ...

    def load_assignment(self, assignment_id: str) -> TrainingAssignment: ...

    def existing_keys(self) -> set[tuple[int, str, str]]: ...

    def save_assignment(self, assignment: TrainingAssignment) -> None: ...

    def create_assignments(self, assignments: list[TrainingAssignment]) -> None: ...


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an execution operation: a value, or the reason it was refused."""

    value: T | None = None
    error: TrackingError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class TrainingTracker:
    """
    Entry point for the surrounding application.

    Args:
        store: Persistence collaborator
        clock: Wall-clock source for timers
        today: Local-date source for the lazy-missed rule and date executed
    """

    def __init__(
        self,
        store: TrackingStore,
        *,
        clock: Clock = time.time,
        today: Callable[[], date] = date.today,
    ):
        self._store = store
        self._today = today
        self._timers = TimerEngine(clock)
        self._sessions: dict[str, AssignmentSession] = {}
        self._tolerance = get_setting(
            "monitoring", "elapsed_tolerance_seconds", ELAPSED_TOLERANCE_SECONDS
        )
        self._default_exercise_seconds = get_setting(
            "timers", "default_exercise_seconds", DEFAULT_EXERCISE_SECONDS
        )

    # ------------------------------------------------------------------
    # Templates and generation
    # ------------------------------------------------------------------

    def add_training(self, training: Training) -> Training:
        self._store.save_training(training)
        logger.info("Added training %s (%s)", training.training_id, training.name)
        return training

    def revise_training(self, training_id: str, **changes) -> Training:
        """
        Store the next version of a training template.

        Existing assignments keep the version (and targets) they were
        created from; only later generations use the new one.
        """
        revised = self._store.load_training(training_id).revise(**changes)
        self._store.save_training(revised)
        logger.info("Training %s revised to v%d", training_id, revised.version)
        return revised

    def generate_assignments(
        self,
        training_id: str,
        athlete_nos: Iterable[int],
        dates: Iterable[str] | None = None,
    ) -> list[TrainingAssignment]:
        """
        Assign the latest version of a training to athletes on dates.

        Args:
            training_id: Template to assign
            athlete_nos: Selected athletes
            dates: Selected ISO dates; the training's own date when None

        Raises:
            NotFoundError: Unknown training or athlete
            DuplicateAssignmentError: Some pairs already hold this training
        """
        training = self._store.load_training(training_id)
        athlete_nos = list(athlete_nos)
        roster = self._store.load_athletes()
        for athlete_no in athlete_nos:
            if athlete_no not in roster:
                raise NotFoundError("Athlete", athlete_no)
        created = build_assignments(
            training,
            athlete_nos,
            [training.date] if dates is None else dates,
            existing_keys=self._store.existing_keys(),
        )
        self._store.create_assignments(created)
        return created

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_tracking_buckets(self, training_id: str, on_date: str | None = None) -> TrackingBuckets:
        """Status buckets for one training on one date (its own date by default)."""
        training = self._store.load_training(training_id)
        on_date = on_date or training.date
        return build_tracking_buckets(
            training,
            self._store.load_assignments(training_id, on_date),
            self._store.load_athletes(),
            self._today(),
            on_date=on_date,
        )

    def get_athlete_history(self, athlete_no: int) -> list[AthleteHistoryRow]:
        if athlete_no not in self._store.load_athletes():
            raise NotFoundError("Athlete", athlete_no)
        return build_athlete_history(
            athlete_no,
            self._store.load_trainings(),
            self._store.load_athlete_assignments(athlete_no),
            self._today(),
        )

    def get_assignment(self, assignment_id: str) -> TrainingAssignment:
        """Copy of the assignment (live if a session is running), status resolved as of today."""
        return self._current(assignment_id)

    def assignment_status(self, assignment_id: str) -> AssignmentStatus:
        """Resolved status of one assignment as of today."""
        return self._current(assignment_id).status

    def timer_readout(self, assignment_id: str) -> tuple[int, int | None]:
        """
        Advance a live session's timers and read them.

        Returns:
            (session elapsed seconds, seconds left on the running exercise or
            None when no exercise is running)
        """
        session = self._sessions.get(assignment_id)
        if session is None:
            return self._current(assignment_id).elapsed_seconds, None
        elapsed = session.tick()
        return elapsed, session.tracker.remaining_seconds()

    def session_summary(self, assignment_id: str) -> SessionSummary:
        return summarize_session(self._current(assignment_id), self._today())

    def active_session(self, assignment_id: str) -> AssignmentSession | None:
        return self._sessions.get(assignment_id)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def begin_exercise(self, assignment_id: str, index: int) -> Outcome[ExerciseAssignment]:
        return self._run(assignment_id, lambda s: s.begin_exercise(index))

    def record_progress(
        self, assignment_id: str, index: int, sets_finished: int, reps_finished: int
    ) -> Outcome[ExerciseAssignment]:
        # Counters are not a durability point; they are saved with the next
        # complete/suspend.
        return self._run(
            assignment_id,
            lambda s: s.record_progress(index, sets_finished, reps_finished),
            persist=False,
        )

    def complete_exercise(self, assignment_id: str, index: int) -> Outcome[ExerciseAssignment]:
        return self._run(assignment_id, lambda s: s.complete_exercise(index))

    def exempt_exercise(self, assignment_id: str, index: int) -> Outcome[ExerciseAssignment]:
        return self._run(assignment_id, lambda s: s.exempt_exercise(index))

    def exempt_assignment(self, assignment_id: str) -> Outcome[AssignmentStatus]:
        return self._run(assignment_id, lambda s: s.exempt())

    def suspend_session(self, assignment_id: str) -> int:
        """
        Stop every timer of a live session and save what has been recorded.

        Returns:
            Stored session elapsed seconds (the stored value if no session is live)
        """
        session = self._sessions.pop(assignment_id, None)
        if session is None:
            return self._store.load_assignment(assignment_id).elapsed_seconds
        elapsed = session.suspend()
        try:
            self._store.save_assignment(session.assignment)
        except InvalidStateError as e:
            logger.warning("Assignment %s: suspend not saved: %s", assignment_id, e)
            return self._store.load_assignment(assignment_id).elapsed_seconds
        logger.info("Assignment %s suspended at %ds", assignment_id, elapsed)
        return elapsed

    def suspend_all(self) -> None:
        """Suspend every live session (host shutting down)."""
        for assignment_id in list(self._sessions):
            self.suspend_session(assignment_id)

    def tick(self, now: float | None = None) -> dict[str, int]:
        """
        Advance the timers of every live session.

        Returns:
            {assignment_id: session elapsed seconds}
        """
        return {aid: s.tick(now) for aid, s in list(self._sessions.items())}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _current(self, assignment_id: str) -> TrainingAssignment:
        session = self._sessions.get(assignment_id)
        if session is not None:
            assignment = copy.deepcopy(session.assignment)
        else:
            assignment = self._store.load_assignment(assignment_id)
        assignment.status = resolve_status(assignment, self._today())
        return assignment

    def _session(self, assignment_id: str) -> AssignmentSession:
        session = self._sessions.get(assignment_id)
        if session is None:
            session = AssignmentSession(
                self._store.load_assignment(assignment_id),
                self._timers,
                today=self._today,
                tolerance=self._tolerance,
                default_exercise_seconds=self._default_exercise_seconds,
            )
            self._sessions[assignment_id] = session
        return session

    def _run(
        self,
        assignment_id: str,
        action: Callable[[AssignmentSession], T],
        persist: bool = True,
    ) -> Outcome[T]:
        session = self._session(assignment_id)
        try:
            value = action(session)
        except (InvalidStateError, OutOfOrderError) as e:
            logger.info("Assignment %s: refused: %s", assignment_id, e)
            if session.assignment.status.is_terminal:
                self._sessions.pop(assignment_id, None)
            return Outcome(error=e)

        if persist:
            try:
                self._store.save_assignment(session.assignment)
            except InvalidStateError as e:
                # Settled elsewhere while this session was live.
                logger.warning("Assignment %s: change not saved: %s", assignment_id, e)
                session.suspend()
                self._sessions.pop(assignment_id, None)
                return Outcome(error=e)
        if session.assignment.status.is_terminal:
            self._sessions.pop(assignment_id, None)
        return Outcome(value=copy.deepcopy(value))
