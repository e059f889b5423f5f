"""
Exercise execution tracker.

Walks one athlete through the exercises of one in-progress assignment in
index order.  Each exercise runs on its own countdown; completing it
snapshots the countdown's elapsed seconds into the ExerciseAssignment, which
is the durability point for that exercise.  The tracker reports when the
last exercise is settled but never changes the parent assignment's status.
"""

import logging
from typing import Callable

from .config import DEFAULT_EXERCISE_SECONDS
from .errors import InvalidStateError, OutOfOrderError
from .models import ExerciseAssignment, TrainingAssignment
from .timer import TimerEngine

logger = logging.getLogger(__name__)


class ExerciseExecutionTracker:
    """
    Sequential exercise driver for one TrainingAssignment.

    Args:
        assignment: The assignment being executed (mutated in place)
        timers: Timer engine that owns the exercise countdowns
        on_session_complete: Called once when every exercise is settled
        on_exercise_expired: Called with the index when a countdown hits zero
        default_seconds: Countdown length for exercises without a target
    """

    def __init__(
        self,
        assignment: TrainingAssignment,
        timers: TimerEngine,
        on_session_complete: Callable[[], None] | None = None,
        on_exercise_expired: Callable[[int], None] | None = None,
        default_seconds: int = DEFAULT_EXERCISE_SECONDS,
    ):
        self.assignment = assignment
        self._timers = timers
        self._on_session_complete = on_session_complete
        self._on_exercise_expired = on_exercise_expired
        self._default_seconds = default_seconds
        self._active_index: int | None = None
        self._active_handle: int | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self.assignment.cursor

    @property
    def active_index(self) -> int | None:
        """Index of the exercise whose countdown is running, if any."""
        return self._active_index

    @property
    def finished(self) -> bool:
        return self.assignment.cursor >= len(self.assignment.exercises)

    def remaining_seconds(self) -> int | None:
        """Countdown value of the active exercise, or None when idle."""
        if self._active_handle is None:
            return None
        return self._timers.current_value(self._active_handle)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def check_sequence(self, index: int) -> ExerciseAssignment:
        """Raise unless the exercise at ``index`` is the one due next."""
        return self._check_sequence(index)

    def check_begin(self, index: int) -> ExerciseAssignment:
        """Raise unless ``begin_exercise(index)`` would be accepted."""
        exercise = self._check_sequence(index)
        if self._active_index == index:
            raise InvalidStateError(f"Exercise {index} is already running")
        return exercise

    def begin_exercise(self, index: int) -> ExerciseAssignment:
        """Start the countdown for the exercise at ``index``."""
        exercise = self.check_begin(index)
        duration = exercise.target_seconds or self._default_seconds
        self._active_handle = self._timers.start(
            duration, on_expire=lambda: self._expired(index)
        )
        self._active_index = index
        exercise.started = True
        logger.debug(
            "Assignment %s: exercise %d (%s) begun, %ds countdown",
            self.assignment.assignment_id, index, exercise.name, duration,
        )
        return exercise

    def record_progress(
        self, index: int, sets_finished: int, reps_finished: int
    ) -> ExerciseAssignment:
        """Update finished sets/reps of the running exercise; the timer keeps going."""
        if sets_finished < 0 or reps_finished < 0:
            raise ValueError("sets_finished and reps_finished must be non-negative")
        exercise = self._check_running(index)
        exercise.sets_finished = sets_finished
        exercise.reps_finished = reps_finished
        return exercise

    def complete_exercise(self, index: int) -> ExerciseAssignment:
        """
        Stop the countdown, snapshot its elapsed seconds and move on.

        Completing the final exercise signals session completion.
        """
        exercise = self._check_running(index)
        handle = self._active_handle
        elapsed = self._timers.stop(handle)  # type: ignore[arg-type]
        self._timers.cancel(handle)  # type: ignore[arg-type]
        self._active_index = None
        self._active_handle = None

        exercise.elapsed_seconds = elapsed
        exercise.completed = True
        logger.debug(
            "Assignment %s: exercise %d completed in %ds",
            self.assignment.assignment_id, index, elapsed,
        )
        self._advance_cursor()
        return exercise

    def exempt_exercise(self, index: int) -> ExerciseAssignment:
        """Skip the exercise at the cursor explicitly; it records no progress."""
        exercise = self._check_sequence(index)
        if self._active_index == index:
            self._release_active()
        exercise.exempted = True
        logger.debug(
            "Assignment %s: exercise %d exempted",
            self.assignment.assignment_id, index,
        )
        self._advance_cursor()
        return exercise

    def tick(self, now: float | None = None) -> int | None:
        """Advance the active countdown; returns its remaining seconds."""
        if self._active_handle is None:
            return None
        return self._timers.advance(self._active_handle, now)

    def abort(self) -> None:
        """Discard the running countdown.  Completed snapshots are kept."""
        if self._active_handle is not None:
            logger.debug(
                "Assignment %s: exercise %s countdown discarded",
                self.assignment.assignment_id, self._active_index,
            )
            self._release_active()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _exercise(self, index: int) -> ExerciseAssignment:
        exercises = self.assignment.exercises
        if not 0 <= index < len(exercises):
            raise InvalidStateError(
                f"Exercise index {index} out of range (0-{len(exercises) - 1})"
            )
        return exercises[index]

    def _check_sequence(self, index: int) -> ExerciseAssignment:
        if self.assignment.status.is_terminal:
            raise InvalidStateError(
                f"Assignment {self.assignment.assignment_id} is {self.assignment.status}"
            )
        exercise = self._exercise(index)
        if exercise.is_settled:
            state = "completed" if exercise.completed else "exempted"
            raise InvalidStateError(f"Exercise {index} is already {state}")
        if index != self.assignment.cursor:
            raise OutOfOrderError(index, self.assignment.cursor)
        return exercise

    def _check_running(self, index: int) -> ExerciseAssignment:
        exercise = self._check_sequence(index)
        if self._active_index != index:
            raise InvalidStateError(f"Exercise {index} has not been started")
        return exercise

    def _release_active(self) -> None:
        self._timers.cancel(self._active_handle)  # type: ignore[arg-type]
        self._active_index = None
        self._active_handle = None

    def _advance_cursor(self) -> None:
        exercises = self.assignment.exercises
        cursor = self.assignment.cursor
        while cursor < len(exercises) and exercises[cursor].is_settled:
            cursor += 1
        self.assignment.cursor = cursor
        if self.finished and self._on_session_complete is not None:
            self._on_session_complete()

    def _expired(self, index: int) -> None:
        logger.info(
            "Assignment %s: time is up for exercise %d",
            self.assignment.assignment_id, index,
        )
        if self._on_exercise_expired is not None:
            self._on_exercise_expired(index)
