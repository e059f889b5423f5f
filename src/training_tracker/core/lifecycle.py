"""
Training assignment lifecycle.

    assigned ──begin──▶ in_progress ──last exercise settled──▶ done
        │                    │
        ├────────────────────┴──exempt──▶ exempted
        └────────────────────┴──scheduled date passed (on read)──▶ missed

done, missed and exempted are terminal.  "missed" is never set by a timer:
no process is guaranteed to be running when the day ends, so every read and
every mutation first applies ``resolve_status``, a pure function of the
stored record and today's date.
"""

import logging
from datetime import date
from typing import Callable

from .config import ELAPSED_TOLERANCE_SECONDS
from .errors import InvalidStateError
from .execution import ExerciseExecutionTracker
from .models import AssignmentStatus, ExerciseAssignment, TrainingAssignment
from .timer import TimerEngine

logger = logging.getLogger(__name__)


def resolve_status(assignment: TrainingAssignment, today: date) -> AssignmentStatus:
    """
    Return the assignment's status as of ``today``.

    A non-terminal assignment whose scheduled date is strictly before
    ``today`` is missed, whatever its progress.  Terminal statuses are
    returned unchanged.  Pure and idempotent.
    """
    status = assignment.status
    if status.is_terminal:
        return status
    if date.fromisoformat(assignment.scheduled_date) < today:
        return AssignmentStatus.MISSED
    return status


def apply_missed(assignment: TrainingAssignment, today: date) -> bool:
    """
    Write the resolved status onto ``assignment``.

    Returns:
        True if the status changed
    """
    resolved = resolve_status(assignment, today)
    if resolved is assignment.status:
        return False
    logger.info(
        "Assignment %s: %s -> %s (scheduled %s has passed)",
        assignment.assignment_id, assignment.status, resolved, assignment.scheduled_date,
    )
    assignment.status = resolved
    return True


def elapsed_excess(
    assignment: TrainingAssignment, tolerance: int = ELAPSED_TOLERANCE_SECONDS
) -> int:
    """
    Seconds by which the per-exercise elapsed sum exceeds the session
    elapsed plus ``tolerance``; 0 when consistent.
    """
    excess = assignment.exercise_elapsed_total - assignment.elapsed_seconds - tolerance
    return max(0, excess)


class AssignmentSession:
    """
    One athlete's live execution of one assignment.

    Owns the session stopwatch and the exercise tracker.  A session can be
    suspended (app closed) and a new one created later for the same
    assignment; the stopwatch resumes from the stored elapsed seconds and
    the tracker resumes from the stored cursor.

    Args:
        assignment: Record to drive; mutated in place
        timers: Timer engine shared with the tracker
        today: Returns the current local date
        tolerance: Elapsed consistency tolerance in seconds
        default_exercise_seconds: Countdown for exercises without a target
    """

    def __init__(
        self,
        assignment: TrainingAssignment,
        timers: TimerEngine,
        *,
        today: Callable[[], date] = date.today,
        tolerance: int = ELAPSED_TOLERANCE_SECONDS,
        default_exercise_seconds: int | None = None,
        on_exercise_expired: Callable[[int], None] | None = None,
    ):
        self.assignment = assignment
        self._timers = timers
        self._today = today
        self._tolerance = tolerance
        self._stopwatch: int | None = None
        tracker_kwargs = {}
        if default_exercise_seconds is not None:
            tracker_kwargs["default_seconds"] = default_exercise_seconds
        self.tracker = ExerciseExecutionTracker(
            assignment,
            timers,
            on_session_complete=self._finish,
            on_exercise_expired=on_exercise_expired,
            **tracker_kwargs,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> AssignmentStatus:
        return resolve_status(self.assignment, self._today())

    @property
    def is_running(self) -> bool:
        return self._stopwatch is not None

    def elapsed_seconds(self) -> int:
        """Live session elapsed; never below the stored value."""
        if self._stopwatch is None:
            return self.assignment.elapsed_seconds
        return max(self.assignment.elapsed_seconds, self._timers.elapsed(self._stopwatch))

    def remaining_seconds(self) -> int:
        """Seconds left of the planned session duration (0 once exceeded)."""
        return max(0, self.assignment.target_seconds - self.elapsed_seconds())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_exercise(self, index: int) -> ExerciseAssignment:
        """
        Start the exercise at ``index``.

        The first exercise moves the assignment from assigned to in_progress
        and starts the session stopwatch.
        """
        self._ensure_mutable()
        self.tracker.check_begin(index)
        self._start_session()
        return self.tracker.begin_exercise(index)

    def record_progress(
        self, index: int, sets_finished: int, reps_finished: int
    ) -> ExerciseAssignment:
        self._ensure_mutable()
        return self.tracker.record_progress(index, sets_finished, reps_finished)

    def complete_exercise(self, index: int) -> ExerciseAssignment:
        """Complete the running exercise; the last one finalizes the session."""
        self._ensure_mutable()
        exercise = self.tracker.complete_exercise(index)
        self._sync_elapsed()
        return exercise

    def exempt_exercise(self, index: int) -> ExerciseAssignment:
        """Skip the exercise at the cursor explicitly."""
        self._ensure_mutable()
        self.tracker.check_sequence(index)
        self._start_session()
        exercise = self.tracker.exempt_exercise(index)
        self._sync_elapsed()
        return exercise

    def exempt(self) -> AssignmentStatus:
        """Exempt the athlete from this assignment (assigned or in_progress only)."""
        self._ensure_mutable()
        self._release_timers()
        previous = self.assignment.status
        self.assignment.status = AssignmentStatus.EXEMPTED
        logger.info(
            "Assignment %s: %s -> exempted", self.assignment.assignment_id, previous
        )
        return self.assignment.status

    def suspend(self) -> int:
        """
        Stop and discard every timer without finalizing.

        The session elapsed seconds and every completed exercise snapshot are
        kept; the running exercise's progress since its start is not.

        Returns:
            Stored session elapsed seconds
        """
        self._release_timers()
        return self.assignment.elapsed_seconds

    def tick(self, now: float | None = None) -> int:
        """Advance the session stopwatch and the exercise countdown."""
        if self._stopwatch is not None:
            value = self._timers.advance(self._stopwatch, now)
            if value > self.assignment.elapsed_seconds:
                self.assignment.elapsed_seconds = value
        self.tracker.tick(now)
        return self.assignment.elapsed_seconds

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_mutable(self) -> None:
        apply_missed(self.assignment, self._today())
        if self.assignment.status.is_terminal:
            self._release_timers()
            raise InvalidStateError(
                f"Assignment {self.assignment.assignment_id} is "
                f"{self.assignment.status}; no further changes are accepted"
            )

    def _start_session(self) -> None:
        if self.assignment.status is AssignmentStatus.ASSIGNED:
            self.assignment.status = AssignmentStatus.IN_PROGRESS
            logger.info(
                "Assignment %s: assigned -> in_progress (athlete %s)",
                self.assignment.assignment_id, self.assignment.athlete_no,
            )
        if self._stopwatch is None:
            self._stopwatch = self._timers.start(
                offset_seconds=self.assignment.elapsed_seconds
            )

    def _sync_elapsed(self) -> None:
        if self._stopwatch is not None:
            value = self._timers.elapsed(self._stopwatch)
            if value > self.assignment.elapsed_seconds:
                self.assignment.elapsed_seconds = value

    def _release_timers(self) -> None:
        self.tracker.abort()
        if self._stopwatch is not None:
            value = self._timers.stop(self._stopwatch)
            self._timers.cancel(self._stopwatch)
            self._stopwatch = None
            if value > self.assignment.elapsed_seconds:
                self.assignment.elapsed_seconds = value

    def _finish(self) -> None:
        """Called by the tracker once every exercise is settled."""
        self._release_timers()
        if self.assignment.completed_count == 0:
            # Every exercise was exempted individually.
            self.assignment.status = AssignmentStatus.EXEMPTED
        else:
            self.assignment.status = AssignmentStatus.DONE
            self.assignment.date_executed = self._today().isoformat()
        logger.info(
            "Assignment %s: in_progress -> %s after %ds",
            self.assignment.assignment_id, self.assignment.status,
            self.assignment.elapsed_seconds,
        )

        excess = elapsed_excess(self.assignment, self._tolerance)
        if excess > 0:
            logger.warning(
                "Assignment %s: exercise time %ds exceeds session time %ds by %ds",
                self.assignment.assignment_id,
                self.assignment.exercise_elapsed_total,
                self.assignment.elapsed_seconds,
                excess,
            )
