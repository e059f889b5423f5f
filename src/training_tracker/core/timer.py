"""
Timer engine for session and exercise timing.

Two modes share one implementation:

- countdown: bounded by a duration, reaches zero and stops itself
  (one per exercise, sized to the exercise's target seconds)
- stopwatch: unbounded, accumulates (one per training session)

Elapsed time is always derived from timestamps,
``accumulated + (now - started_at)``, never from counting ticks.  A host that
is suspended (app backgrounded, laptop asleep) simply misses ticks; the next
``advance`` still reports the correct value.

There are no background threads or scheduled callbacks.  The host loop polls
``advance(handle, now)``; an expiry callback fires from inside that call,
at most once, and never after ``stop``/``reset``/``cancel`` has returned.
"""

import itertools
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Literal

from .errors import InvalidStateError

logger = logging.getLogger(__name__)

TimerMode = Literal["countdown", "stopwatch"]
Clock = Callable[[], float]


@dataclass
class _TimerState:
    mode: TimerMode
    duration: float | None  # countdown length in seconds, None for stopwatch
    accumulated: float = 0.0  # seconds counted before the current run
    started_at: float | None = None  # None while paused or stopped
    on_expire: Callable[[], None] | None = None
    final_elapsed: int | None = None  # set once stopped

    @property
    def running(self) -> bool:
        return self.started_at is not None

    @property
    def stopped(self) -> bool:
        return self.final_elapsed is not None

    def raw_elapsed(self, now: float) -> float:
        elapsed = self.accumulated
        if self.started_at is not None:
            # A clock that steps backwards must not shrink elapsed time.
            elapsed += max(0.0, now - self.started_at)
        if self.duration is not None:
            elapsed = min(elapsed, self.duration)
        return elapsed


class TimerEngine:
    """
    Registry of timers addressed by integer handles.

    Args:
        clock: Returns the current wall-clock time in seconds.  Inject a fake
            for deterministic tests.
    """

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._timers: dict[int, _TimerState] = {}
        self._handles = itertools.count(1)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        duration_seconds: float | None = None,
        *,
        offset_seconds: float = 0.0,
        on_expire: Callable[[], None] | None = None,
    ) -> int:
        """
        Start a new timer and return its handle.

        Args:
            duration_seconds: Countdown length; None starts a stopwatch
            offset_seconds: Elapsed seconds already counted (stopwatch resume)
            on_expire: Called once from ``advance`` when a countdown hits zero

        Returns:
            Handle for the new timer
        """
        if duration_seconds is not None and duration_seconds < 0:
            raise ValueError("duration_seconds must be non-negative")
        if offset_seconds < 0:
            raise ValueError("offset_seconds must be non-negative")

        handle = next(self._handles)
        self._timers[handle] = _TimerState(
            mode="stopwatch" if duration_seconds is None else "countdown",
            duration=duration_seconds,
            accumulated=float(offset_seconds),
            started_at=self._clock(),
            on_expire=on_expire,
        )
        logger.debug(
            "Timer %d started (%s, duration=%s)",
            handle, self._timers[handle].mode, duration_seconds,
        )
        return handle

    def stop(self, handle: int) -> int:
        """
        Stop the timer and return its elapsed whole seconds.

        Idempotent: stopping an already-stopped timer returns the value
        captured by the first stop and changes nothing.
        """
        state = self._get(handle)
        if state.stopped:
            return state.final_elapsed  # type: ignore[return-value]
        now = self._clock()
        state.final_elapsed = math.floor(state.raw_elapsed(now))
        state.accumulated = float(state.final_elapsed)
        state.started_at = None
        state.on_expire = None
        logger.debug("Timer %d stopped at %ds", handle, state.final_elapsed)
        return state.final_elapsed

    def reset(self, handle: int, seconds: float) -> None:
        """
        Put the timer back into a paused state holding ``seconds``.

        A stopwatch restarts counting from ``seconds`` elapsed; a countdown
        restarts with ``seconds`` remaining.  Any pending expiry is dropped;
        call ``resume`` to run again.
        """
        if seconds < 0:
            raise ValueError("seconds must be non-negative")
        state = self._get(handle)
        state.on_expire = None
        state.started_at = None
        state.final_elapsed = None
        if state.mode == "countdown":
            state.duration = float(seconds)
            state.accumulated = 0.0
        else:
            state.accumulated = float(seconds)

    def pause(self, handle: int) -> None:
        """Suspend counting without stopping; no-op when already paused."""
        state = self._get(handle)
        if state.stopped:
            raise InvalidStateError(f"Timer {handle} is stopped")
        if state.running:
            state.accumulated = state.raw_elapsed(self._clock())
            state.started_at = None

    def resume(self, handle: int, on_expire: Callable[[], None] | None = None) -> None:
        """Continue a paused timer; no-op when already running."""
        state = self._get(handle)
        if state.stopped:
            raise InvalidStateError(f"Timer {handle} is stopped")
        if on_expire is not None:
            state.on_expire = on_expire
        if not state.running:
            state.started_at = self._clock()

    def cancel(self, handle: int) -> None:
        """Discard the timer.  The handle is invalid afterwards."""
        state = self._timers.pop(handle, None)
        if state is not None:
            state.on_expire = None
            state.started_at = None
            logger.debug("Timer %d cancelled", handle)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def current_value(self, handle: int) -> int:
        """Elapsed seconds for a stopwatch, remaining seconds for a countdown."""
        state = self._get(handle)
        return self._value(state, self._clock())

    def elapsed(self, handle: int) -> int:
        """Elapsed whole seconds regardless of mode."""
        state = self._get(handle)
        if state.stopped:
            return state.final_elapsed  # type: ignore[return-value]
        return math.floor(state.raw_elapsed(self._clock()))

    def is_running(self, handle: int) -> bool:
        return handle in self._timers and self._timers[handle].running

    def is_active(self, handle: int) -> bool:
        """True while the handle refers to a timer that has not been cancelled."""
        return handle in self._timers

    def advance(self, handle: int, now: float | None = None) -> int:
        """
        Poll the timer at ``now`` (defaults to the clock) and return its value.

        A countdown that has reached zero is stopped here and its expiry
        callback runs exactly once.
        """
        state = self._get(handle)
        if now is None:
            now = self._clock()
        if (
            state.mode == "countdown"
            and state.running
            and state.raw_elapsed(now) >= state.duration  # type: ignore[operator]
        ):
            callback = state.on_expire
            state.final_elapsed = math.floor(state.duration)  # type: ignore[arg-type]
            state.accumulated = float(state.final_elapsed)
            state.started_at = None
            state.on_expire = None
            logger.debug("Timer %d expired", handle)
            if callback is not None:
                callback()
            return 0
        return self._value(state, now)

    def advance_all(self, now: float | None = None) -> dict[int, int]:
        """Advance every active timer; returns {handle: value}."""
        if now is None:
            now = self._clock()
        return {h: self.advance(h, now) for h in list(self._timers) if h in self._timers}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get(self, handle: int) -> _TimerState:
        try:
            return self._timers[handle]
        except KeyError:
            raise InvalidStateError(f"Timer {handle} is not active") from None

    @staticmethod
    def _value(state: _TimerState, now: float) -> int:
        if state.stopped:
            elapsed = float(state.final_elapsed)  # type: ignore[arg-type]
        else:
            elapsed = state.raw_elapsed(now)
        if state.mode == "countdown":
            return max(0, math.ceil(state.duration - elapsed))  # type: ignore[operator]
        return math.floor(elapsed)
