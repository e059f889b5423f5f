"""
Configuration constants for the training tracker.

Python defaults live here; tracker.yaml (bundled, with an optional user
override) can adjust the tunable ones at runtime via
engine.config_loader.get_setting.
"""

from typing import Final

# =============================================================================
# ELAPSED-TIME MONITORING
# =============================================================================

# Exercise elapsed seconds may exceed the session stopwatch by this much
# before a consistency warning is logged (rounding of per-exercise floors).
ELAPSED_TOLERANCE_SECONDS: Final[int] = 5

# =============================================================================
# TIMERS
# =============================================================================

# Countdown used when an exercise carries no target duration.
DEFAULT_EXERCISE_SECONDS: Final[int] = 60

# =============================================================================
# STORAGE
# =============================================================================

DEFAULT_DATA_DIR_NAME: Final[str] = ".training-tracker"
DATA_DIR_ENV_VAR: Final[str] = "TRAINING_TRACKER_HOME"
LOG_LEVEL_ENV_VAR: Final[str] = "TRAINING_TRACKER_LOG_LEVEL"

TRAININGS_FILE: Final[str] = "trainings.json"
ATHLETES_FILE: Final[str] = "athletes.json"
ASSIGNMENTS_FILE: Final[str] = "assignments.jsonl"


def format_seconds(total_seconds: int) -> str:
    """
    Format seconds as MM:SS, or H:MM:SS from one hour up.

    Args:
        total_seconds: Non-negative number of seconds

    Returns:
        Clock-style string
    """
    total_seconds = max(0, int(total_seconds))
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"
