"""
Tracking core: timers, exercise execution, assignment lifecycle,
status aggregation and assignment generation.
"""

from .errors import (
    DuplicateAssignmentError,
    InvalidStateError,
    NotFoundError,
    OutOfOrderError,
    TrackingError,
)
from .models import AssignmentStatus
from .service import Outcome, TrackingStore, TrainingTracker

__all__ = [
    "AssignmentStatus",
    "DuplicateAssignmentError",
    "InvalidStateError",
    "NotFoundError",
    "OutOfOrderError",
    "Outcome",
    "TrackingError",
    "TrackingStore",
    "TrainingTracker",
]
