"""
Error taxonomy for the tracking core.

InvalidStateError and OutOfOrderError are expected conditions during
execution and are reported to callers as typed outcomes by the service
layer.  DuplicateAssignmentError and NotFoundError come from the
persistence boundary.
"""


class TrackingError(Exception):
    """Base class for all training-tracker errors."""

    pass


class InvalidStateError(TrackingError):
    """Mutation attempted on a terminal or not-yet-started entity."""

    pass


class OutOfOrderError(TrackingError):
    """Exercise sequence violated."""

    def __init__(self, index: int, expected: int):
        self.index = index
        self.expected = expected
        super().__init__(
            f"Exercise {index} is out of sequence; exercise {expected} is due"
        )


class DuplicateAssignmentError(TrackingError):
    """
    One or more (athlete, training, date) combinations already exist.

    ``pairs`` lists only the colliding (athlete_no, date) pairs.
    """

    def __init__(self, training_id: str, pairs: list[tuple[int, str]]):
        self.training_id = training_id
        self.pairs = sorted(pairs)
        listing = ", ".join(f"athlete {a} on {d}" for a, d in self.pairs)
        super().__init__(f"Training {training_id} already assigned to {listing}")


class NotFoundError(TrackingError):
    """Referenced training, assignment or athlete is absent from the store."""

    def __init__(self, kind: str, identifier: object):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")
