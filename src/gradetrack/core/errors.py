"""Error taxonomy for the grade tracker.

Every failure a mutation can surface maps to one of these classes.
Aggregation never raises: missing data is represented as None.
"""

from __future__ import annotations


class GradeTrackError(Exception):
    """Base class for grade tracker errors."""

    pass


class ValidationError(GradeTrackError):
    """User input out of range or not numeric. The mutation is not attempted."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class ConflictError(GradeTrackError):
    """A course already exists for this user."""

    pass


class NotFoundError(GradeTrackError):
    """An entity id no longer exists in the tree."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class TransientIOError(GradeTrackError):
    """Network or storage failure. The operation did not apply."""

    pass


class StoreStateError(GradeTrackError):
    """Operation is not valid in the store's current lifecycle state."""

    pass
