"""Failure signals raised by the tracker core.

The HTTP layer maps each class onto a status code in ``weeklyfocus.main``.
"""


class TrackerError(Exception):
    """Base class for every error the core raises on purpose."""


class StorageUnavailableError(TrackerError):
    """The underlying store could not be opened or created."""


class PersistenceError(TrackerError):
    """A commit failed; published state still shows the last good snapshot."""


class InvalidInputError(TrackerError):
    """Rejected at the mutation boundary before anything was persisted."""


class ClockStateError(InvalidInputError):
    """The requested clock transition is not valid from the record's state."""


class RecordNotFoundError(TrackerError):
    def __init__(self, record_id):
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id


class GoalNotFoundError(TrackerError):
    def __init__(self, goal_id):
        super().__init__(f"Goal {goal_id} not found")
        self.goal_id = goal_id
