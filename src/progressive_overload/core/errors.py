"""
Domain errors raised by the lifecycle and mesocycle services.

The calling layer maps NotFoundError to "not found" (404 / exit code 4)
and every other ProgressionError to "bad request" (400 / exit code 1).
The pure engine functions never raise these.
"""


class ProgressionError(Exception):
    """Base class for recoverable domain errors."""


class NotFoundError(ProgressionError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class InvalidValueError(ProgressionError):
    """Raised when a logged value is out of range."""


class InvalidTransitionError(ProgressionError):
    """Raised when an entity is not in a state that allows the operation."""


class SetNotPendingError(InvalidTransitionError):
    """Raised when logging or skipping a set that is not pending."""

    def __init__(self, set_id: int, status: str, action: str):
        self.set_id = set_id
        self.status = status
        super().__init__(f"Cannot {action} set {set_id}: set is {status}, not pending")


class SetNotCompletedError(InvalidTransitionError):
    """Raised when unlogging a set that was never logged."""

    def __init__(self, set_id: int, status: str):
        self.set_id = set_id
        self.status = status
        super().__init__(f"Cannot unlog set {set_id}: set is {status}, not completed")


class WorkoutClosedError(InvalidTransitionError):
    """Raised when changing sets of a completed or skipped workout."""

    def __init__(self, workout_id: int, status: str, action: str):
        self.workout_id = workout_id
        self.status = status
        super().__init__(f"Cannot {action} for a {status} workout")


class MesocycleStateError(InvalidTransitionError):
    """Raised when a mesocycle transition is not allowed from its status."""


class ActiveMesocycleExistsError(InvalidTransitionError):
    """Raised when starting a mesocycle while another one is active."""

    def __init__(self, active_id: int):
        self.active_id = active_id
        super().__init__(f"An active mesocycle already exists (id {active_id})")
