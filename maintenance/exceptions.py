class MaintenanceError(Exception):
    """Base class for rejected maintenance commands.

    A rejected command never leaves a partial change behind: every store
    operation runs in a single transaction that is rolled back on error.
    """

    kind = 'error'


class NotFound(MaintenanceError):
    kind = 'not_found'


class InvalidTransition(MaintenanceError):
    kind = 'invalid_transition'

    def __init__(self, current, target, reason=None):
        self.current = current
        self.target = target
        message = f"Cannot move a request from '{current}' to '{target}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AssigneeUnavailable(MaintenanceError):
    kind = 'assignee_unavailable'


class InvalidOperation(MaintenanceError):
    kind = 'invalid_operation'


class InvalidState(InvalidOperation):
    """The request is not in the state the command requires."""

    kind = 'invalid_state'
