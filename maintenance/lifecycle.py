"""Status transitions of a maintenance request."""

from .exceptions import InvalidTransition
from .models import RequestStatus


ALLOWED_TRANSITIONS = {
    RequestStatus.PENDING: (RequestStatus.IN_PROGRESS, RequestStatus.CANCELLED),
    RequestStatus.IN_PROGRESS: (RequestStatus.COMPLETED, RequestStatus.CANCELLED),
    RequestStatus.COMPLETED: (),
    RequestStatus.CANCELLED: (),
}

# Entering in-progress means someone now owns the work.
ASSIGNMENT_ONLY = frozenset([(RequestStatus.PENDING, RequestStatus.IN_PROGRESS)])


def is_terminal(status):
    return not ALLOWED_TRANSITIONS[RequestStatus(status)]


def allowed_targets(status, via_assignment=False):
    """Statuses reachable from ``status`` by the given kind of command."""
    current = RequestStatus(status)
    return tuple(
        target for target in ALLOWED_TRANSITIONS[current]
        if via_assignment or (current, target) not in ASSIGNMENT_ONLY
    )


def check_transition(current, target, via_assignment=False):
    """Raise ``InvalidTransition`` unless ``current -> target`` is permitted."""
    current = RequestStatus(current)
    target = RequestStatus(target)

    if current == target:
        raise InvalidTransition(current, target, "request is already in that status")
    if is_terminal(current):
        raise InvalidTransition(current, target, "request is already resolved")
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(current, target)
    if (current, target) in ASSIGNMENT_ONLY and not via_assignment:
        raise InvalidTransition(current, target, "the request must be assigned first")


def apply_transition(maintenance_request, target, now, via_assignment=False):
    """Move ``maintenance_request`` to ``target`` in memory.

    Returns the names of the fields that changed; persisting them is the
    caller's job. The instance is untouched when the transition is rejected.
    """
    check_transition(maintenance_request.status, target, via_assignment=via_assignment)

    maintenance_request.status = RequestStatus(target)
    changed = ['status']
    if target == RequestStatus.COMPLETED:
        maintenance_request.actual_completion = now
        changed.append('actual_completion')
    return changed
