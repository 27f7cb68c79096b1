"""Background task state machine."""

from typing import Final

from core.constants import TERMINAL_STATUSES
from core.exceptions import CannotDeleteActiveTaskError, InvalidStateTransitionError
from core.types import BackgroundTaskStatus as Status

ALLOWED_TRANSITIONS: Final[dict[Status, frozenset[Status]]] = {
    Status.PENDING: frozenset({Status.RUNNING, Status.PAUSED, Status.CANCELLED}),
    Status.RETRY: frozenset({Status.RUNNING, Status.CANCELLED}),
    Status.RUNNING: frozenset(
        {Status.COMPLETED, Status.FAILED, Status.PAUSED, Status.CANCELLED}
    ),
    Status.PAUSED: frozenset({Status.PENDING, Status.CANCELLED}),
    Status.FAILED: frozenset({Status.RETRY}),
    Status.COMPLETED: frozenset(),
    Status.CANCELLED: frozenset(),
}

# Control operations and the target status each one writes
OPERATION_TARGETS: Final[dict[str, Status]] = {
    "pause": Status.PAUSED,
    "resume": Status.PENDING,
    "cancel": Status.CANCELLED,
    "requeue": Status.RETRY,
}


def is_terminal(status: Status) -> bool:
    """Check whether a status ends the task's lifecycle."""
    return status in TERMINAL_STATUSES


def can_transition(current: Status, target: Status) -> bool:
    """Check whether ``current -> target`` is a legal transition."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def sources_for(target: Status) -> frozenset[Status]:
    """All statuses from which ``target`` can be reached."""
    return frozenset(
        status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets
    )


def ensure_operation_allowed(task_id: str, operation: str, current: Status) -> Status:
    """Validate a control operation against the current status.

    Returns:
        The status the operation transitions to

    Raises:
        InvalidStateTransitionError: If the operation is not allowed
    """
    target = OPERATION_TARGETS[operation]
    if not can_transition(current, target):
        raise InvalidStateTransitionError(task_id, operation, current.value)
    return target


def ensure_deletable(task_id: str, current: Status) -> None:
    """Only terminal tasks may be deleted."""
    if not is_terminal(current):
        raise CannotDeleteActiveTaskError(task_id, current.value)
