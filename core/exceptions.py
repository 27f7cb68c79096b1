"""Exceptions for background task processing."""


class TaskError(Exception):
    """Base exception for background task errors."""

    pass


class TaskNotFoundError(TaskError):
    """Raised when a task id does not exist in the store."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class InvalidStateTransitionError(TaskError):
    """Raised when an operation is not allowed from the task's current status."""

    def __init__(self, task_id: str, operation: str, current_status: str):
        self.task_id = task_id
        self.operation = operation
        self.current_status = current_status
        super().__init__(
            f"Cannot {operation} task {task_id} in status {current_status}"
        )


class CannotDeleteActiveTaskError(InvalidStateTransitionError):
    """Raised when deleting a task that has not reached a terminal status."""

    def __init__(self, task_id: str, current_status: str):
        super().__init__(task_id, "delete", current_status)
        self.args = (f"Cannot delete active task {task_id} ({current_status})",)


class UnknownTaskTypeError(TaskError):
    """Raised when no strategy is registered for a task type."""

    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"Unknown task type: {task_type}")


class UnknownItemKindError(TaskError):
    """Raised when no item handler is registered for a (task type, kind) pair."""

    def __init__(self, task_type: str, kind: str):
        self.task_type = task_type
        self.kind = kind
        super().__init__(f"Unknown item kind for {task_type}: {kind}")


class TaskInterruptedError(TaskError):
    """Raised by the item processor when a task is paused or cancelled mid-run."""

    def __init__(self, task_id: str, status: str, processed: int):
        self.task_id = task_id
        self.status = status
        self.processed = processed
        super().__init__(
            f"Task {task_id} interrupted ({status}) after {processed} items"
        )


class ProvisioningError(Exception):
    """Raised when an external provisioning collaborator rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
