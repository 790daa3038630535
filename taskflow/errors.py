"""Error kinds raised by the task service.

Each error carries a stable ``code`` (reported to line-protocol clients) and
the HTTP status used by the REST API.
"""


class TaskflowError(Exception):
    """Base class for every recoverable request failure."""

    code = "Error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(TaskflowError):
    """No task, operation or queue entry for the given id."""

    code = "NotFound"
    status_code = 404


class InvalidInputError(TaskflowError):
    """Malformed request or missing required field."""

    code = "ValidationError"
    status_code = 422


class OwnershipMismatchError(TaskflowError):
    """The task belongs to a different user than the requester."""

    code = "OwnershipMismatch"
    status_code = 403


class EmptyUndoLogError(TaskflowError):
    code = "EmptyUndoLog"

    def __init__(self, message: str = "Nothing to undo") -> None:
        super().__init__(message)


class EmptyQueueError(TaskflowError):
    code = "EmptyQueue"

    def __init__(self, message: str = "Processing queue is empty") -> None:
        super().__init__(message)


class UnknownActionError(TaskflowError):
    code = "UnknownAction"

    def __init__(self, action: str) -> None:
        super().__init__(f"Unknown action: {action}")
        self.action = action
