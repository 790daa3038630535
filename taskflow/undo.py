"""Single-slot undo log.

An operation records one mutation of the task store with just enough state
to reverse it. The log keeps only the most recent operation: pushing a new
one discards the previous entry, and there is no redo.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from taskflow.errors import EmptyUndoLogError
from taskflow.models import OperationRecord, Task, now_epoch


class _OperationBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    task_id: str
    user_id: str
    timestamp: int = Field(default_factory=now_epoch)

    def to_record(self) -> OperationRecord:
        return OperationRecord(
            type=self.kind,
            task_id=self.task_id,
            previous_state=self.previous_state,
            new_state=self.new_state,
            user_id=self.user_id,
            timestamp=self.timestamp,
        )


class Created(_OperationBase):
    """A task was inserted; undo removes it."""

    kind: Literal["CREATE"] = "CREATE"
    snapshot: dict[str, Any]

    @property
    def previous_state(self) -> None:
        return None

    @property
    def new_state(self) -> dict[str, Any]:
        return self.snapshot


class Deleted(_OperationBase):
    """A task was removed; undo re-inserts the saved state."""

    kind: Literal["DELETE"] = "DELETE"
    snapshot: dict[str, Any]

    @property
    def previous_state(self) -> dict[str, Any]:
        return self.snapshot

    @property
    def new_state(self) -> None:
        return None

    def restore(self) -> Task:
        return Task.from_snapshot(self.snapshot)


class Updated(_OperationBase):
    """A task was modified; undo puts the ``before`` state back."""

    kind: Literal["UPDATE"] = "UPDATE"
    before: dict[str, Any]
    after: dict[str, Any]

    @property
    def previous_state(self) -> dict[str, Any]:
        return self.before

    @property
    def new_state(self) -> dict[str, Any]:
        return self.after

    def restore(self) -> Task:
        return Task.from_snapshot(self.before)


Operation = Annotated[Created | Deleted | Updated, Field(discriminator="kind")]


class UndoLog:
    """Holds at most one :data:`Operation`."""

    def __init__(self) -> None:
        self._entry: Operation | None = None

    @property
    def size(self) -> int:
        return 0 if self._entry is None else 1

    def is_empty(self) -> bool:
        return self._entry is None

    def push(self, operation: Operation) -> None:
        """Store ``operation``, evicting whatever was held before."""
        self._entry = operation

    def pop(self) -> Operation:
        """Remove and return the held operation.

        Raises:
            EmptyUndoLogError: If there is nothing to undo
        """
        operation = self.peek()
        self._entry = None
        return operation

    def peek(self) -> Operation:
        if self._entry is None:
            raise EmptyUndoLogError()
        return self._entry

    def clear(self) -> None:
        self._entry = None
