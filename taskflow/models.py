"""Pydantic models for taskflow.

Every model serializes with camelCase keys; Python code uses the snake_case
attribute names. Enumerations travel as their numeric values.
"""

import secrets
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def now_epoch() -> int:
    """Current time in whole epoch seconds."""
    return int(datetime.now(UTC).timestamp())


def new_task_id() -> str:
    """Random 16 hex digit task id for callers that do not supply one."""
    return secrets.token_hex(8)


class Priority(IntEnum):
    """Task priority levels."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3


class Status(IntEnum):
    """Task lifecycle status."""

    TO_DO = 0
    PENDING = 1
    IN_PROGRESS = 2
    COMPLETED = 3


class SortOrder(StrEnum):
    """In-place orderings supported by the task store."""

    PRIORITY = "priority"
    DUE_DATE = "dueDate"


class WireModel(BaseModel):
    """Base for models exchanged with clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Task(WireModel):
    """A unit of work owned by a single user.

    ``id``, ``user_id`` and ``created_at`` are fixed at construction; every
    other field may be reassigned and is validated on assignment.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    id: str = Field(..., frozen=True, description="Caller supplied task id")
    title: str = Field(..., description="The task title")
    description: str = Field(default="", description="Free-form details")
    priority: Priority = Field(default=Priority.MEDIUM)
    status: Status = Field(default=Status.PENDING)
    tags: list[str] = Field(default_factory=list)
    is_favorite: bool = Field(default=False)
    created_at: int = Field(default_factory=now_epoch, frozen=True, description="Epoch seconds")
    due_date: int = Field(default=0, ge=0, description="Epoch seconds, 0 when unset")
    user_id: str = Field(..., frozen=True, description="Owning user")

    def snapshot(self) -> dict[str, Any]:
        """Full serialized state, suitable for :meth:`from_snapshot`."""
        return self.to_wire()

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any]) -> "Task":
        return cls.model_validate(snapshot)


class TaskFields(WireModel):
    """Caller-supplied fields shared by every creation payload."""

    title: str = Field(..., description="The task title")
    description: str = Field(default="")
    priority: Priority = Field(default=Priority.MEDIUM)
    due_date: int | None = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)


class TaskDraft(TaskFields):
    """Request body for creating a task over HTTP.

    The owner comes from the request; the id is generated when omitted.
    """

    task_id: str | None = Field(default=None, min_length=1)
    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="The task title (required, 1-200 characters)",
    )


class TaskCreate(TaskFields):
    """Fully specified creation payload.

    Any ``status`` in the payload is ignored: new tasks always start PENDING.
    """

    task_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)

    def build(self) -> Task:
        return Task(
            id=self.task_id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            status=Status.PENDING,
            tags=list(self.tags),
            due_date=self.due_date or 0,
            user_id=self.user_id,
        )


class TaskUpdate(WireModel):
    """Partial update; only fields that are present and non-null apply."""

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    status: Status | None = None
    is_favorite: bool | None = None
    tags: list[str] | None = None
    due_date: int | None = Field(default=None, ge=0)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TaskPatch(TaskUpdate):
    """Request body for updating a task over HTTP."""

    title: str | None = Field(default=None, min_length=1, max_length=200)


class OperationRecord(WireModel):
    """History view of an undoable operation."""

    type: str
    task_id: str
    previous_state: dict[str, Any] | None
    new_state: dict[str, Any] | None
    user_id: str
    timestamp: int


class UndoStatus(WireModel):
    has_undo: bool


class UndoHistory(WireModel):
    last_operation: OperationRecord | None = None


class UndoResult(WireModel):
    message: str = "Undo successful"
    operation_type: str


class QueueAdded(WireModel):
    message: str = "Task added to processing queue"
    queue_size: int


class QueueView(WireModel):
    queue_size: int
    is_empty: bool
    task_ids: list[str] = Field(default_factory=list)


class QueueStatus(WireModel):
    queue_size: int
    is_empty: bool
    has_next: bool


class ProcessResult(WireModel):
    message: str = "Started working on task"
    task: Task
    remaining_in_queue: int


class StatusStats(WireModel):
    """Task counts per status for one user."""

    total: int
    to_do: int
    pending: int
    in_progress: int
    completed: int


class TaskStats(WireModel):
    """Totals for one user's dashboard."""

    total_tasks: int
    completed_tasks: int
    tasks_this_month: int = Field(description="Tasks created since the 1st of the current month (UTC)")


class DayCount(WireModel):
    day: str
    completed: int


class ClearResult(WireModel):
    message: str = "All tasks deleted"
    deleted_count: int


class HealthResponse(BaseModel):
    """Response from the health check endpoint."""

    status: str = "healthy"
    version: str = "1.0.0"
