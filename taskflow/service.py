"""Task service: the store, the undo log and the processing queue together.

Every mutation of the store through this service records an undo entry.
Methods raise :class:`~taskflow.errors.TaskflowError` subclasses; turning
them into replies is left to the transports.
"""

import logging
from datetime import UTC, datetime, timedelta

from taskflow.errors import InvalidInputError, NotFoundError, OwnershipMismatchError
from taskflow.models import (
    DayCount,
    SortOrder,
    Status,
    StatusStats,
    Task,
    TaskCreate,
    TaskStats,
    TaskUpdate,
)
from taskflow.queue import ProcessingQueue
from taskflow.store import TaskStore
from taskflow.undo import Created, Deleted, Operation, UndoLog, Updated

logger = logging.getLogger(__name__)

QUEUEABLE_STATUSES = frozenset({Status.TO_DO, Status.PENDING})

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class TaskService:
    """Operations on tasks, undo and the processing queue."""

    def __init__(
        self,
        store: TaskStore | None = None,
        undo_log: UndoLog | None = None,
        queue: ProcessingQueue | None = None,
    ) -> None:
        self.store = store if store is not None else TaskStore()
        self.undo_log = undo_log if undo_log is not None else UndoLog()
        self.queue = queue if queue is not None else ProcessingQueue()

    # ------------------------------------------------------------------ tasks

    def create_task(self, data: TaskCreate) -> Task:
        """Create a new task and return it. New tasks always start PENDING."""
        task = data.build()
        self.store.insert(task)
        self.undo_log.push(Created(task_id=task.id, user_id=task.user_id, snapshot=task.snapshot()))
        logger.info("Created task %s for user %s", task.id, task.user_id)
        return task

    def list_tasks(
        self,
        user_id: str,
        status: Status | None = None,
        sort: SortOrder | None = None,
    ) -> list[Task]:
        """Tasks owned by ``user_id`` in store order.

        A ``sort`` reorders the whole store in place before listing.
        """
        if sort is SortOrder.PRIORITY:
            self.store.sort_by_priority()
        elif sort is SortOrder.DUE_DATE:
            self.store.sort_by_due_date()

        tasks = self.store.get_by_user_id(user_id)
        if status is not None:
            tasks = [task for task in tasks if task.status == status]
        return tasks

    def get_task(self, task_id: str, user_id: str | None = None) -> Task:
        """Get a task by id.

        Raises:
            NotFoundError: If no task has this id
            OwnershipMismatchError: If ``user_id`` is given and does not own it
        """
        task = self.store.find(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        if user_id is not None and task.user_id != user_id:
            raise OwnershipMismatchError("Task does not belong to this user")
        return task

    def update_task(self, task_id: str, data: TaskUpdate, user_id: str | None = None) -> Task:
        """Apply the present, non-null fields of ``data`` to a task."""
        task = self.get_task(task_id, user_id)
        before = task.snapshot()
        for field_name, value in data.changes().items():
            setattr(task, field_name, value)
        self.undo_log.push(
            Updated(
                task_id=task.id,
                user_id=user_id or task.user_id,
                before=before,
                after=task.snapshot(),
            )
        )
        logger.info("Updated task %s", task.id)
        return task

    def toggle_favorite(self, task_id: str, user_id: str | None = None) -> Task:
        task = self.get_task(task_id, user_id)
        return self.update_task(task_id, TaskUpdate(is_favorite=not task.is_favorite), user_id)

    def delete_task(self, task_id: str, user_id: str | None = None) -> Task:
        """Remove a task and return its final state."""
        task = self.get_task(task_id, user_id)
        snapshot = task.snapshot()
        self.store.remove(task_id)
        self.undo_log.push(Deleted(task_id=task_id, user_id=user_id or task.user_id, snapshot=snapshot))
        logger.info("Deleted task %s", task_id)
        return task

    def favorites(self, user_id: str) -> list[Task]:
        return [task for task in self.store.get_by_user_id(user_id) if task.is_favorite]

    def search(self, user_id: str, title: str) -> list[Task]:
        """Case-insensitive title search over one user's tasks."""
        if not title.strip():
            raise InvalidInputError("Search term is required")
        needle = title.strip().casefold()
        return [task for task in self.store.get_by_user_id(user_id) if needle in task.title.casefold()]

    def status_stats(self, user_id: str) -> StatusStats:
        tasks = self.store.get_by_user_id(user_id)
        counts = {status: 0 for status in Status}
        for task in tasks:
            counts[task.status] += 1
        return StatusStats(
            total=len(tasks),
            to_do=counts[Status.TO_DO],
            pending=counts[Status.PENDING],
            in_progress=counts[Status.IN_PROGRESS],
            completed=counts[Status.COMPLETED],
        )

    def stats(self, user_id: str, now: datetime | None = None) -> TaskStats:
        """Total, completed and created-this-month counts for one user."""
        now = now or datetime.now(UTC)
        month_start = int(datetime(now.year, now.month, 1, tzinfo=UTC).timestamp())
        tasks = self.store.get_by_user_id(user_id)
        return TaskStats(
            total_tasks=len(tasks),
            completed_tasks=sum(1 for task in tasks if task.status == Status.COMPLETED),
            tasks_this_month=sum(1 for task in tasks if task.created_at >= month_start),
        )

    def week_stats(self, user_id: str, now: datetime | None = None) -> list[DayCount]:
        """Completed tasks per weekday of the current ISO week, Monday first.

        A task counts on the day it was created (UTC).
        """
        now = now or datetime.now(UTC)
        monday = datetime(now.year, now.month, now.day, tzinfo=UTC) - timedelta(days=now.weekday())
        week_start = int(monday.timestamp())
        week_end = int((monday + timedelta(days=7)).timestamp())

        counts = [0] * 7
        for task in self.store.get_by_user_id(user_id):
            if task.status == Status.COMPLETED and week_start <= task.created_at < week_end:
                counts[datetime.fromtimestamp(task.created_at, UTC).weekday()] += 1
        return [DayCount(day=day, completed=count) for day, count in zip(WEEKDAYS, counts)]

    def clear_tasks(self, user_id: str) -> int:
        """Remove every task owned by ``user_id``. Not undoable.

        A held UPDATE of one of the removed tasks is dropped from the undo
        log; undoing it would re-insert the task.

        Returns:
            Number of tasks removed
        """
        removed = 0
        cleared_ids = set()
        for task in self.store.get_by_user_id(user_id):
            if self.store.discard(task):
                removed += 1
                cleared_ids.add(task.id)

        held = self.last_operation()
        if (
            isinstance(held, Updated)
            and held.task_id in cleared_ids
            and held.before.get("userId") == user_id
        ):
            logger.debug("Dropping undo entry for cleared task %s", held.task_id)
            self.undo_log.clear()
        logger.info("Cleared %d tasks for user %s", removed, user_id)
        return removed

    # ------------------------------------------------------------------- undo

    def undo(self, user_id: str) -> Operation:
        """Reverse the most recent mutation and return the consumed operation.

        Restored tasks are appended at the end of the store order.

        Raises:
            EmptyUndoLogError: If there is nothing to undo
        """
        operation = self.undo_log.pop()
        if isinstance(operation, Created):
            if not self.store.remove(operation.task_id):
                logger.debug("Task %s already gone, nothing to remove", operation.task_id)
        elif isinstance(operation, Deleted):
            self.store.insert(operation.restore())
        elif isinstance(operation, Updated):
            self.store.remove(operation.task_id)
            self.store.insert(operation.restore())
        else:
            raise TypeError(f"Unsupported operation: {operation!r}")

        logger.info("User %s undid %s of task %s", user_id, operation.kind, operation.task_id)
        return operation

    def can_undo(self) -> bool:
        return not self.undo_log.is_empty()

    def last_operation(self) -> Operation | None:
        if self.undo_log.is_empty():
            return None
        return self.undo_log.peek()

    def clear_undo(self) -> None:
        self.undo_log.clear()

    # ------------------------------------------------------------------ queue

    def add_to_queue(self, task_id: str, user_id: str | None = None) -> int:
        """Queue a TO_DO or PENDING task and return the new queue size."""
        task = self.get_task(task_id, user_id)
        if task.status not in QUEUEABLE_STATUSES:
            raise InvalidInputError("Only TO_DO or PENDING tasks can be added to queue")
        self.queue.enqueue(task_id)
        logger.info("Queued task %s (queue size %d)", task_id, self.queue.size)
        return self.queue.size

    def process_next(self, user_id: str) -> Task:
        """Dequeue the next id and move its task to IN_PROGRESS.

        The queue entry is consumed even when the task no longer exists or
        belongs to another user. A task that is already IN_PROGRESS is left
        as it is.

        Raises:
            EmptyQueueError: If the queue is empty
            NotFoundError: If the dequeued id no longer resolves
            OwnershipMismatchError: If the task belongs to another user
        """
        task_id = self.queue.dequeue()
        task = self.store.find(task_id)
        if task is None:
            logger.warning("Dequeued task %s no longer exists", task_id)
            raise NotFoundError("Task not found")
        if task.user_id != user_id:
            logger.warning("Dequeued task %s does not belong to user %s", task_id, user_id)
            raise OwnershipMismatchError("Task does not belong to this user")

        task.status = Status.IN_PROGRESS
        logger.info("Started task %s (%d left in queue)", task_id, self.queue.size)
        return task

    def peek_next(self) -> Task:
        """The task at the head of the queue, without dequeuing it."""
        task_id = self.queue.peek()
        task = self.store.find(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def queued_ids(self) -> list[str]:
        return list(self.queue)

    def clear_queue(self) -> None:
        self.queue.clear()

    def reset(self) -> None:
        """Drop all state. Useful for testing."""
        self.store.clear()
        self.undo_log.clear()
        self.queue.clear()


# Global service instance
service = TaskService()
