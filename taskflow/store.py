"""In-memory task storage.

The store is the system of record: an ordered list of tasks plus an index
from id to the first task in store order carrying that id. Ids are not
required to be unique; duplicates are kept and lookups resolve to the
earliest one.
"""

from collections import Counter

from taskflow.models import Status, Task


class TaskStore:
    """Order-preserving in-memory task collection."""

    def __init__(self) -> None:
        """Initialize an empty task store."""
        self._tasks: list[Task] = []
        self._index: dict[str, Task] = {}
        self._counts: Counter[str] = Counter()

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def size(self) -> int:
        return len(self._tasks)

    def is_empty(self) -> bool:
        return not self._tasks

    def insert(self, task: Task | None) -> None:
        """Append a task at the end of the store order. ``None`` is ignored."""
        if task is None:
            return
        self._tasks.append(task)
        self._counts[task.id] += 1
        self._index.setdefault(task.id, task)

    def remove(self, task_id: str) -> bool:
        """Remove the first task with this id. Returns True if one was removed."""
        task = self._index.get(task_id)
        if task is None:
            return False
        return self.discard(task)

    def discard(self, task: Task) -> bool:
        """Remove this exact task object, whatever its position."""
        for position, candidate in enumerate(self._tasks):
            if candidate is task:
                del self._tasks[position]
                break
        else:
            return False

        self._counts[task.id] -= 1
        if self._counts[task.id] > 0:
            self._index[task.id] = next(t for t in self._tasks if t.id == task.id)
        else:
            del self._counts[task.id]
            del self._index[task.id]
        return True

    def find(self, task_id: str) -> Task | None:
        """Get a task by its ID, or None if not found."""
        return self._index.get(task_id)

    def get_all(self) -> list[Task]:
        return list(self._tasks)

    def get_by_user_id(self, user_id: str) -> list[Task]:
        """All tasks owned by ``user_id``, in store order."""
        return [task for task in self._tasks if task.user_id == user_id]

    def filter_by_status(self, status: Status) -> list[Task]:
        return [task for task in self._tasks if task.status == status]

    def sort_by_priority(self) -> None:
        """Reorder in place: HIGH, MEDIUM, LOW; equal priorities keep their order."""
        self._tasks.sort(key=lambda t: t.priority, reverse=True)
        self._reindex()

    def sort_by_due_date(self) -> None:
        """Reorder in place by ascending due date.

        Unset due dates (0) go after every set date. The sort is stable, so
        tasks with equal keys keep their relative order.
        """
        self._tasks.sort(key=lambda t: (t.due_date == 0, t.due_date))
        self._reindex()

    def clear(self) -> None:
        """Clear all tasks. Useful for testing."""
        self._tasks.clear()
        self._index.clear()
        self._counts.clear()

    def _reindex(self) -> None:
        # Sorting can change which duplicate comes first.
        self._index = {}
        for task in self._tasks:
            self._index.setdefault(task.id, task)
