"""FIFO processing queue of task ids.

The queue records admission order into active work. It holds ids only and
never looks at the task store: ids may repeat, and a dequeued id may no
longer resolve to a live task.
"""

from collections import deque
from collections.abc import Iterator

from taskflow.errors import EmptyQueueError


class ProcessingQueue:
    """First-in first-out queue of task ids."""

    def __init__(self) -> None:
        self._ids: deque[str] = deque()

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    @property
    def size(self) -> int:
        return len(self._ids)

    def is_empty(self) -> bool:
        return not self._ids

    def enqueue(self, task_id: str) -> None:
        self._ids.append(task_id)

    def dequeue(self) -> str:
        """Remove and return the id at the head of the queue.

        Raises:
            EmptyQueueError: If the queue has no entries
        """
        if not self._ids:
            raise EmptyQueueError()
        return self._ids.popleft()

    def peek(self) -> str:
        if not self._ids:
            raise EmptyQueueError()
        return self._ids[0]

    def clear(self) -> None:
        self._ids.clear()
