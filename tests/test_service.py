"""Tests for task operations of the service."""

from datetime import UTC, datetime

import pytest

from taskflow.errors import EmptyUndoLogError, InvalidInputError, NotFoundError, OwnershipMismatchError
from taskflow.models import Priority, SortOrder, Status, Task, TaskCreate, TaskUpdate
from taskflow.service import TaskService


def create(svc: TaskService, task_id: str, user_id: str = "u1", **fields) -> Task:
    fields.setdefault("title", f"Task {task_id}")
    return svc.create_task(TaskCreate(task_id=task_id, user_id=user_id, **fields))


def test_create_and_get(svc: TaskService) -> None:
    task = create(svc, "t1", title="A", priority=Priority.HIGH)

    assert svc.get_task("t1") is task
    assert task.status == Status.PENDING
    assert task.priority == Priority.HIGH


def test_create_accepts_duplicate_ids(svc: TaskService) -> None:
    first = create(svc, "t1")
    create(svc, "t1")

    assert svc.store.size == 2
    assert svc.get_task("t1") is first


def test_get_missing_task(svc: TaskService) -> None:
    with pytest.raises(NotFoundError):
        svc.get_task("missing")


def test_get_checks_owner_when_given(svc: TaskService) -> None:
    create(svc, "t1", user_id="u1")

    assert svc.get_task("t1", user_id="u1").id == "t1"
    with pytest.raises(OwnershipMismatchError):
        svc.get_task("t1", user_id="u2")


def test_list_tasks_filters_by_owner_and_status(svc: TaskService) -> None:
    create(svc, "a")
    create(svc, "b", user_id="u2")
    create(svc, "c")
    svc.update_task("c", TaskUpdate(status=Status.COMPLETED))

    assert [t.id for t in svc.list_tasks("u1")] == ["a", "c"]
    assert [t.id for t in svc.list_tasks("u1", status=Status.COMPLETED)] == ["c"]


def test_list_tasks_sorts_store_in_place(svc: TaskService) -> None:
    create(svc, "a", priority=Priority.LOW, due_date=300)
    create(svc, "b", priority=Priority.HIGH)
    create(svc, "c", priority=Priority.MEDIUM, due_date=100)

    assert [t.id for t in svc.list_tasks("u1", sort=SortOrder.PRIORITY)] == ["b", "c", "a"]
    assert [t.id for t in svc.store.get_all()] == ["b", "c", "a"]

    assert [t.id for t in svc.list_tasks("u1", sort=SortOrder.DUE_DATE)] == ["c", "a", "b"]


def test_update_applies_only_given_fields(svc: TaskService) -> None:
    task = create(svc, "t1", description="keep me")
    created_at = task.created_at

    svc.update_task("t1", TaskUpdate(title="New", tags=["x", "y"], due_date=1_900_000_000))

    task = svc.get_task("t1")
    assert task.title == "New"
    assert task.description == "keep me"
    assert task.tags == ["x", "y"]
    assert task.due_date == 1_900_000_000
    assert task.created_at == created_at


def test_update_checks_owner_when_given(svc: TaskService) -> None:
    create(svc, "t1", user_id="u1")
    with pytest.raises(OwnershipMismatchError):
        svc.update_task("t1", TaskUpdate(title="Nope"), user_id="u2")
    assert svc.get_task("t1").title == "Task t1"


def test_delete(svc: TaskService) -> None:
    create(svc, "t1")

    removed = svc.delete_task("t1")

    assert removed.id == "t1"
    with pytest.raises(NotFoundError):
        svc.get_task("t1")
    with pytest.raises(NotFoundError):
        svc.delete_task("t1")


def test_toggle_favorite(svc: TaskService) -> None:
    create(svc, "t1")

    assert svc.toggle_favorite("t1").is_favorite is True
    assert [t.id for t in svc.favorites("u1")] == ["t1"]
    assert svc.toggle_favorite("t1").is_favorite is False
    assert svc.favorites("u1") == []


def test_search_is_case_insensitive(svc: TaskService) -> None:
    create(svc, "a", title="Write REPORT")
    create(svc, "b", title="Buy milk")
    create(svc, "c", user_id="u2", title="report elsewhere")

    assert [t.id for t in svc.search("u1", "report")] == ["a"]


def test_search_requires_term(svc: TaskService) -> None:
    with pytest.raises(InvalidInputError):
        svc.search("u1", "  ")


def test_status_stats(svc: TaskService) -> None:
    create(svc, "a")
    create(svc, "b")
    create(svc, "c")
    create(svc, "d", user_id="u2")
    svc.update_task("b", TaskUpdate(status=Status.COMPLETED))
    svc.update_task("c", TaskUpdate(status=Status.TO_DO))

    stats = svc.status_stats("u1")

    assert stats.total == 3
    assert stats.pending == 1
    assert stats.completed == 1
    assert stats.to_do == 1
    assert stats.in_progress == 0


def test_clear_tasks_only_touches_owner(svc: TaskService) -> None:
    create(svc, "a")
    create(svc, "b", user_id="u2")
    create(svc, "c")

    assert svc.clear_tasks("u1") == 2
    assert [t.id for t in svc.store.get_all()] == ["b"]


def test_clear_tasks_spares_other_users_duplicate_ids(svc: TaskService) -> None:
    """Test that clearing one user leaves another user's task with the same id."""
    create(svc, "dup", user_id="u2")
    create(svc, "dup", user_id="u1")

    assert svc.clear_tasks("u1") == 1
    assert svc.get_task("dup").user_id == "u2"


def test_search_trims_the_term(svc: TaskService) -> None:
    create(svc, "a", title="Buy milk")

    assert [t.id for t in svc.search("u1", "  milk ")] == ["a"]


def test_clear_tasks_drops_pending_update_of_cleared_task(svc: TaskService) -> None:
    """Test that undo cannot bring back a task removed by clearing."""
    create(svc, "a")
    svc.update_task("a", TaskUpdate(title="Changed"))

    svc.clear_tasks("u1")

    with pytest.raises(EmptyUndoLogError):
        svc.undo("u1")
    assert svc.store.is_empty()


def test_clear_tasks_keeps_other_users_undo(svc: TaskService) -> None:
    create(svc, "b", user_id="u2")
    create(svc, "a")
    svc.update_task("a", TaskUpdate(title="Changed"))

    svc.clear_tasks("u2")

    assert svc.undo("u1").kind == "UPDATE"
    assert svc.get_task("a").title == "Task a"


def epoch(*args: int) -> int:
    return int(datetime(*args, tzinfo=UTC).timestamp())


def add(svc: TaskService, task_id: str, created_at: int, status: Status, user_id: str = "u1") -> None:
    svc.store.insert(
        Task(id=task_id, title=task_id, status=status, created_at=created_at, user_id=user_id)
    )


def test_stats(svc: TaskService) -> None:
    add(svc, "old", epoch(2026, 9, 30, 23, 59), Status.COMPLETED)
    add(svc, "first", epoch(2026, 10, 1), Status.PENDING)
    add(svc, "recent", epoch(2026, 10, 20), Status.COMPLETED)
    add(svc, "other", epoch(2026, 10, 20), Status.COMPLETED, user_id="u2")

    stats = svc.stats("u1", now=datetime(2026, 10, 21, 12, tzinfo=UTC))

    assert stats.total_tasks == 3
    assert stats.completed_tasks == 2
    assert stats.tasks_this_month == 2


def test_week_stats_counts_completed_tasks_per_weekday(svc: TaskService) -> None:
    """Test the Monday-first breakdown of the week containing ``now``."""
    add(svc, "mon", epoch(2026, 10, 19, 8), Status.COMPLETED)
    add(svc, "wed", epoch(2026, 10, 21, 9), Status.COMPLETED)
    add(svc, "sun", epoch(2026, 10, 25, 23), Status.COMPLETED)
    add(svc, "last-week", epoch(2026, 10, 18, 23), Status.COMPLETED)
    add(svc, "open", epoch(2026, 10, 21, 9), Status.PENDING)
    add(svc, "other", epoch(2026, 10, 21, 9), Status.COMPLETED, user_id="u2")

    week = svc.week_stats("u1", now=datetime(2026, 10, 21, 12, tzinfo=UTC))

    assert [(d.day, d.completed) for d in week] == [
        ("Mon", 1),
        ("Tue", 0),
        ("Wed", 1),
        ("Thu", 0),
        ("Fri", 0),
        ("Sat", 0),
        ("Sun", 1),
    ]
