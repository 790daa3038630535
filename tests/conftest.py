"""Pytest fixtures for the taskflow tests."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from taskflow.main import app
from taskflow.models import Priority, Status, Task
from taskflow.protocol import RequestHandler
from taskflow.service import TaskService, service


@pytest.fixture
def client() -> TestClient:
    """Create a test client for the API."""
    service.reset()
    return TestClient(app, headers={"X-User-Id": "u1"})


@pytest.fixture
def svc() -> TaskService:
    """A fresh service, independent of the one behind the API."""
    return TaskService()


@pytest.fixture
def handler(svc: TaskService) -> RequestHandler:
    return RequestHandler(svc)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """Build tasks with sensible defaults."""

    def _make(
        task_id: str,
        *,
        title: str | None = None,
        priority: Priority = Priority.MEDIUM,
        status: Status = Status.PENDING,
        due_date: int = 0,
        user_id: str = "u1",
    ) -> Task:
        return Task(
            id=task_id,
            title=title or f"Task {task_id}",
            priority=priority,
            status=status,
            due_date=due_date,
            user_id=user_id,
        )

    return _make
