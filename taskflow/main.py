"""FastAPI application entry point.

The acting user is identified by the ``X-User-Id`` header.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, FastAPI, Header, Query, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskflow import __version__
from taskflow.config import get_settings
from taskflow.errors import TaskflowError
from taskflow.models import (
    ClearResult,
    DayCount,
    HealthResponse,
    ProcessResult,
    QueueAdded,
    QueueStatus,
    QueueView,
    SortOrder,
    Status,
    StatusStats,
    Task,
    TaskCreate,
    TaskDraft,
    TaskPatch,
    TaskStats,
    UndoHistory,
    UndoResult,
    UndoStatus,
    new_task_id,
)
from taskflow.service import TaskService, service

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="In-memory task manager with single-level undo and a processing queue.",
    version=__version__,
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    logger.debug("%s %s", request.method, request.url.path)
    return await call_next(request)


@app.exception_handler(TaskflowError)
async def taskflow_error_handler(request: Request, exc: TaskflowError) -> JSONResponse:
    logger.warning("%s %s failed (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def get_service() -> TaskService:
    return service


def current_user(x_user_id: Annotated[str, Header(min_length=1)]) -> str:
    return x_user_id


ServiceDep = Annotated[TaskService, Depends(get_service)]
UserDep = Annotated[str, Depends(current_user)]


@app.get("/api/health", response_model=HealthResponse, tags=["System"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(version=__version__)


# Tasks


@app.get("/api/tasks", response_model=list[Task], tags=["Tasks"])
async def list_tasks(
    svc: ServiceDep,
    user_id: UserDep,
    task_status: Annotated[Status | None, Query(alias="status")] = None,
    sort: SortOrder | None = None,
) -> list[Task]:
    """List the user's tasks; ``sort`` reorders the store in place first."""
    return svc.list_tasks(user_id, status=task_status, sort=sort)


@app.post(
    "/api/tasks",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    tags=["Tasks"],
)
async def create_task(data: TaskDraft, svc: ServiceDep, user_id: UserDep) -> Task:
    """Create a new task."""
    payload = TaskCreate(
        task_id=data.task_id or new_task_id(),
        user_id=user_id,
        **data.model_dump(exclude={"task_id"}),
    )
    return svc.create_task(payload)


@app.get("/api/tasks/favorites", response_model=list[Task], tags=["Tasks"])
async def list_favorites(svc: ServiceDep, user_id: UserDep) -> list[Task]:
    return svc.favorites(user_id)


@app.get("/api/tasks/search", response_model=list[Task], tags=["Tasks"])
async def search_tasks(title: str, svc: ServiceDep, user_id: UserDep) -> list[Task]:
    """Search the user's tasks by title (case-insensitive)."""
    return svc.search(user_id, title)


@app.get("/api/tasks/status-stats", response_model=StatusStats, tags=["Tasks"])
async def status_stats(svc: ServiceDep, user_id: UserDep) -> StatusStats:
    return svc.status_stats(user_id)


@app.get("/api/tasks/stats", response_model=TaskStats, tags=["Tasks"])
async def task_stats(svc: ServiceDep, user_id: UserDep) -> TaskStats:
    return svc.stats(user_id)


@app.get("/api/tasks/week-stats", response_model=list[DayCount], tags=["Tasks"])
async def week_stats(svc: ServiceDep, user_id: UserDep) -> list[DayCount]:
    """Completed tasks per weekday of the current week, Monday first."""
    return svc.week_stats(user_id)


@app.post("/api/tasks/clear", response_model=ClearResult, tags=["Tasks"])
async def clear_tasks(svc: ServiceDep, user_id: UserDep) -> ClearResult:
    """Delete every task owned by the user."""
    return ClearResult(deleted_count=svc.clear_tasks(user_id))


@app.get("/api/tasks/{task_id}", response_model=Task, tags=["Tasks"])
async def get_task(task_id: str, svc: ServiceDep, user_id: UserDep) -> Task:
    """Get a specific task by ID."""
    return svc.get_task(task_id, user_id)


@app.patch("/api/tasks/{task_id}", response_model=Task, tags=["Tasks"])
async def update_task(task_id: str, data: TaskPatch, svc: ServiceDep, user_id: UserDep) -> Task:
    """Update an existing task."""
    return svc.update_task(task_id, data, user_id)


@app.patch("/api/tasks/{task_id}/favorite", response_model=Task, tags=["Tasks"])
async def toggle_favorite(task_id: str, svc: ServiceDep, user_id: UserDep) -> Task:
    return svc.toggle_favorite(task_id, user_id)


@app.delete(
    "/api/tasks/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Tasks"],
)
async def delete_task(task_id: str, svc: ServiceDep, user_id: UserDep) -> None:
    """Delete a task."""
    svc.delete_task(task_id, user_id)


# Undo


@app.post("/api/undo", response_model=UndoResult, tags=["Undo"])
async def undo(svc: ServiceDep, user_id: UserDep) -> UndoResult:
    """Reverse the most recent create, update or delete."""
    operation = svc.undo(user_id)
    return UndoResult(operation_type=operation.kind)


@app.get("/api/undo/status", response_model=UndoStatus, tags=["Undo"])
async def undo_status(svc: ServiceDep, user_id: UserDep) -> UndoStatus:
    return UndoStatus(has_undo=svc.can_undo())


@app.get("/api/undo/history", response_model=UndoHistory, tags=["Undo"])
async def undo_history(svc: ServiceDep, user_id: UserDep) -> UndoHistory:
    operation = svc.last_operation()
    return UndoHistory(last_operation=operation.to_record() if operation is not None else None)


@app.delete("/api/undo/clear", status_code=status.HTTP_204_NO_CONTENT, tags=["Undo"])
async def clear_undo(svc: ServiceDep, user_id: UserDep) -> None:
    svc.clear_undo()


# Queue


@app.post("/api/queue/add/{task_id}", response_model=QueueAdded, tags=["Queue"])
async def add_to_queue(task_id: str, svc: ServiceDep, user_id: UserDep) -> QueueAdded:
    """Queue a TO_DO or PENDING task for processing."""
    return QueueAdded(queue_size=svc.add_to_queue(task_id, user_id))


@app.post("/api/queue/next", response_model=ProcessResult, tags=["Queue"])
async def process_next(svc: ServiceDep, user_id: UserDep) -> ProcessResult:
    """Dequeue the next task and mark it IN_PROGRESS."""
    task = svc.process_next(user_id)
    return ProcessResult(task=task, remaining_in_queue=svc.queue.size)


@app.get("/api/queue", response_model=QueueView, tags=["Queue"])
async def view_queue(svc: ServiceDep, user_id: UserDep) -> QueueView:
    return QueueView(
        queue_size=svc.queue.size,
        is_empty=svc.queue.is_empty(),
        task_ids=svc.queued_ids(),
    )


@app.get("/api/queue/status", response_model=QueueStatus, tags=["Queue"])
async def queue_status(svc: ServiceDep, user_id: UserDep) -> QueueStatus:
    return QueueStatus(
        queue_size=svc.queue.size,
        is_empty=svc.queue.is_empty(),
        has_next=not svc.queue.is_empty(),
    )


@app.get("/api/queue/peek", response_model=Task, tags=["Queue"])
async def peek_queue(svc: ServiceDep, user_id: UserDep) -> Task:
    """The next task to be processed, without dequeuing it."""
    return svc.peek_next()


@app.delete("/api/queue/clear", status_code=status.HTTP_204_NO_CONTENT, tags=["Queue"])
async def clear_queue(svc: ServiceDep, user_id: UserDep) -> None:
    svc.clear_queue()
