"""Line-oriented JSON request protocol.

Each input line is one JSON request with an ``action`` and the fields that
action needs; each request produces exactly one JSON reply line with a
``success`` flag. Failures never escape a request: the handler turns them
into ``{"success": false, "error": ..., "code": ...}`` and stays ready for
the next line.
"""

import json
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Annotated, Any, Literal, TextIO

from pydantic import Field, TypeAdapter, ValidationError

from taskflow.errors import InvalidInputError, TaskflowError, UnknownActionError
from taskflow.models import (
    ProcessResult,
    QueueAdded,
    QueueStatus,
    QueueView,
    SortOrder,
    Status,
    TaskCreate,
    TaskUpdate,
    UndoHistory,
    UndoResult,
    UndoStatus,
    WireModel,
)
from taskflow.service import TaskService

logger = logging.getLogger(__name__)

Reply = dict[str, Any]


class Action(StrEnum):
    CREATE = "create"
    GET_ALL = "getAll"
    GET_BY_ID = "getById"
    UPDATE = "update"
    DELETE = "delete"
    UNDO = "undo"
    UNDO_STATUS = "undoStatus"
    UNDO_HISTORY = "undoHistory"
    ADD_TO_QUEUE = "addToQueue"
    PROCESS_NEXT = "processNext"
    VIEW_QUEUE = "viewQueue"
    QUEUE_STATUS = "queueStatus"
    TOGGLE_FAVORITE = "toggleFavorite"
    FAVORITES = "favorites"
    SEARCH = "search"
    STATUS_STATS = "statusStats"
    CLEAR_TASKS = "clearTasks"
    PEEK_QUEUE = "peekQueue"
    CLEAR_QUEUE = "clearQueue"
    CLEAR_UNDO = "clearUndo"
    STATS = "stats"
    WEEK_STATS = "weekStats"


class CreateRequest(WireModel):
    action: Literal["create"]
    data: TaskCreate


class GetAllRequest(WireModel):
    action: Literal["getAll"]
    user_id: str
    status: Status | None = None
    sort: SortOrder | None = None


class TaskRequest(WireModel):
    """Actions addressing a single task by id."""

    action: Literal["getById", "delete", "addToQueue", "toggleFavorite"]
    task_id: str
    user_id: str | None = None


class UpdateRequest(WireModel):
    action: Literal["update"]
    task_id: str
    data: TaskUpdate
    user_id: str | None = None


class SearchRequest(WireModel):
    action: Literal["search"]
    user_id: str
    title: str


class UserRequest(WireModel):
    """Actions that only identify the requesting user."""

    action: Literal[
        "undo",
        "undoStatus",
        "undoHistory",
        "processNext",
        "viewQueue",
        "queueStatus",
        "favorites",
        "statusStats",
        "clearTasks",
        "peekQueue",
        "clearQueue",
        "clearUndo",
        "stats",
        "weekStats",
    ]
    user_id: str


Request = Annotated[
    CreateRequest | GetAllRequest | TaskRequest | UpdateRequest | SearchRequest | UserRequest,
    Field(discriminator="action"),
]

_request_adapter: TypeAdapter[Request] = TypeAdapter(Request)


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        # The first location element is the union tag.
        loc = ".".join(str(p) for p in error["loc"][1:])
        parts.append(f"{loc}: {error['msg']}" if loc else error["msg"])
    return "; ".join(parts)


def parse_request(line: str) -> tuple[Action, Any]:
    """Decode one request line.

    Raises:
        InvalidInputError: If the line is not a well-formed request
        UnknownActionError: If the action is not part of the protocol
    """
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Invalid JSON: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise InvalidInputError("Request must be a JSON object")

    raw_action = payload.get("action")
    if not isinstance(raw_action, str):
        raise InvalidInputError("Missing action")
    try:
        action = Action(raw_action)
    except ValueError:
        raise UnknownActionError(raw_action) from None

    try:
        request = _request_adapter.validate_python(payload)
    except ValidationError as exc:
        raise InvalidInputError(_describe(exc)) from exc
    return action, request


class RequestHandler:
    """Dispatch decoded requests to a :class:`TaskService`."""

    def __init__(self, service: TaskService | None = None) -> None:
        self.service = service if service is not None else TaskService()
        self._handlers: dict[Action, Callable[[Any], Reply]] = {
            action: getattr(self, name) for action, name in _HANDLERS.items()
        }

    def handle(self, line: str) -> Reply:
        """Process one request line and return the reply envelope."""
        try:
            action, request = parse_request(line)
            logger.debug("Handling %s", action)
            return {"success": True, **self._handlers[action](request)}
        except TaskflowError as exc:
            logger.warning("Request failed (%s): %s", exc.code, exc.message)
            return {"success": False, "error": exc.message, "code": exc.code}
        except Exception:
            logger.exception("Unexpected error while handling request")
            return {"success": False, "error": "Internal error", "code": "InternalError"}

    # Tasks

    def _create(self, request: CreateRequest) -> Reply:
        task = self.service.create_task(request.data)
        return {"message": "Task created successfully", "data": task.to_wire()}

    def _get_all(self, request: GetAllRequest) -> Reply:
        tasks = self.service.list_tasks(request.user_id, status=request.status, sort=request.sort)
        return {"count": len(tasks), "data": [task.to_wire() for task in tasks]}

    def _get_by_id(self, request: TaskRequest) -> Reply:
        task = self.service.get_task(request.task_id, request.user_id)
        return {"data": task.to_wire()}

    def _update(self, request: UpdateRequest) -> Reply:
        task = self.service.update_task(request.task_id, request.data, request.user_id)
        return {"message": "Task updated successfully", "data": task.to_wire()}

    def _delete(self, request: TaskRequest) -> Reply:
        self.service.delete_task(request.task_id, request.user_id)
        return {"message": "Task deleted successfully"}

    def _toggle_favorite(self, request: TaskRequest) -> Reply:
        task = self.service.toggle_favorite(request.task_id, request.user_id)
        return {"message": "Favorite status updated", "data": task.to_wire()}

    def _favorites(self, request: UserRequest) -> Reply:
        tasks = self.service.favorites(request.user_id)
        return {"count": len(tasks), "data": [task.to_wire() for task in tasks]}

    def _search(self, request: SearchRequest) -> Reply:
        tasks = self.service.search(request.user_id, request.title)
        return {"count": len(tasks), "data": [task.to_wire() for task in tasks]}

    def _status_stats(self, request: UserRequest) -> Reply:
        return {"data": self.service.status_stats(request.user_id).to_wire()}

    def _stats(self, request: UserRequest) -> Reply:
        return {"data": self.service.stats(request.user_id).to_wire()}

    def _week_stats(self, request: UserRequest) -> Reply:
        return {"data": [day.to_wire() for day in self.service.week_stats(request.user_id)]}

    def _clear_tasks(self, request: UserRequest) -> Reply:
        removed = self.service.clear_tasks(request.user_id)
        return {"message": "All tasks deleted", "deletedCount": removed}

    # Undo

    def _undo(self, request: UserRequest) -> Reply:
        operation = self.service.undo(request.user_id)
        return UndoResult(operation_type=operation.kind).to_wire()

    def _undo_status(self, request: UserRequest) -> Reply:
        return UndoStatus(has_undo=self.service.can_undo()).to_wire()

    def _undo_history(self, request: UserRequest) -> Reply:
        operation = self.service.last_operation()
        record = operation.to_record() if operation is not None else None
        return UndoHistory(last_operation=record).to_wire()

    def _clear_undo(self, request: UserRequest) -> Reply:
        self.service.clear_undo()
        return {"message": "Undo history cleared"}

    # Queue

    def _add_to_queue(self, request: TaskRequest) -> Reply:
        size = self.service.add_to_queue(request.task_id, request.user_id)
        return QueueAdded(queue_size=size).to_wire()

    def _process_next(self, request: UserRequest) -> Reply:
        task = self.service.process_next(request.user_id)
        return ProcessResult(task=task, remaining_in_queue=self.service.queue.size).to_wire()

    def _view_queue(self, request: UserRequest) -> Reply:
        queue = self.service.queue
        return QueueView(
            queue_size=queue.size,
            is_empty=queue.is_empty(),
            task_ids=self.service.queued_ids(),
        ).to_wire()

    def _queue_status(self, request: UserRequest) -> Reply:
        queue = self.service.queue
        return QueueStatus(
            queue_size=queue.size,
            is_empty=queue.is_empty(),
            has_next=not queue.is_empty(),
        ).to_wire()

    def _peek_queue(self, request: UserRequest) -> Reply:
        return {"data": self.service.peek_next().to_wire()}

    def _clear_queue(self, request: UserRequest) -> Reply:
        self.service.clear_queue()
        return {"message": "Queue cleared"}


_HANDLERS: dict[Action, str] = {
    Action.CREATE: "_create",
    Action.GET_ALL: "_get_all",
    Action.GET_BY_ID: "_get_by_id",
    Action.UPDATE: "_update",
    Action.DELETE: "_delete",
    Action.UNDO: "_undo",
    Action.UNDO_STATUS: "_undo_status",
    Action.UNDO_HISTORY: "_undo_history",
    Action.ADD_TO_QUEUE: "_add_to_queue",
    Action.PROCESS_NEXT: "_process_next",
    Action.VIEW_QUEUE: "_view_queue",
    Action.QUEUE_STATUS: "_queue_status",
    Action.TOGGLE_FAVORITE: "_toggle_favorite",
    Action.FAVORITES: "_favorites",
    Action.SEARCH: "_search",
    Action.STATUS_STATS: "_status_stats",
    Action.CLEAR_TASKS: "_clear_tasks",
    Action.PEEK_QUEUE: "_peek_queue",
    Action.CLEAR_QUEUE: "_clear_queue",
    Action.CLEAR_UNDO: "_clear_undo",
    Action.STATS: "_stats",
    Action.WEEK_STATS: "_week_stats",
}

_missing = set(Action) - _HANDLERS.keys()
if _missing:
    raise RuntimeError(f"No handler for actions: {sorted(_missing)}")


def serve(input_stream: TextIO, output_stream: TextIO, handler: RequestHandler | None = None) -> None:
    """Answer requests from ``input_stream`` until EOF, one reply line each."""
    handler = handler if handler is not None else RequestHandler()
    for line in input_stream:
        line = line.strip()
        if not line:
            continue
        reply = handler.handle(line)
        output_stream.write(json.dumps(reply) + "\n")
        output_stream.flush()
