from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import Identity, require_identity
from ..errors import NotFoundError
from ..models import TaskStatus
from ..repositories import MAX_TASKS, TaskQuery, TaskRepository, get_task_repository
from ..schemas import OkResponse, TaskCreate, TaskEnvelope, TaskListEnvelope, TaskOut, TaskUpdate

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={401: {"description": "Not authenticated"}},
)

_STATUS_VALUES = {s.value for s in TaskStatus}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListEnvelope,
    summary="List tasks",
    description=(
        "List the logged-in user's tasks, newest first.\n\n"
        "Query parameters:\n"
        "- q: case-insensitive substring of the title\n"
        "- status: one of todo, in_progress, done (other values are ignored)\n\n"
        f"At most {MAX_TASKS} tasks are returned. This is a hard ceiling, not a page "
        "size: there is no way to fetch the tasks beyond it."
    ),
)
def list_tasks(
    q: Optional[str] = Query(None, description="Search text for the title"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    identity: Identity = Depends(require_identity),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskListEnvelope:
    search = q.strip() if q else None
    wanted = status_filter.strip() if status_filter else None
    query = TaskQuery(
        title_contains=search or None,
        status=wanted if wanted in _STATUS_VALUES else None,
    )
    items = tasks.list(identity.user_id, query)
    return TaskListEnvelope(tasks=[TaskOut(**it) for it in items])  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create task",
    description="Create a task owned by the logged-in user.",
    responses={
        201: {"description": "Task created"},
        400: {"description": "Validation error"},
    },
)
def create_task(
    payload: TaskCreate,
    identity: Identity = Depends(require_identity),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskEnvelope:
    created = tasks.create(identity.user_id, payload)
    return TaskEnvelope(task=TaskOut(**created))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Get task",
    description="Get one of the logged-in user's tasks by id.",
    responses={404: {"description": "Task not found"}},
)
def get_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskEnvelope:
    item = tasks.get(task_id, identity.user_id)
    if item is None:
        raise NotFoundError("Task not found")
    return TaskEnvelope(task=TaskOut(**item))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Update task",
    description="Partially update title, description or status. Omitted and null fields are left unchanged.",
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Validation error"},
        404: {"description": "Task not found"},
    },
)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    identity: Identity = Depends(require_identity),
    tasks: TaskRepository = Depends(get_task_repository),
) -> TaskEnvelope:
    """
    Update a task. A task owned by someone else reads as not found.
    """
    updated = tasks.update(task_id, identity.user_id, payload)
    if updated is None:
        raise NotFoundError("Task not found")
    return TaskEnvelope(task=TaskOut(**updated))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=OkResponse,
    summary="Delete task",
    description="Delete one of the logged-in user's tasks.",
    responses={
        200: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    tasks: TaskRepository = Depends(get_task_repository),
) -> OkResponse:
    if not tasks.delete(task_id, identity.user_id):
        raise NotFoundError("Task not found")
    return OkResponse()
