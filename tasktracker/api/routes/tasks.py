"""Task routes. Every request acts as the user from ``X-Username``."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...container import get_container
from ...domain.errors import AccountNotFoundError, PermissionDeniedError, TaskNotFoundError
from ...domain.models import Task, TaskId, TaskStatus
from ...services.task_service import TaskService
from ..dependencies import current_username

router = APIRouter(prefix="/tasks", tags=["tasks"])


class TaskResponse(BaseModel):
    id: int
    title: str
    status: TaskStatus
    owner: str
    assignees: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id.value,
            title=task.title,
            status=task.status,
            owner=task.owner,
            assignees=sorted(task.assignees),
            description=task.description,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskListResponse(BaseModel):
    tasks: list[TaskResponse]
    total: int


class TaskCreateRequest(BaseModel):
    title: str = Field(min_length=1)
    status: TaskStatus = TaskStatus.TODO
    assignees: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskUpdateRequest(BaseModel):
    """Partial update.

    Only fields present in the body are changed; an explicit null clears
    ``description`` or ``due_date``.
    """

    title: Optional[str] = Field(default=None, min_length=1)
    status: Optional[TaskStatus] = None
    assignees: Optional[list[str]] = None
    owner: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None


def get_task_service() -> TaskService:
    return get_container().task_service


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    username: str = Depends(current_username),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    """List tasks the caller owns or is assigned to."""
    tasks = await service.list_tasks_for(username)
    return TaskListResponse(tasks=[TaskResponse.from_task(t) for t in tasks], total=len(tasks))


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    request: TaskCreateRequest,
    username: str = Depends(current_username),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Create a task owned by the caller. Unknown assignees are dropped."""
    created = await service.create_task(
        username,
        request.title,
        description=request.description,
        due_date=request.due_date,
        status=request.status,
        assignees=request.assignees,
    )
    return TaskResponse.from_task(created)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    username: str = Depends(current_username),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    # Tasks of other users are reported as missing.
    try:
        task = await service.get_task(TaskId(task_id))
    except TaskNotFoundError as e:
        raise HTTPException(404, str(e))

    if not task.is_participant(username):
        raise HTTPException(404, f"Task {task_id} not found")
    return TaskResponse.from_task(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    request: TaskUpdateRequest,
    username: str = Depends(current_username),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    try:
        updated = await service.update_task(
            username, TaskId(task_id), **request.model_dump(exclude_unset=True)
        )
    except TaskNotFoundError as e:
        raise HTTPException(404, str(e))
    except AccountNotFoundError as e:
        raise HTTPException(400, str(e))
    except PermissionDeniedError as e:
        raise HTTPException(403, str(e))

    return TaskResponse.from_task(updated)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: int,
    username: str = Depends(current_username),
    service: TaskService = Depends(get_task_service),
) -> None:
    """Delete a task. Only its owner may do so."""
    try:
        await service.delete_task(username, TaskId(task_id))
    except TaskNotFoundError as e:
        raise HTTPException(404, str(e))
    except PermissionDeniedError as e:
        raise HTTPException(403, str(e))
