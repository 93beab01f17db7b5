from fastapi import APIRouter, Depends, Query, status

from taskboard.config import Settings
from taskboard.dependencies import ensure_owned, get_app_settings, get_current_user, get_task_store
from taskboard.exceptions import NotFoundError
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.task import (
    TaskCreate,
    TaskListResponse,
    TaskPriority,
    TaskResponse,
    TaskStatsResponse,
    TaskStatus,
    TaskUpdate,
)
from taskboard.schemas.user import PublicUser
from taskboard.services.tasks import TaskStore

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = None,
    project_id: str | None = Query(None, alias="projectId"),
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"tasks": await tasks.filter(current_user.id, status_filter, priority, project_id)}


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"task": await tasks.create(task_data, current_user.id)}


@router.get("/stats", response_model=TaskStatsResponse)
async def task_stats(
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
):
    return {"stats": await tasks.get_stats(current_user.id)}


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
    settings: Settings = Depends(get_app_settings),
):
    task = ensure_owned(await tasks.get_by_id(task_id), current_user, settings, "Task")
    return {"task": task}


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    update_data: TaskUpdate,
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
    settings: Settings = Depends(get_app_settings),
):
    ensure_owned(await tasks.get_by_id(task_id), current_user, settings, "Task")
    task = await tasks.update(task_id, update_data.changes(), current_user.id)
    if task is None:
        raise NotFoundError("Task not found")
    return {"task": task}


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    current_user: PublicUser = Depends(get_current_user),
    tasks: TaskStore = Depends(get_task_store),
    settings: Settings = Depends(get_app_settings),
):
    ensure_owned(await tasks.get_by_id(task_id), current_user, settings, "Task")
    if not await tasks.delete(task_id, current_user.id):
        raise NotFoundError("Task not found")
    return {"message": "Task deleted successfully"}
