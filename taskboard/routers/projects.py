from fastapi import APIRouter, Depends, status

from taskboard.config import Settings
from taskboard.dependencies import ensure_owned, get_app_settings, get_current_user, get_project_store
from taskboard.exceptions import NotFoundError
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.project import (
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatsResponse,
    ProjectUpdate,
)
from taskboard.schemas.user import PublicUser
from taskboard.services.projects import ProjectStore

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
):
    return {"projects": await projects.get_by_user_id(current_user.id)}


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
):
    return {"project": await projects.create(project_data, current_user.id)}


@router.get("/stats", response_model=ProjectStatsResponse)
async def project_stats(
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
):
    return {"stats": await projects.get_stats(current_user.id)}


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
    settings: Settings = Depends(get_app_settings),
):
    project = ensure_owned(await projects.get_by_id(project_id), current_user, settings, "Project")
    return {"project": project}


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    update_data: ProjectUpdate,
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
    settings: Settings = Depends(get_app_settings),
):
    ensure_owned(await projects.get_by_id(project_id), current_user, settings, "Project")
    project = await projects.update(project_id, update_data.changes(), current_user.id)
    if project is None:
        # removed between the check and the write
        raise NotFoundError("Project not found")
    return {"project": project}


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: str,
    current_user: PublicUser = Depends(get_current_user),
    projects: ProjectStore = Depends(get_project_store),
    settings: Settings = Depends(get_app_settings),
):
    ensure_owned(await projects.get_by_id(project_id), current_user, settings, "Project")
    if not await projects.delete(project_id, current_user.id):
        raise NotFoundError("Project not found")
    return {"message": "Project deleted successfully"}
