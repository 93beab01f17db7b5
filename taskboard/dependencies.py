from fastapi import Depends, Request

from taskboard.config import Settings
from taskboard.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from taskboard.schemas.user import PublicUser
from taskboard.services.auth import CredentialService
from taskboard.services.projects import ProjectStore
from taskboard.services.tasks import TaskStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> CredentialService:
    return request.app.state.auth_service


def get_project_store(request: Request) -> ProjectStore:
    return request.app.state.projects


def get_task_store(request: Request) -> TaskStore:
    return request.app.state.tasks


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    auth: CredentialService = Depends(get_auth_service),
) -> PublicUser:
    token = request.cookies.get(settings.COOKIE_NAME)
    if not token:
        raise AuthenticationError("Not authenticated")
    user = await auth.verify_token(token)
    if user is None:
        raise AuthenticationError("Invalid token")
    return user


def ensure_owned(entity, user: PublicUser, settings: Settings, label: str):
    """
    Return ``entity`` if ``user`` owns it.

    Unknown ids are always 404. Another user's entity is 404 or 403 depending
    on OWNERSHIP_MISMATCH_STATUS, applied the same way on every route.
    """
    if entity is None:
        raise NotFoundError(f"{label} not found")
    if entity.user_id != user.id:
        if settings.OWNERSHIP_MISMATCH_STATUS == 403:
            raise AuthorizationError("Unauthorized")
        raise NotFoundError(f"{label} not found")
    return entity
