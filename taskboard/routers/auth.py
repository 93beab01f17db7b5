import logging

from email_validator import EmailNotValidError, validate_email
from fastapi import APIRouter, Depends, Request, Response, status

from taskboard.config import Settings
from taskboard.dependencies import get_app_settings, get_auth_service, get_current_user
from taskboard.exceptions import ValidationError
from taskboard.schemas.common import MessageResponse
from taskboard.schemas.user import LoginRequest, PublicUser, SignupRequest, UserResponse
from taskboard.services.auth import CredentialService
from taskboard.utils.cookies import clear_session_cookie, set_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt limit


def check_signup(payload: SignupRequest) -> None:
    if not payload.email or not payload.password or not payload.name:
        raise ValidationError("Email, password, and name are required")
    if len(payload.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(payload.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    try:
        validate_email(payload.email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email address") from None


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    auth: CredentialService = Depends(get_auth_service),
):
    check_signup(payload)
    result = await auth.signup(payload.email, payload.password, payload.name)
    set_session_cookie(response, request, settings, result.token)
    return {"message": "User created successfully", "user": result.user}


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    auth: CredentialService = Depends(get_auth_service),
):
    if not payload.email or not payload.password:
        raise ValidationError("Email and password are required")
    result = await auth.login(payload.email, payload.password)
    set_session_cookie(response, request, settings, result.token)
    return {"message": "Login successful", "user": result.user}


@router.get("/me", response_model=UserResponse, response_model_exclude_none=True)
async def get_me(current_user: PublicUser = Depends(get_current_user)):
    return {"user": current_user}


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response, settings: Settings = Depends(get_app_settings)):
    clear_session_cookie(response, request, settings)
    return {"message": "Logged out successfully"}


@router.delete("/me", response_model=MessageResponse)
async def delete_me(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    auth: CredentialService = Depends(get_auth_service),
    current_user: PublicUser = Depends(get_current_user),
):
    await auth.delete_account(current_user.id)
    clear_session_cookie(response, request, settings)
    logger.info("Deleted account %s", current_user.id)
    return {"message": "Account deleted successfully"}
