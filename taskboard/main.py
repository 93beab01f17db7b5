import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskboard.config import DEV_SECRET_KEY, Settings, get_settings
from taskboard.exceptions import AuthenticationError, InvalidCredentialsError, TaskboardError
from taskboard.middleware import RouteGateMiddleware
from taskboard.routers.auth import router as auth_router
from taskboard.routers.projects import router as projects_router
from taskboard.routers.tasks import router as tasks_router
from taskboard.services.auth import CredentialService
from taskboard.services.projects import ProjectStore
from taskboard.services.storage import build_store
from taskboard.services.tasks import TaskStore
from taskboard.services.users import UserDirectory
from taskboard.utils.cookies import clear_session_cookie
from taskboard.utils.log_setup import setup_logging

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal server error"


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(TaskboardError)
    async def taskboard_error_handler(request: Request, exc: TaskboardError):
        message = exc.message
        if exc.status_code >= 500:
            logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
            message = GENERIC_ERROR
        response = JSONResponse(status_code=exc.status_code, content={"error": message})
        # a session cookie that no longer resolves is dropped
        if (
            isinstance(exc, AuthenticationError)
            and not isinstance(exc, InvalidCredentialsError)
            and settings.COOKIE_NAME in request.cookies
        ):
            clear_session_cookie(response, request, settings)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": describe_validation_error(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    store = build_store(settings)
    users = UserDirectory(store)
    projects = ProjectStore(store)
    tasks = TaskStore(store)
    auth_service = CredentialService(users, settings, owned_stores=(projects, tasks))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        if settings.is_production and settings.SECRET_KEY == DEV_SECRET_KEY:
            logger.warning("SECRET_KEY is the development default; set it in the environment")
        logger.info("[PROCESS %s] Serving with %s storage", os.getpid(), settings.STORAGE_BACKEND)
        yield
        await store.close()

    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        description="Personal projects and tasks behind cookie sessions",
        version=settings.PROJECT_VERSION,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.users = users
    app.state.projects = projects
    app.state.tasks = tasks
    app.state.auth_service = auth_service

    app.add_middleware(RouteGateMiddleware, settings=settings, verify_token=auth_service.verify_token)
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app, settings)

    app.include_router(auth_router, prefix=settings.API_PREFIX)
    app.include_router(projects_router, prefix=settings.API_PREFIX)
    app.include_router(tasks_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root():
        return {"message": "Taskboard API running"}

    return app


app = create_app()
