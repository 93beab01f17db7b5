"""
Route gate for page navigation.

Runs before any handler on every path except the API namespace (which
authenticates per route) and static assets. Paths are classed as protected,
auth-only (login/signup) or public, and the session cookie decides whether the
request proceeds, is sent to the login page, or is sent to the landing page.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from taskboard.config import Settings
from taskboard.schemas.user import PublicUser
from taskboard.utils.cookies import clear_session_cookie

logger = logging.getLogger(__name__)

TokenVerifier = Callable[[str], Awaitable[PublicUser | None]]


class RouteClass(str, Enum):
    PROTECTED = "protected"
    AUTH_ONLY = "auth_only"
    PUBLIC = "public"


class GateAction(str, Enum):
    PROCEED = "proceed"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_LANDING = "redirect_landing"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    clear_cookie: bool = False


def matches_prefix(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


def classify(path: str, settings: Settings) -> RouteClass:
    if any(matches_prefix(path, route) for route in settings.PROTECTED_ROUTES):
        return RouteClass.PROTECTED
    if any(matches_prefix(path, route) for route in settings.AUTH_ROUTES):
        return RouteClass.AUTH_ONLY
    return RouteClass.PUBLIC


def decide(route: RouteClass, token_present: bool, authenticated: bool) -> GateDecision:
    if not token_present:
        if route is RouteClass.PROTECTED:
            return GateDecision(GateAction.REDIRECT_LOGIN)
        return GateDecision(GateAction.PROCEED)

    if not authenticated:
        # bad signature, expired, or the user is gone
        if route is RouteClass.PROTECTED:
            return GateDecision(GateAction.REDIRECT_LOGIN, clear_cookie=True)
        return GateDecision(GateAction.PROCEED, clear_cookie=True)

    if route is RouteClass.AUTH_ONLY:
        return GateDecision(GateAction.REDIRECT_LANDING)
    return GateDecision(GateAction.PROCEED)


class RouteGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, settings: Settings, verify_token: TokenVerifier):
        super().__init__(app)
        self.settings = settings
        self.verify_token = verify_token

    def is_exempt(self, path: str) -> bool:
        return (
            matches_prefix(path, self.settings.API_PREFIX)
            or matches_prefix(path, self.settings.STATIC_PREFIX)
            or path == "/favicon.ico"
        )

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if self.is_exempt(path):
            return await call_next(request)

        token = request.cookies.get(self.settings.COOKIE_NAME)
        user = await self.verify_token(token) if token else None
        decision = decide(classify(path, self.settings), bool(token), user is not None)

        if decision.action is GateAction.REDIRECT_LOGIN:
            query = urlencode({"redirect": path})
            response = RedirectResponse(f"{self.settings.LOGIN_PATH}?{query}", status_code=307)
        elif decision.action is GateAction.REDIRECT_LANDING:
            response = RedirectResponse(self.settings.LANDING_PATH, status_code=307)
        else:
            request.state.user = user
            response = await call_next(request)

        if decision.clear_cookie:
            logger.debug("Clearing stale session cookie on %s", path)
            clear_session_cookie(response, request, self.settings)
        return response
