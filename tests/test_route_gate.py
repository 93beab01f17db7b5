import httpx
import pytest
from fastapi import FastAPI, Request

from taskboard.middleware import (
    GateAction,
    GateDecision,
    RouteClass,
    RouteGateMiddleware,
    classify,
    decide,
)


@pytest.mark.parametrize(
    "route,token_present,authenticated,expected",
    [
        (RouteClass.PROTECTED, False, False, GateDecision(GateAction.REDIRECT_LOGIN)),
        (RouteClass.AUTH_ONLY, False, False, GateDecision(GateAction.PROCEED)),
        (RouteClass.PUBLIC, False, False, GateDecision(GateAction.PROCEED)),
        (RouteClass.PROTECTED, True, False, GateDecision(GateAction.REDIRECT_LOGIN, clear_cookie=True)),
        (RouteClass.AUTH_ONLY, True, False, GateDecision(GateAction.PROCEED, clear_cookie=True)),
        (RouteClass.PUBLIC, True, False, GateDecision(GateAction.PROCEED, clear_cookie=True)),
        (RouteClass.PROTECTED, True, True, GateDecision(GateAction.PROCEED)),
        (RouteClass.AUTH_ONLY, True, True, GateDecision(GateAction.REDIRECT_LANDING)),
        (RouteClass.PUBLIC, True, True, GateDecision(GateAction.PROCEED)),
    ],
)
def test_decide(route, token_present, authenticated, expected):
    assert decide(route, token_present, authenticated) == expected


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/dashboard", RouteClass.PROTECTED),
        ("/tasks/123", RouteClass.PROTECTED),
        ("/projects", RouteClass.PROTECTED),
        ("/tasksettings", RouteClass.PUBLIC),
        ("/login", RouteClass.AUTH_ONLY),
        ("/signup", RouteClass.AUTH_ONLY),
        ("/", RouteClass.PUBLIC),
        ("/about", RouteClass.PUBLIC),
    ],
)
def test_classify(settings, path, expected):
    assert classify(path, settings) == expected


@pytest.fixture
def gated_app(settings, auth):
    app = FastAPI()
    app.add_middleware(RouteGateMiddleware, settings=settings, verify_token=auth.verify_token)

    @app.get("/dashboard")
    async def dashboard(request: Request):
        return {"email": request.state.user.email}

    @app.get("/login")
    async def login_page():
        return {"page": "login"}

    @app.get("/about")
    async def about():
        return {"page": "about"}

    @app.get("/api/ping")
    async def ping():
        return {"pong": True}

    return app


@pytest.fixture
async def gate_client(gated_app):
    transport = httpx.ASGITransport(app=gated_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


async def test_protected_without_token_redirects_with_origin(gate_client):
    response = await gate_client.get("/dashboard")
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirect=%2Fdashboard"


async def test_public_and_auth_pages_without_token(gate_client):
    assert (await gate_client.get("/about")).status_code == 200
    assert (await gate_client.get("/login")).status_code == 200


async def test_api_namespace_is_not_gated(gate_client):
    gate_client.cookies.set("token", "garbage")
    response = await gate_client.get("/api/ping")
    assert response.status_code == 200
    assert "set-cookie" not in response.headers


async def test_valid_token_reaches_protected_page(gate_client, auth):
    result = await auth.signup("a@x.com", "secret1", "A")
    gate_client.cookies.set("token", result.token)

    response = await gate_client.get("/dashboard")
    assert response.status_code == 200
    assert response.json() == {"email": "a@x.com"}


async def test_valid_token_is_bounced_from_auth_pages(gate_client, auth, settings):
    result = await auth.signup("a@x.com", "secret1", "A")
    gate_client.cookies.set("token", result.token)

    response = await gate_client.get("/login")
    assert response.status_code == 307
    assert response.headers["location"] == settings.LANDING_PATH


async def test_invalid_token_on_protected_page(gate_client):
    gate_client.cookies.set("token", "not-a-jwt")

    response = await gate_client.get("/dashboard")
    assert response.status_code == 307
    assert response.headers["location"].startswith("/login")
    assert "max-age=0" in response.headers["set-cookie"].lower()


async def test_invalid_token_on_public_page_is_cleared(gate_client):
    gate_client.cookies.set("token", "not-a-jwt")

    response = await gate_client.get("/about")
    assert response.status_code == 200
    assert "max-age=0" in response.headers["set-cookie"].lower()


async def test_token_for_vanished_user_is_rejected(gate_client, auth, users):
    result = await auth.signup("a@x.com", "secret1", "A")
    await users.delete(result.user.id)
    gate_client.cookies.set("token", result.token)

    response = await gate_client.get("/dashboard")
    assert response.status_code == 307
    assert "max-age=0" in response.headers["set-cookie"].lower()


async def test_full_app_gates_pages(client):
    response = await client.get("/tasks")
    assert response.status_code == 307
    assert response.headers["location"] == "/login?redirect=%2Ftasks"

    assert (await client.get("/")).status_code == 200
