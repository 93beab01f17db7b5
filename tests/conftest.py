import httpx
import pytest

from taskboard.config import Settings
from taskboard.main import create_app
from taskboard.services.auth import CredentialService
from taskboard.services.projects import ProjectStore
from taskboard.services.storage import FileKeyValueStore
from taskboard.services.tasks import TaskStore
from taskboard.services.users import UserDirectory

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATA_DIR=str(tmp_path / "data"),
        SECRET_KEY=TEST_SECRET,
        BCRYPT_ROUNDS=4,
        ERROR_LOG_FILE=None,
        CORS_ORIGINS="",
    )


@pytest.fixture
def store(settings):
    return FileKeyValueStore(settings.data_path)


@pytest.fixture
def users(store):
    return UserDirectory(store)


@pytest.fixture
def projects(store):
    return ProjectStore(store)


@pytest.fixture
def tasks(store):
    return TaskStore(store)


@pytest.fixture
def auth(users, projects, tasks, settings):
    return CredentialService(users, settings, owned_stores=(projects, tasks))


@pytest.fixture
def app(settings):
    return create_app(settings)


def make_client(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


@pytest.fixture
def client_factory():
    return make_client


@pytest.fixture
async def client(app):
    async with make_client(app) as c:
        yield c


@pytest.fixture
async def other_client(app):
    async with make_client(app) as c:
        yield c


@pytest.fixture
def signup_user():
    async def _signup(client, email="a@x.com", password="secret1", name="A"):
        response = await client.post(
            "/api/auth/signup", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _signup
