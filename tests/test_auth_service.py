from datetime import timedelta

import pytest

from taskboard.exceptions import AlreadyExistsError, InvalidCredentialsError
from taskboard.schemas.project import ProjectCreate
from taskboard.schemas.task import TaskCreate
from taskboard.utils.security import create_access_token, get_password_hash, verify_password


def flip_char(token: str, index: int) -> str:
    replacement = "A" if token[index] != "A" else "B"
    return token[:index] + replacement + token[index + 1:]


def test_password_hash_round_trip():
    hashed = get_password_hash("secret1", rounds=4)
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)


def test_password_hashes_are_salted():
    assert get_password_hash("secret1", rounds=4) != get_password_hash("secret1", rounds=4)


def test_verify_password_with_malformed_hash():
    assert verify_password("secret1", "not-a-bcrypt-hash") is False


async def test_signup_then_login_returns_same_user(auth):
    signed_up = await auth.signup("a@x.com", "secret1", "A")
    logged_in = await auth.login("a@x.com", "secret1")

    assert signed_up.token
    assert logged_in.user.id == signed_up.user.id
    assert logged_in.user.model_dump() == {"id": signed_up.user.id, "email": "a@x.com", "name": "A"}


async def test_signup_stores_hash_not_password(auth, users):
    await auth.signup("a@x.com", "secret1", "A")
    stored = await users.find_by_email("a@x.com")
    assert stored.password_hash != "secret1"
    assert auth.verify_password("secret1", stored.password_hash)


@pytest.mark.parametrize("password,name", [("secret1", "A"), ("different", "B")])
async def test_signup_duplicate_email_fails(auth, password, name):
    await auth.signup("a@x.com", "secret1", "A")
    with pytest.raises(AlreadyExistsError):
        await auth.signup("a@x.com", password, name)


async def test_login_errors_are_indistinguishable(auth):
    await auth.signup("a@x.com", "secret1", "A")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        await auth.login("a@x.com", "wrong")
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        await auth.login("nobody@x.com", "secret1")

    assert str(wrong_password.value) == str(unknown_user.value) == "Invalid credentials"


async def test_verify_token_after_signup(auth):
    result = await auth.signup("a@x.com", "secret1", "A")
    assert await auth.verify_token(result.token) == result.user


@pytest.mark.parametrize("segment", [0, 1, 2])
async def test_verify_token_rejects_tampering(auth, segment):
    result = await auth.signup("a@x.com", "secret1", "A")
    parts = result.token.split(".")
    index = sum(len(p) + 1 for p in parts[:segment]) + len(parts[segment]) // 2

    assert await auth.verify_token(flip_char(result.token, index)) is None


async def test_verify_token_rejects_expired(auth, users, settings):
    await auth.signup("a@x.com", "secret1", "A")
    user = await users.find_by_email("a@x.com")
    expired = create_access_token(
        {"sub": user.id, "userId": user.id, "email": user.email},
        settings.SECRET_KEY,
        settings.ALGORITHM,
        timedelta(seconds=-10),
    )
    assert await auth.verify_token(expired) is None


async def test_verify_token_rejects_other_secret(auth, users, settings):
    await auth.signup("a@x.com", "secret1", "A")
    user = await users.find_by_email("a@x.com")
    forged = create_access_token(
        {"sub": user.id, "userId": user.id, "email": user.email},
        "some-other-secret-of-reasonable-length",
        settings.ALGORITHM,
        timedelta(minutes=5),
    )
    assert await auth.verify_token(forged) is None


@pytest.mark.parametrize("token", ["", None, "garbage", "a.b.c"])
async def test_verify_token_never_raises_on_junk(auth, token):
    assert await auth.verify_token(token) is None


async def test_verify_token_rejects_missing_claims(auth, settings):
    token = create_access_token({"sub": "x"}, settings.SECRET_KEY, settings.ALGORITHM, timedelta(minutes=5))
    assert await auth.verify_token(token) is None


async def test_verify_token_for_deleted_user(auth, users):
    result = await auth.signup("a@x.com", "secret1", "A")
    await users.delete(result.user.id)
    assert await auth.verify_token(result.token) is None


async def test_logout_does_not_revoke_token(auth):
    # logout only clears the cookie; the token itself stays valid until expiry
    result = await auth.signup("a@x.com", "secret1", "A")
    assert await auth.verify_token(result.token) is not None


async def test_delete_account_removes_owned_data(auth, projects, tasks):
    owner = (await auth.signup("a@x.com", "secret1", "A")).user
    other = (await auth.signup("b@x.com", "secret1", "B")).user
    await projects.create(ProjectCreate(name="P"), owner.id)
    await tasks.create(TaskCreate(title="T", description="D"), owner.id)
    kept = await tasks.create(TaskCreate(title="T2", description="D2"), other.id)

    assert await auth.delete_account(owner.id) is True
    assert await projects.get_by_user_id(owner.id) == []
    assert await tasks.get_all() == [kept]
    assert await auth.delete_account(owner.id) is False
