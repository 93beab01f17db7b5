"""
Credential service: password hashing, session tokens, and the
signup / login / verify flows built on the user directory.

Tokens are HS256 JWTs carrying ``{sub, userId, email, iat, exp}``. Nothing
about a token is stored server side; a token is valid while its signature and
expiry check out and its user still exists. Logging out only clears the
client's cookie.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Sequence

from pydantic import ValidationError as PayloadError

from taskboard.config import Settings
from taskboard.exceptions import AlreadyExistsError, InvalidCredentialsError
from taskboard.schemas.user import PublicUser, TokenPayload, User
from taskboard.services.entity_store import OwnedEntityStore
from taskboard.services.users import UserDirectory
from taskboard.utils.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: PublicUser


class CredentialService:
    def __init__(self, users: UserDirectory, settings: Settings, owned_stores: Sequence[OwnedEntityStore] = ()):
        self.users = users
        self.settings = settings
        self.owned_stores = tuple(owned_stores)
        self._dummy_hash: str | None = None

    def hash_password(self, password: str) -> str:
        return get_password_hash(password, rounds=self.settings.BCRYPT_ROUNDS)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return verify_password(password, password_hash)

    def create_token(self, user: User) -> str:
        return create_access_token(
            {"sub": user.id, "userId": user.id, "email": user.email},
            self.settings.SECRET_KEY,
            self.settings.ALGORITHM,
            timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def _unknown_user_hash(self) -> str:
        # Checked against when the email is unknown so both failures cost one bcrypt verify
        if self._dummy_hash is None:
            self._dummy_hash = self.hash_password("unknown-user-placeholder")
        return self._dummy_hash

    async def signup(self, email: str, password: str, name: str) -> AuthResult:
        if await self.users.find_by_email(email) is not None:
            raise AlreadyExistsError("User already exists")

        password_hash = await asyncio.to_thread(self.hash_password, password)
        # create() repeats the email check under the store lock
        user = await self.users.create(email, password_hash, name)
        logger.info("Registered user %s", user.id)
        return AuthResult(token=self.create_token(user), user=user.to_public())

    async def login(self, email: str, password: str) -> AuthResult:
        user = await self.users.find_by_email(email)
        password_hash = user.password_hash if user else await asyncio.to_thread(self._unknown_user_hash)
        valid = await asyncio.to_thread(self.verify_password, password, password_hash)
        if user is None or not valid:
            logger.info("Rejected login attempt")
            raise InvalidCredentialsError()

        logger.info("User %s logged in", user.id)
        return AuthResult(token=self.create_token(user), user=user.to_public())

    async def verify_token(self, token: str | None) -> PublicUser | None:
        if not token:
            return None
        payload = decode_access_token(token, self.settings.SECRET_KEY, self.settings.ALGORITHM)
        if payload is None:
            logger.debug("Token failed signature or expiry check")
            return None
        try:
            claims = TokenPayload.model_validate(payload)
        except PayloadError:
            logger.debug("Token carries malformed claims")
            return None

        user = await self.users.find_by_id(claims.user_id)
        if user is None:
            logger.debug("Token refers to missing user %s", claims.user_id)
            return None
        return user.to_public()

    async def delete_account(self, user_id: str) -> bool:
        """Remove a user along with every entity they own."""
        for store in self.owned_stores:
            removed = await store.delete_by_user_id(user_id)
            logger.info("Removed %d %s for user %s", removed, store.key, user_id)
        return await self.users.delete(user_id)
