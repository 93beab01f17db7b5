from taskboard.exceptions import AlreadyExistsError
from taskboard.schemas.user import User
from taskboard.services.entity_store import CollectionStore, new_id, utcnow
from taskboard.services.storage import UNCHANGED


class UserDirectory(CollectionStore[User]):
    key = "users"
    model = User

    async def find_by_email(self, email: str) -> User | None:
        return next((u for u in await self.get_all() if u.email == email), None)

    async def find_by_id(self, user_id: str) -> User | None:
        return await self.get_by_id(user_id)

    async def create(self, email: str, password_hash: str, name: str) -> User:
        """Insert a user; the email check and the insert happen under one lock."""
        user = User(
            id=new_id(),
            email=email,
            password_hash=password_hash,
            name=name,
            created_at=utcnow(),
        )

        def insert(raw):
            users, invalid = self._load(raw)
            if any(u.email == email for u in users):
                raise AlreadyExistsError("User already exists")
            users.append(user)
            return self._encode(users, invalid), user

        return await self.store.mutate(self.key, insert)

    async def delete(self, user_id: str) -> bool:
        def remove(raw):
            users, invalid = self._load(raw)
            kept = [u for u in users if u.id != user_id]
            if len(kept) == len(users):
                return UNCHANGED, False
            return self._encode(kept, invalid), True

        return await self.store.mutate(self.key, remove)
