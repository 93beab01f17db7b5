"""
Whole-collection stores built on the key/value layer.

Every collection lives under one key as a JSON array. Reads validate each
record and skip (and log) the ones that fail; writes put those entries back
untouched. Writes go through ``KeyValueStore.mutate`` so the load-change-save
cycle for one key is never interleaved with another writer.
"""
import logging
import secrets
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PayloadError

from taskboard.services.storage import UNCHANGED, KeyValueStore

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Never taken from an update payload
IMMUTABLE_FIELDS = frozenset({"id", "user_id", "created_at", "updated_at"})


def new_id() -> str:
    """Roughly time ordered, collision-improbable id."""
    return f"{time.time_ns():x}{secrets.token_hex(4)}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime) -> datetime:
    now = utcnow()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


class CollectionStore(Generic[ModelT]):
    key: str
    model: type[BaseModel]

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._adapter = TypeAdapter(self.model)

    def _load(self, raw: Any) -> tuple[list[ModelT], list]:
        """Split a stored collection into valid records and raw entries that fail validation."""
        if raw is None:
            return [], []
        if not isinstance(raw, list):
            logger.warning("Collection %r is not a list, treating it as empty", self.key)
            return [], []
        items, invalid = [], []
        for position, entry in enumerate(raw):
            try:
                items.append(self._adapter.validate_python(entry))
            except PayloadError as exc:
                logger.warning("Skipping invalid record %d in %r: %s", position, self.key, exc)
                invalid.append(entry)
        return items, invalid

    def _decode(self, raw: Any) -> list[ModelT]:
        return self._load(raw)[0]

    @staticmethod
    def _encode(items: list[ModelT], invalid: list | None = None) -> list:
        return [item.model_dump(mode="json", by_alias=True) for item in items] + (invalid or [])

    async def get_all(self) -> list[ModelT]:
        return self._decode(await self.store.get(self.key))

    async def get_by_id(self, item_id: str) -> ModelT | None:
        return next((item for item in await self.get_all() if item.id == item_id), None)


class OwnedEntityStore(CollectionStore[ModelT]):
    """CRUD scoped to an owning user id. Mismatched owners look like missing ids."""

    def build(self, dto: BaseModel, user_id: str, now: datetime) -> ModelT:
        raise NotImplementedError

    async def get_by_user_id(self, user_id: str) -> list[ModelT]:
        return [item for item in await self.get_all() if item.user_id == user_id]

    async def create(self, dto: BaseModel, user_id: str) -> ModelT:
        entity = self.build(dto, user_id, utcnow())

        def append(raw):
            items, invalid = self._load(raw)
            items.append(entity)
            return self._encode(items, invalid), entity

        return await self.store.mutate(self.key, append)

    async def update(self, item_id: str, changes: dict[str, Any], user_id: str) -> ModelT | None:
        changes = {name: value for name, value in changes.items() if name not in IMMUTABLE_FIELDS}

        def apply(raw):
            items, invalid = self._load(raw)
            for index, item in enumerate(items):
                if item.id == item_id and item.user_id == user_id:
                    updated = item.model_copy(update={**changes, "updated_at": next_timestamp(item.updated_at)})
                    items[index] = updated
                    return self._encode(items, invalid), updated
            return UNCHANGED, None

        return await self.store.mutate(self.key, apply)

    async def delete(self, item_id: str, user_id: str) -> bool:
        def remove(raw):
            items, invalid = self._load(raw)
            kept = [item for item in items if not (item.id == item_id and item.user_id == user_id)]
            if len(kept) == len(items):
                return UNCHANGED, False
            return self._encode(kept, invalid), True

        return await self.store.mutate(self.key, remove)

    async def delete_by_user_id(self, user_id: str) -> int:
        def remove(raw):
            items, invalid = self._load(raw)
            kept = [item for item in items if item.user_id != user_id]
            removed = len(items) - len(kept)
            if not removed:
                return UNCHANGED, 0
            return self._encode(kept, invalid), removed

        return await self.store.mutate(self.key, remove)
