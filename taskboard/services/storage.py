"""
Key/value persistence for the whole-collection blobs ("users", "projects",
"tasks").

Two backends share one contract:

- ``FileKeyValueStore`` keeps ``<DATA_DIR>/<key>.json`` per key and serialises
  writers (threads and worker processes alike) with ``fcntl.flock`` on a lock
  file inside the data directory.
- ``DatabaseKeyValueStore`` keeps one row per key in the ``kv_store`` table and
  serialises writers with ``SELECT ... FOR UPDATE``.

A missing key reads as ``None``. A blob that cannot be parsed is logged and
also reads as ``None``; it is never raised to the caller.
"""
import asyncio
import fcntl
import json
import logging
import os
import re
import tempfile
from contextlib import contextmanager, suppress
from pathlib import Path
from typing import Any, Callable, TypeVar

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from taskboard.config import Settings
from taskboard.database import Base, build_engine, build_session_factory
from taskboard.exceptions import StorageError
from taskboard.models.kv_record import KeyValueRecord

logger = logging.getLogger(__name__)

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$")
LOCK_FILE_NAME = ".store.lock"
MAX_INSERT_RETRIES = 3

# Returned by a mutator in place of a new value to skip the write
UNCHANGED = object()

R = TypeVar("R")
Mutator = Callable[[Any], tuple[Any, R]]


def check_key(key: str) -> str:
    if not isinstance(key, str) or not KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


def decode_blob(key: str, raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise StorageError(f"Value stored under {key!r} is not valid JSON: {exc}") from exc


def encode_blob(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class KeyValueStore:
    """Async get/set/remove/clear over named JSON blobs."""

    async def get(self, key: str) -> Any:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def remove(self, key: str) -> None:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError

    async def mutate(self, key: str, fn: Mutator[R]) -> R:
        """
        Atomic read-modify-write.

        ``fn`` receives the current value (``None`` when absent or unreadable)
        and returns ``(new_value, result)``. ``new_value`` is written back
        unless it is ``UNCHANGED``; ``result`` is returned to the caller.
        Exceptions raised by ``fn`` abort the write and propagate.
        """
        raise NotImplementedError

    async def close(self) -> None:
        return None


class FileKeyValueStore(KeyValueStore):
    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{check_key(key)}.json"

    @contextmanager
    def _locked(self, exclusive: bool):
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.directory / LOCK_FILE_NAME, "a") as lock_fd:
            fcntl.flock(lock_fd, fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)
            try:
                yield
            finally:
                fcntl.flock(lock_fd, fcntl.LOCK_UN)

    def _load(self, key: str) -> Any:
        path = self._path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Could not read {path}: {exc}") from exc
        return decode_blob(key, raw)

    def _load_or_empty(self, key: str) -> Any:
        try:
            return self._load(key)
        except StorageError as exc:
            logger.warning("Treating key %r as empty: %s", key, exc)
            return None

    def _dump(self, key: str, value: Any) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(encode_blob(value))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            with suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    def _get_sync(self, key: str) -> Any:
        with self._locked(exclusive=False):
            return self._load_or_empty(key)

    def _set_sync(self, key: str, value: Any) -> None:
        with self._locked(exclusive=True):
            self._dump(key, value)

    def _remove_sync(self, key: str) -> None:
        with self._locked(exclusive=True):
            self._path(key).unlink(missing_ok=True)

    def _clear_sync(self) -> None:
        with self._locked(exclusive=True):
            for path in self.directory.glob("*.json"):
                path.unlink(missing_ok=True)

    def _mutate_sync(self, key: str, fn: Mutator[R]) -> R:
        with self._locked(exclusive=True):
            new_value, result = fn(self._load_or_empty(key))
            if new_value is not UNCHANGED:
                self._dump(key, new_value)
            return result

    async def get(self, key: str) -> Any:
        check_key(key)
        return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: str, value: Any) -> None:
        check_key(key)
        await asyncio.to_thread(self._set_sync, key, value)

    async def remove(self, key: str) -> None:
        check_key(key)
        await asyncio.to_thread(self._remove_sync, key)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)

    async def mutate(self, key: str, fn: Mutator[R]) -> R:
        check_key(key)
        return await asyncio.to_thread(self._mutate_sync, key, fn)


class DatabaseKeyValueStore(KeyValueStore):
    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session_factory = build_session_factory(engine)
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if not self._schema_ready:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                self._schema_ready = True

    @staticmethod
    def _decode_or_empty(key: str, raw: str | None) -> Any:
        if raw is None:
            return None
        try:
            return decode_blob(key, raw)
        except StorageError as exc:
            logger.warning("Treating key %r as empty: %s", key, exc)
            return None

    async def get(self, key: str) -> Any:
        check_key(key)
        await self._ensure_schema()
        async with self._session_factory() as db:
            record = await db.get(KeyValueRecord, key)
            return self._decode_or_empty(key, record.value if record else None)

    async def set(self, key: str, value: Any) -> None:
        await self.mutate(key, lambda _current: (value, None))

    async def remove(self, key: str) -> None:
        check_key(key)
        await self._ensure_schema()
        async with self._session_factory() as db:
            await db.execute(delete(KeyValueRecord).where(KeyValueRecord.key == key))
            await db.commit()

    async def clear(self) -> None:
        await self._ensure_schema()
        async with self._session_factory() as db:
            await db.execute(delete(KeyValueRecord))
            await db.commit()

    async def mutate(self, key: str, fn: Mutator[R]) -> R:
        check_key(key)
        await self._ensure_schema()
        for attempt in range(1, MAX_INSERT_RETRIES + 1):
            async with self._session_factory() as db:
                try:
                    async with db.begin():
                        record = await db.get(KeyValueRecord, key, with_for_update=True)
                        current = self._decode_or_empty(key, record.value if record else None)
                        new_value, result = fn(current)
                        if new_value is not UNCHANGED:
                            if record is None:
                                db.add(KeyValueRecord(key=key, value=encode_blob(new_value)))
                            else:
                                record.value = encode_blob(new_value)
                    return result
                except IntegrityError:
                    # Another writer inserted the same key first
                    logger.info("Concurrent insert on key %r, retrying (%d/%d)", key, attempt, MAX_INSERT_RETRIES)
        raise StorageError(f"Could not write key {key!r} after {MAX_INSERT_RETRIES} attempts")

    async def close(self) -> None:
        await self.engine.dispose()


def build_store(settings: Settings) -> KeyValueStore:
    if settings.STORAGE_BACKEND == "database":
        return DatabaseKeyValueStore(build_engine(settings))
    return FileKeyValueStore(settings.data_path)
