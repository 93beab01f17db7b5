"""Print how many records each collection holds in the configured store."""
import asyncio

from taskboard.config import get_settings
from taskboard.services.projects import ProjectStore
from taskboard.services.storage import build_store
from taskboard.services.tasks import TaskStore
from taskboard.services.users import UserDirectory


async def inspect_store():
    settings = get_settings()
    store = build_store(settings)
    try:
        location = settings.data_path if settings.STORAGE_BACKEND == "file" else settings.DATABASE_URL
        print(f"Storage backend: {settings.STORAGE_BACKEND} ({location})")
        for collection in (UserDirectory(store), ProjectStore(store), TaskStore(store)):
            items = await collection.get_all()
            print(f"{collection.key}: {len(items)} records")
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(inspect_store())
