from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from taskboard.config import Settings


Base = declarative_base()


def _lock_sqlite_on_begin(engine: AsyncEngine) -> None:
    # SQLite ignores FOR UPDATE; take the write lock when the transaction starts
    @event.listens_for(engine.sync_engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(settings: Settings) -> AsyncEngine:
    # DATABASE_URL is already normalised to an async driver by Settings
    engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    if engine.dialect.name == "sqlite":
        _lock_sqlite_on_begin(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
