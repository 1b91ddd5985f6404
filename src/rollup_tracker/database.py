"""Database engine and session management for the metadata store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from functools import lru_cache, partial
from pathlib import Path
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from rollup_tracker.config import get_settings
from rollup_tracker.models import Base

DEFAULT_POOL_SIZE = 5
DEFAULT_MAX_OVERFLOW = 10
SQLITE_BUSY_TIMEOUT_SECONDS = 30

SessionScopeFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


def _is_sqlite_url(database_url: str) -> bool:
    return make_url(database_url).get_backend_name() == "sqlite"


def _ensure_sqlite_database_file(database_url: str) -> None:
    parsed_url = make_url(database_url)
    if parsed_url.get_backend_name() != "sqlite":
        return

    database_path = parsed_url.database
    if database_path is None or database_path in {":memory:", ""}:
        return
    if database_path.startswith("file:"):
        return

    resolved_path = Path(database_path)
    if not resolved_path.is_absolute():
        resolved_path = Path.cwd() / resolved_path

    resolved_path.parent.mkdir(parents=True, exist_ok=True)
    resolved_path.touch(exist_ok=True)


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine; SQLite files are created and switched to WAL."""

    connect_args: dict[str, int] = {}
    is_sqlite = _is_sqlite_url(database_url)
    if is_sqlite:
        _ensure_sqlite_database_file(database_url)
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS

    engine = create_async_engine(
        database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_pre_ping=True,
        pool_size=DEFAULT_POOL_SIZE,
        max_overflow=DEFAULT_MAX_OVERFLOW,
        connect_args=connect_args,
    )

    if is_sqlite:

        @event.listens_for(engine.sync_engine, "connect")
        def apply_wal_journal_mode(dbapi_connection: Any, _: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.close()

    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


@asynccontextmanager
async def _transaction(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    session = session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def build_session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> SessionScopeFactory:
    """Return a callable opening one committed-or-rolled-back transaction."""

    return partial(_transaction, session_factory)


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Return the engine configured by ``DATABASE_URL``, built on first use."""

    return build_engine(get_settings().DATABASE_URL)


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return build_session_factory(get_engine())


def session_scope() -> AbstractAsyncContextManager[AsyncSession]:
    """Open a transaction on the configured database."""

    return _transaction(get_session_factory())


async def initialize_database() -> None:
    """Create the metadata table and verify SQLite WAL mode when applicable."""

    engine = get_engine()
    await create_schema(engine)
    if not _is_sqlite_url(str(engine.url)):
        return

    async with engine.connect() as connection:
        wal_mode = (await connection.execute(text("PRAGMA journal_mode;"))).scalar_one()
    if str(wal_mode).lower() != "wal":
        raise RuntimeError(f"SQLite WAL mode was not enabled. Current mode: {wal_mode}")


async def close_database() -> None:
    """Dispose the configured engine so the next use rebuilds it from settings."""

    if get_engine.cache_info().currsize:
        await get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


__all__ = [
    "SessionScopeFactory",
    "build_engine",
    "build_session_factory",
    "build_session_scope",
    "close_database",
    "create_schema",
    "get_engine",
    "get_session_factory",
    "initialize_database",
    "session_scope",
]
