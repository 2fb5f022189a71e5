"""Async engine / session wiring and the FastAPI session dependency."""

from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from app.core.errors import ConfigurationError
from app.models import Base


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine with dialect-aware pooling.

    SQLite files get a fresh connection per checkout so that the concurrent
    stats views never share one aiosqlite connection. An in-memory SQLite
    database has to be shared, hence StaticPool.
    """
    url = make_url(database_url)
    kwargs: dict = {}
    if url.get_backend_name() == "sqlite":
        if (url.database or "") in ("", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            kwargs["poolclass"] = NullPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **kwargs)


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise ConfigurationError("storage is not configured")
    return session_factory


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a session for one request; commit on success, roll back on error."""
    session_factory = get_session_factory(request)
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
