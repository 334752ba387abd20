"""
Async engine, session factory and the FastAPI session dependency.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings

settings = get_settings()


def enable_sqlite_foreign_keys(sync_engine: Engine) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)
if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine.sync_engine)

# expire_on_commit=False: handlers serialize ORM objects after the commit
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield one session per request.

    Services commit their own writes; anything left uncommitted when a
    request fails is rolled back here.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
