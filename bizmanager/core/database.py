"""Database connectivity layer for the business manager backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as redis
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from bizmanager.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Lazily establishes the relational engine and the optional Redis client."""

    def __init__(self, url: Optional[str] = None, *, redis_url: Optional[str] = None) -> None:
        self.url = url or settings.DATABASE_URL
        self.redis_url = redis_url if redis_url is not None else (str(settings.REDIS_URL) if settings.REDIS_URL else None)
        self.engine: Optional[AsyncEngine] = None
        self.sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None
        self.redis: Optional[redis.Redis] = None

    async def initialize(self) -> None:
        """Connect to all backing services."""

        if self.engine is not None:
            return

        logger.info("Initializing database manager")

        url = make_url(self.url)
        engine_kwargs = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
        if url.get_backend_name() != "sqlite":
            engine_kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
        self.engine = create_async_engine(self.url, **engine_kwargs)

        if url.get_backend_name() == "sqlite":
            # SQLite only honours ON DELETE CASCADE with foreign keys switched on.
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self.sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False)

        if self.redis_url:
            self.redis = redis.from_url(self.redis_url, decode_responses=True)

        logger.info("Database manager initialized", extra={"backend": url.get_backend_name()})

    async def create_all(self) -> None:
        """Create every table that does not exist yet."""

        from bizmanager.storage.tables import Base

        await self.initialize()
        assert self.engine is not None
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        from bizmanager.storage.tables import Base

        await self.initialize()
        assert self.engine is not None
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; services commit, anything left open is rolled back."""

        if self.sessionmaker is None:
            await self.initialize()
        assert self.sessionmaker is not None
        async with self.sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Tear down connections gracefully."""

        logger.info("Closing database connections")

        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.sessionmaker = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Singleton instance used by the API dependencies
database_manager = DatabaseManager()
