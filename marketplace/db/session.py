# marketplace/db/session.py
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Request
from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine

from marketplace.models.base import Base


class Database:
    """Owns the async engine and its connection pool.

    Built once at startup and shared through ``app.state.db``.
    """

    def __init__(self, url: str, pool_size: int = 10, pool_timeout: int = 30, **engine_kwargs: Any):
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if not url.startswith("sqlite"):
            # bounded pool: requests beyond pool_size wait up to pool_timeout
            engine_kwargs.setdefault("pool_size", pool_size)
            engine_kwargs.setdefault("max_overflow", 0)
            engine_kwargs.setdefault("pool_timeout", pool_timeout)
            engine_kwargs.setdefault("pool_pre_ping", True)

        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=False, **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        logger.info("Closing database connection pool")
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    database: Database = request.app.state.db
    async with database.session() as session:
        yield session
