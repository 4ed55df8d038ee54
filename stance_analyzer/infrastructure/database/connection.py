"""
Database Connection Management
Async SQLAlchemy engine and session factory
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for ORM models"""


class DatabaseManager:
    """
    Owns the async engine and session factory

    Created once per process; request handlers open short-lived sessions
    through session().
    """

    def __init__(self, url: Optional[str] = None, echo: bool = False):
        """
        Initialize database manager

        Args:
            url: Async database URL (config value if not provided)
            echo: Echo SQL statements
        """
        if url is None:
            from stance_analyzer.app.config import get_db_settings

            settings = get_db_settings()
            url, echo = settings.url, settings.echo

        self.url = url
        engine_kwargs = {"echo": echo}
        if ":memory:" in url:
            # A single shared connection keeps the in-memory database alive.
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False, autoflush=False
        )

    async def create_tables(self) -> None:
        """Create all tables defined by models"""
        from stance_analyzer.infrastructure.database import models  # noqa: F401

        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)
        logger.info("✅ Database tables created successfully")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that is closed when the block exits"""
        async with self.session_factory() as session:
            yield session

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("🔌 Database connections closed")
