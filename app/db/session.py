"""Async database engine and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.tables import Base
from app.utils.logging import get_logger

logger = get_logger(__name__)


class Database:
    """Owns the SQLAlchemy engine for the inventory store."""

    def __init__(self, url: str, echo: bool = False):
        """Create the engine.

        Args:
            url: SQLAlchemy async URL, e.g. sqlite+aiosqlite:///./inventory.db
            echo: Log every SQL statement
        """
        engine_kwargs = {}
        if url.startswith("sqlite") and ":memory:" in url:
            # One shared connection, otherwise every session sees a fresh empty database
            engine_kwargs = {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}

        self.url = url
        self.engine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Run a trivial query; raises if the store is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Successfully connected to the inventory store")

    async def create_tables(self) -> None:
        """Create any missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
