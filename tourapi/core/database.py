"""Database engine and async session management."""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings

logger = logging.getLogger(__name__)

_database_url = settings.resolved_database_url

# Create async engine
engine = create_async_engine(
    _database_url,
    echo=False,
    pool_pre_ping=True,
    # StaticPool keeps a single connection alive for in-memory SQLite
    poolclass=StaticPool if "sqlite" in _database_url else None,
    connect_args={"check_same_thread": False} if "sqlite" in _database_url else {},
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that yields database sessions.

    Yields:
        AsyncSession: Database session
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# Alias for FastAPI dependency injection
get_db = get_async_session


async def ping_db(session: AsyncSession) -> None:
    """Round-trip a trivial statement to prove the database is reachable."""
    await session.execute(text("SELECT 1"))


async def init_db() -> None:
    """Create all tables that do not exist yet."""
    # Models register themselves on Base.metadata when imported
    from .. import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready", extra={"tables": sorted(Base.metadata.tables)})


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
