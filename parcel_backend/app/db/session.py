"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support (asyncpg in production, aiosqlite locally).
"""

from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from parcel_backend.app.core.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Build driver-specific engine keyword arguments."""
    if database_url.startswith("sqlite"):
        # SQLite drivers manage their own pool; no server-side command timeout
        return {"connect_args": {"check_same_thread": False}}

    options: Dict[str, Any] = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
    }
    if "+asyncpg" in database_url:
        options["connect_args"] = {"command_timeout": settings.db_command_timeout_seconds}
    return options


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    future=True,
    **engine_options(settings.database_url),
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


def utc_now() -> datetime:
    """Timezone-aware current time used for all model timestamps."""
    return datetime.now(timezone.utc)


async def get_db():
    """
    FastAPI dependency for database sessions.

    Yields an async database session per request and ensures it's closed.
    Any transaction left open by a failed handler is rolled back on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
