"""
Database configuration and connection management.
"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from dispatch_portal.config.logging import get_logger
from dispatch_portal.config.settings import settings

logger = get_logger(__name__)

_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """Get database URL from settings."""
    return str(settings.DATABASE_URL)


def create_engine(database_url: str = None) -> AsyncEngine:
    """Create async SQLAlchemy engine."""
    url = database_url or get_database_url()

    if url.startswith("sqlite"):
        return create_async_engine(url, echo=settings.DATABASE_ECHO, future=True)

    if settings.ENVIRONMENT == "test":
        return create_async_engine(
            url, echo=settings.DATABASE_ECHO, poolclass=NullPool, future=True
        )

    return create_async_engine(
        url,
        echo=settings.DATABASE_ECHO,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        future=True,
    )


def get_async_session_factory(
    database_url: str = None,
) -> async_sessionmaker[AsyncSession]:
    """Get async session factory."""
    engine = create_engine(database_url)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating it on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = get_async_session_factory()
        logger.info("Database session factory created")
    return _session_factory


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session."""
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
