"""Async database engine and session factory."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


async def get_engine(
    database_url: str,
    pool_size: int = 5,
    pool_overflow: int = 10,
) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Args:
        database_url: PostgreSQL connection URL (postgresql+asyncpg://...).
        pool_size: Connection pool size.
        pool_overflow: Max overflow connections beyond pool_size.

    Returns:
        Configured async engine instance.
    """
    return create_async_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=pool_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory bound to ``engine``.

    ``expire_on_commit`` is disabled so response models can be built from ORM
    rows after the service layer has committed.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def get_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per unit of work; the session is closed on exit.

    Args:
        engine: SQLAlchemy async engine.

    Yields:
        AsyncSession instance.
    """
    async with get_session_factory(engine)() as session:
        yield session
