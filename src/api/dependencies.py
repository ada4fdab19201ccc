"""FastAPI dependency injection for database, settings, and external collaborators."""

import logging
from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import IdentityProvider, SupabaseIdentityProvider
from src.db.engine import get_session
from src.providers import PydanticAITextGenerator, TextGenerator
from src.settings import Settings, load_settings

logger = logging.getLogger(__name__)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Get async database session from app.state.engine.

    Yields an AsyncSession that is automatically closed after use.
    Requires app.state.engine to be initialized during lifespan.

    Args:
        request: FastAPI request object with app.state.engine.

    Yields:
        AsyncSession instance for database operations.

    Raises:
        RuntimeError: If app.state.engine is not initialized.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        logger.error("get_db_error: reason=engine_not_initialized")
        raise RuntimeError(
            "Database engine not initialized. Ensure DATABASE_URL is set and app lifespan has run."
        )

    async for session in get_session(engine):
        logger.debug("db_session_created: engine=initialized")
        yield session
        logger.debug("db_session_closed: cleanup=complete")


def get_settings(request: Request) -> Settings:
    """
    Get application settings from app.state.settings.

    Falls back to load_settings() when the lifespan has not populated
    app.state (which may raise on invalid configuration).
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        logger.warning(
            "get_settings_fallback: app.state.settings not initialized, loading directly"
        )
        settings = load_settings()
    return settings


def get_identity_provider(
    request: Request, settings: Settings = Depends(get_settings)
) -> IdentityProvider:
    """Identity provider sharing the lifespan's HTTP client when one exists."""
    client = getattr(request.app.state, "http_client", None)
    return SupabaseIdentityProvider(settings, client=client)


def get_text_generator(settings: Settings = Depends(get_settings)) -> TextGenerator:
    return PydanticAITextGenerator(settings)
