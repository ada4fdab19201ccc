"""FastAPI REST API package."""

from src.api.app import create_app, lifespan
from src.api.dependencies import (
    get_db,
    get_identity_provider,
    get_settings,
    get_text_generator,
)

__all__ = [
    "create_app",
    "lifespan",
    "get_db",
    "get_identity_provider",
    "get_settings",
    "get_text_generator",
]
