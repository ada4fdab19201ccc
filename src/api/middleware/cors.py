"""CORS configuration for FastAPI."""

import logging
from typing import TYPE_CHECKING

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from src.settings import Settings

logger = logging.getLogger(__name__)


def configure_cors(app: FastAPI, settings: "Settings") -> None:
    """
    Add CORS middleware allowing the configured frontend origins.

    The frontend sends bearer tokens, so credentials are allowed and a
    wildcard origin is dropped (browsers reject ``*`` with credentials).
    The ``Retry-After`` and ``X-Request-ID`` headers are exposed to scripts.
    """
    origins = [origin for origin in settings.cors_origins if origin != "*"]
    if len(origins) != len(settings.cors_origins):
        logger.warning("cors_wildcard_removed: wildcard origin is incompatible with credentials")

    logger.info("cors_configured: origins=%s", origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-Request-ID"],
    )
