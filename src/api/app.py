"""FastAPI application factory with async lifespan management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from src.db.engine import get_engine
from src.settings import Settings, load_settings

logger = logging.getLogger(__name__)

API_TITLE = "AGIT Learning Platform API"
API_VERSION = "0.1.0"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage FastAPI application lifespan (startup and shutdown).

    Handles initialization and cleanup of:
    - Database engine (if database_url is configured)
    - Shared httpx client for the identity provider

    Resources are stored in app.state for access by routes and dependencies.
    """
    settings = load_settings()
    app.state.settings = settings
    logger.info("app_startup: initializing resources")

    if not settings.identity_jwt_secret:
        logger.warning(
            "identity_jwt_secret_missing: bearer credentials will be rejected until "
            "IDENTITY_JWT_SECRET is set"
        )

    engine: Optional[AsyncEngine] = None
    if settings.database_url:
        try:
            engine = await get_engine(
                database_url=settings.database_url,
                pool_size=settings.database_pool_size,
                pool_overflow=settings.database_pool_overflow,
            )
            app.state.engine = engine
            logger.info("db_engine_initialized: url=postgresql+asyncpg://...")
        except Exception as e:
            logger.exception(f"db_engine_init_error: error={str(e)}")
            app.state.engine = None
    else:
        app.state.engine = None
        logger.info("db_engine_skipped: database_url not configured")

    http_client = httpx.AsyncClient(timeout=settings.identity_timeout_seconds)
    app.state.http_client = http_client

    logger.info("app_startup_complete: resources initialized")
    yield

    logger.info("app_shutdown: cleaning up resources")

    await http_client.aclose()

    if engine is not None:
        try:
            await engine.dispose()
            logger.info("db_engine_disposed: connection pool closed")
        except Exception as e:
            logger.warning(f"db_engine_dispose_error: error={str(e)}")

    logger.info("app_shutdown_complete: all resources cleaned up")


def create_app() -> FastAPI:
    """Create and configure FastAPI application instance.

    Returns:
        Configured FastAPI application with lifespan, CORS, routes, and middleware.
    """
    settings = load_settings()
    configure_logging(settings)

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description="Workspaces, courses and task pipelines for project-based learning",
        lifespan=lifespan,
    )

    # Starlette executes middleware in LIFO order (last registered = first to run).
    # Execution order: CORS -> ErrorHandler -> RequestID -> RequestLogging
    from src.api.middleware import (
        RequestIdMiddleware,
        RequestLoggingMiddleware,
        configure_cors,
        register_error_handlers,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    register_error_handlers(app)
    configure_cors(app, settings)

    from src.api.routers import (
        auth_router,
        comments_router,
        courses_router,
        health_router,
        invites_router,
        prompts_router,
        tasks_router,
        teams_router,
        users_router,
        workspaces_router,
    )

    # Health checks (no prefix, paths start with /health and /ready)
    app.include_router(health_router, tags=["health"])

    # Every other router carries its /v1 prefix in its definition
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(invites_router)
    app.include_router(workspaces_router)
    app.include_router(courses_router)
    app.include_router(teams_router)
    app.include_router(tasks_router)
    app.include_router(comments_router)
    app.include_router(prompts_router)

    logger.info(
        f"app_created: title={API_TITLE}, version={API_VERSION}, routers=10, "
        "middleware=cors,error_handler,request_id,request_logging"
    )
    return app
