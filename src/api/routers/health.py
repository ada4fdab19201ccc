"""Health check endpoints for liveness and readiness probes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.schemas.common import HealthResponse, ServiceStatus

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Liveness check endpoint (always returns 200 OK).

    Returns immediately without checking dependencies.
    """
    logger.debug("health_check: status=ok")
    return HealthResponse(status="ok", version=API_VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """
    Readiness check endpoint with database status.

    Returns 503 if the database does not answer ``SELECT 1``.
    """
    database_error: Optional[str] = None
    try:
        await db.execute(text("SELECT 1"))
        logger.info("readiness_check: database=connected")
    except Exception as e:
        logger.warning(f"readiness_check: database=error, error={str(e)}")
        database_error = str(e)

    if database_error is not None:
        logger.error("readiness_check: status=error, reason=database_down")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service unavailable",
        )

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        services={"database": ServiceStatus(status="connected")},
    )
