"""Unit tests for health check endpoints."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.routers.health import health_check, readiness_check
from src.api.schemas.common import HealthResponse


class TestHealthCheck:
    """Tests for /health endpoint."""

    @pytest.mark.asyncio
    async def test_health_check_returns_ok(self) -> None:
        """health_check should always return status ok."""
        result = await health_check()

        assert isinstance(result, HealthResponse)
        assert result.status == "ok"
        assert result.version == "0.1.0"

    @pytest.mark.asyncio
    async def test_health_endpoint_sets_request_id(self, client) -> None:
        response = await client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_generated_when_absent(self, client) -> None:
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


class TestReadinessCheck:
    """Tests for /ready endpoint."""

    @pytest.mark.asyncio
    async def test_readiness_check_database_connected(self) -> None:
        mock_db = AsyncMock(spec=AsyncSession)
        mock_db.execute = AsyncMock()

        result = await readiness_check(db=mock_db)

        assert result.status == "ok"
        assert result.services["database"].status == "connected"
        mock_db.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ready_endpoint_reports_database_down(self, client, db_session) -> None:
        db_session.execute.side_effect = ConnectionError("connection refused")

        response = await client.get("/ready")

        assert response.status_code == 503
