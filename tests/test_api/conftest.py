"""Shared fixtures for API router tests."""

from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.app import create_app
from src.api.dependencies import (
    get_db,
    get_identity_provider,
    get_settings,
    get_text_generator,
)
from src.auth.dependencies import get_current_principal
from src.auth.identity import Principal
from src.auth.resolver import ScopedRoleResolver
from src.db.models.account import AccountORM
from src.settings import Settings


@pytest.fixture
def test_account_id() -> UUID:
    """Fixed account UUID for testing.

    Returns:
        A fixed UUID to use across tests for consistency.
    """
    return UUID("12345678-1234-5678-1234-567812345678")


@pytest.fixture
def principal(test_account_id: UUID) -> Principal:
    """Authenticated system admin used by the get_current_principal override."""
    return Principal(
        id=test_account_id,
        email="admin@example.com",
        display_name="admin",
        is_system_admin=True,
    )


@pytest.fixture
def test_account(test_account_id: UUID) -> AccountORM:
    account = MagicMock(spec=AccountORM)
    account.id = test_account_id
    account.email = "admin@example.com"
    account.real_name = "Admin"
    account.nick_name = "admin"
    account.profile_image = None
    account.phone_number = None
    account.is_system_admin = True
    account.failed_attempt_count = 0
    account.locked_until = None
    account.created_at = datetime.now(timezone.utc)
    return account


@pytest.fixture
def db_session() -> AsyncSession:
    """Mock AsyncSession for database operations.

    Returns:
        An AsyncMock configured as AsyncSession.
    """
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.execute = AsyncMock()
    mock_session.commit = AsyncMock()
    mock_session.rollback = AsyncMock()
    mock_session.close = AsyncMock()
    mock_session.add = MagicMock()
    mock_session.flush = AsyncMock()
    mock_session.refresh = AsyncMock()
    return mock_session


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        identity_url="https://project.supabase.co",
        identity_anon_key="anon-key",
        identity_jwt_secret="test-secret-key-for-jwt-testing-only-not-for-production",
    )


@pytest.fixture
def identity_provider() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def text_generator() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def resolver() -> AsyncMock:
    """Role resolver handed to every route gate in place of the database-backed one."""
    return AsyncMock(spec=ScopedRoleResolver)


@pytest.fixture
async def app(
    principal: Principal,
    db_session: AsyncSession,
    test_settings: Settings,
    identity_provider: AsyncMock,
    text_generator: AsyncMock,
    resolver: AsyncMock,
):
    """FastAPI application instance for testing.

    Creates a FastAPI app with test overrides:
    - Shared mock database session (from db_session fixture)
    - Test settings with identity provider configuration
    - Mock identity provider and text generator
    - get_current_principal returning the ``principal`` fixture
    - ScopedRoleResolver.for_session returning the ``resolver`` fixture

    Tests that exercise the real bearer check pop the principal override.

    Yields:
        Configured FastAPI application.
    """
    test_app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    async def override_get_current_principal() -> Principal:
        return principal

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_settings] = lambda: test_settings
    test_app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    test_app.dependency_overrides[get_text_generator] = lambda: text_generator
    test_app.dependency_overrides[get_current_principal] = override_get_current_principal

    with patch(
        "src.auth.dependencies.ScopedRoleResolver.for_session", return_value=resolver
    ):
        yield test_app

    test_app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient bound to the test app.

    Args:
        app: FastAPI application fixture.

    Yields:
        An AsyncClient sending a placeholder bearer credential.
    """
    transport = ASGITransport(app=app)
    headers = {"Authorization": "Bearer valid-token"}
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as ac:
        yield ac
