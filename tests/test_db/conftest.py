"""Fixtures for database model and repository tests (no database required)."""

from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.base import Base

# Force all models to register with Base.metadata
import src.db.models  # noqa: F401


@pytest.fixture
def all_tables() -> set[str]:
    """Get all table names from Base metadata."""
    return set(Base.metadata.tables.keys())


@pytest.fixture
def recording_session() -> AsyncSession:
    """AsyncSession mock whose execute() result answers every accessor with None."""
    session = AsyncMock(spec=AsyncSession)
    result = MagicMock()
    result.scalar_one_or_none.return_value = None
    session.execute.return_value = result
    session.add = MagicMock()
    return session


@pytest.fixture
def compile_pg() -> Callable:
    """Compile a statement for PostgreSQL, returning (sql, params)."""

    def _compile(stmt) -> tuple[str, dict]:
        compiled = stmt.compile(dialect=postgresql.dialect())
        return str(compiled), compiled.params

    return _compile
