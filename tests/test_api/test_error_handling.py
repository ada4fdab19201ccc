"""Tests for error rendering: domain errors, validation, and unexpected crashes."""

from typing import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError

from src.api.middleware import RequestIdMiddleware, register_error_handlers
from src.exceptions import (
    AccountLockedError,
    ForbiddenError,
    GoneError,
    InvalidStateError,
    ValidationError,
)


class Payload(BaseModel):
    name: str = Field(..., min_length=2)


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(RequestIdMiddleware)

    @app.get("/locked")
    async def locked() -> None:
        raise AccountLockedError(retry_after=120)

    @app.get("/forbidden")
    async def forbidden() -> None:
        raise ForbiddenError(
            "Insufficient permissions",
            code="COURSE_ROLE_REQUIRED",
            details={"required_roles": ["Manager"]},
        )

    @app.get("/gone")
    async def gone() -> None:
        raise GoneError("Invite has no uses left", code="INVITE_EXHAUSTED")

    @app.get("/state")
    async def state() -> None:
        raise InvalidStateError("Task is not in Review", code="TASK_NOT_IN_REVIEW")

    @app.get("/fields")
    async def fields() -> None:
        raise ValidationError(
            "Product content is empty", code="PRODUCT_EMPTY", fields={"content": "x"}
        )

    @app.post("/body")
    async def body(payload: Payload) -> dict:
        return {"name": payload.name}

    @app.get("/conflict")
    async def conflict() -> None:
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))

    @app.get("/crash")
    async def crash() -> None:
        raise RuntimeError("database password is hunter2")

    return app


@pytest.fixture
async def error_client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=_build_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestDomainErrors:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_lockout_sets_retry_after(self, error_client) -> None:
        response = await error_client.get("/locked", headers={"X-Request-ID": "abc"})

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "120"
        body = response.json()
        assert body["error"] == "AUTH_005"
        assert body["details"] == {"retry_after": 120}
        assert body["request_id"] == "abc"

    @pytest.mark.asyncio
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "path,status,code",
        [
            ("/forbidden", 403, "COURSE_ROLE_REQUIRED"),
            ("/gone", 410, "INVITE_EXHAUSTED"),
            ("/state", 409, "TASK_NOT_IN_REVIEW"),
            ("/fields", 422, "PRODUCT_EMPTY"),
        ],
    )
    async def test_status_and_code(self, error_client, path, status, code) -> None:
        response = await error_client.get(path)

        assert response.status_code == status
        assert response.json()["error"] == code
        assert "Retry-After" not in response.headers

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_forbidden_lists_required_roles(self, error_client) -> None:
        response = await error_client.get("/forbidden")
        assert response.json()["details"] == {"required_roles": ["Manager"]}


class TestRequestValidation:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_field_messages(self, error_client) -> None:
        response = await error_client.post("/body", json={"name": "x"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "validation_error"
        assert "name" in body["details"]["fields"]


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_integrity_error_is_conflict(self, error_client) -> None:
        response = await error_client.get("/conflict")

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_crash_hides_details(self, error_client) -> None:
        response = await error_client.get("/crash")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_error"
        assert "hunter2" not in response.text
        assert body["request_id"] == response.headers["X-Request-ID"]
