"""Tests for the /v1/auth endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.auth.dependencies import get_current_principal
from src.auth.identity import SessionTokens
from src.exceptions import AccountLockedError, AuthenticationError
from src.services.accounts import GoogleLoginResult, LoginResult


class TestBearerGate:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_missing_credential_is_401(self, app, client) -> None:
        app.dependency_overrides.pop(get_current_principal)

        response = await client.get("/v1/auth/me", headers={"Authorization": ""})

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_REQUIRED"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_rejected_credential_is_401(self, app, client, identity_provider) -> None:
        app.dependency_overrides.pop(get_current_principal)
        identity_provider.verify_credential.side_effect = AuthenticationError(
            "Invalid token", code="AUTH_INVALID_TOKEN"
        )

        response = await client.get("/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_INVALID_TOKEN"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_me_returns_account(self, client, test_account) -> None:
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.get_profile = AsyncMock(return_value=test_account)
            response = await client.get("/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["email"] == "admin@example.com"
        assert response.json()["is_system_admin"] is True


class TestLogin:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_success(self, client, test_account) -> None:
        result = LoginResult(
            tokens=SessionTokens(access_token="at", refresh_token="rt", expires_in=3600),
            account=test_account,
        )
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.login = AsyncMock(return_value=result)
            response = await client.post(
                "/v1/auth/login", json={"email": "admin@example.com", "password": "pw"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"] == "at"
        assert body["token_type"] == "Bearer"
        assert body["account"]["nick_name"] == "admin"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_wrong_password(self, client) -> None:
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.login = AsyncMock(
                side_effect=AuthenticationError("Invalid email or password", code="AUTH_004")
            )
            response = await client.post(
                "/v1/auth/login", json={"email": "admin@example.com", "password": "bad"}
            )

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_004"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_locked_account_answers_429(self, client) -> None:
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.login = AsyncMock(side_effect=AccountLockedError(240))
            response = await client.post(
                "/v1/auth/login", json={"email": "admin@example.com", "password": "pw"}
            )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "240"
        assert response.json()["error"] == "AUTH_005"


class TestSignupValidation:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_short_password_rejected(self, client) -> None:
        response = await client.post(
            "/v1/auth/signup",
            json={
                "email": "new@example.com",
                "password": "short",
                "password_confirm": "short",
                "real_name": "New",
                "nick_name": "newbie",
                "terms_all_agree": True,
            },
        )

        assert response.status_code == 422
        assert "password" in response.json()["details"]["fields"]

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_created(self, client) -> None:
        account = MagicMock()
        account.id = "0f2b6a3e-8c44-4d0c-9c1a-3f4f5e6d7a8b"
        account.email = "new@example.com"
        account.real_name = "New"
        account.nick_name = "newbie"
        account.profile_image = None
        account.phone_number = None
        account.is_system_admin = False
        account.created_at = None
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.signup = AsyncMock(return_value=account)
            response = await client.post(
                "/v1/auth/signup",
                json={
                    "email": "new@example.com",
                    "password": "long-enough",
                    "password_confirm": "long-enough",
                    "real_name": "New",
                    "nick_name": "newbie",
                    "terms_all_agree": True,
                },
            )

        assert response.status_code == 201
        assert response.json()["nick_name"] == "newbie"


class TestGoogleLogin:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_new_user_is_sent_to_signup(self, client) -> None:
        result = GoogleLoginResult(google_email="new.user@gmail.com")
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.google_login = AsyncMock(return_value=result)
            response = await client.post(
                "/v1/auth/google-login", json={"google_token": "google-jwt"}
            )

        assert response.status_code == 200
        assert response.json() == {
            "is_new_user": True,
            "google_email": "new.user@gmail.com",
            "redirect_url": "/signup/complete",
        }

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_existing_account_gets_tokens(self, client, test_account) -> None:
        result = GoogleLoginResult(
            google_email="admin@example.com",
            tokens=SessionTokens(access_token="at", refresh_token="rt", expires_in=3600),
            account=test_account,
        )
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.google_login = AsyncMock(return_value=result)
            response = await client.post(
                "/v1/auth/google-login", json={"google_token": "google-jwt"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"] == "at"
        assert body["account"]["email"] == "admin@example.com"
        assert "is_new_user" not in body

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_rejected_google_token_is_401(self, client) -> None:
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.google_login = AsyncMock(
                side_effect=AuthenticationError("Google authentication failed", code="AUTH_006")
            )
            response = await client.post("/v1/auth/google-login", json={"google_token": "bad"})

        assert response.status_code == 401
        assert response.json()["error"] == "AUTH_006"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_signup_complete_creates_session(self, client, test_account) -> None:
        result = LoginResult(
            tokens=SessionTokens(access_token="at", refresh_token="rt", expires_in=3600),
            account=test_account,
        )
        with patch("src.api.routers.auth.AccountService") as service_cls:
            service_cls.return_value.google_signup_complete = AsyncMock(return_value=result)
            response = await client.post(
                "/v1/auth/google-signup-complete",
                json={
                    "google_token": "google-jwt",
                    "real_name": "Admin",
                    "nick_name": "admin",
                    "terms_all_agree": True,
                },
            )

        assert response.status_code == 201
        assert response.json()["access_token"] == "at"
        sent = service_cls.return_value.google_signup_complete.call_args.args[0]
        assert sent.google_token == "google-jwt"
        assert sent.terms_all_agree is True
