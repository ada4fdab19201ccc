"""Identity Gate: bearer credential -> verified local principal.

The identity provider owns credentials. This module wraps it behind the
``IdentityProvider`` protocol and maps a verified email onto the local
``account`` row, honouring the lockout state.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol
from uuid import UUID

import httpx

from src.auth.jwt import decode_token
from src.auth.lockout import ensure_not_locked
from src.db.repositories.account_repo import AccountRepository
from src.exceptions import AuthenticationError, ConflictError, UpstreamError
from src.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    """Result of a successful credential verification."""

    email: str
    subject: Optional[str] = None


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int = 3600
    token_type: str = "Bearer"


@dataclass(frozen=True)
class FederatedSession:
    """Session issued for a third-party ID token. ``email`` may be absent."""

    tokens: SessionTokens
    email: Optional[str] = None


@dataclass(frozen=True)
class Principal:
    """Minimal authenticated caller attached to a request."""

    id: UUID
    email: str
    display_name: str
    is_system_admin: bool = False


class IdentityProvider(Protocol):
    """External issuer of bearer credentials."""

    async def verify_credential(self, token: str) -> VerifiedIdentity: ...

    async def authenticate_with_password(self, email: str, password: str) -> SessionTokens: ...

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> None: ...

    async def sign_in_with_id_token(
        self, id_token: str, provider: str = "google"
    ) -> FederatedSession: ...

    async def request_password_reset(
        self, email: str, redirect_to: Optional[str] = None
    ) -> None: ...


class SupabaseIdentityProvider:
    """Identity provider backed by Supabase GoTrue.

    Access tokens are HS256 JWTs signed with the project's secret, so they are
    verified locally with python-jose. Password, ID-token, sign-up and recovery calls go
    to the GoTrue REST API.

    Args:
        settings: Application settings with ``identity_*`` fields.
        client: Optional shared httpx client (one is created per call otherwise).
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> None:
        self._settings = settings
        self._client = client

    def _endpoint(self, path: str) -> str:
        if not self._settings.identity_url:
            raise UpstreamError("Identity provider URL is not configured")
        return f"{self._settings.identity_url.rstrip('/')}/auth/v1/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self._settings.identity_anon_key or "",
            "Content-Type": "application/json",
        }

    async def _post(
        self, path: str, payload: dict[str, Any], params: Optional[dict[str, str]] = None
    ) -> httpx.Response:
        url = self._endpoint(path)
        try:
            if self._client is not None:
                return await self._client.post(
                    url, json=payload, params=params, headers=self._headers()
                )
            async with httpx.AsyncClient(timeout=self._settings.identity_timeout_seconds) as client:
                return await client.post(url, json=payload, params=params, headers=self._headers())
        except httpx.TimeoutException as e:
            logger.warning(f"identity_provider_timeout: path={path}")
            raise UpstreamError("Identity provider timed out") from e
        except httpx.RequestError as e:
            logger.warning(f"identity_provider_unreachable: path={path}, error={str(e)}")
            raise UpstreamError("Identity provider unreachable") from e

    async def verify_credential(self, token: str) -> VerifiedIdentity:
        try:
            payload = decode_token(
                token,
                self._settings.identity_jwt_secret or "",
                algorithm=self._settings.identity_jwt_algorithm,
                audience=self._settings.identity_jwt_audience,
            )
        except ValueError as e:
            raise AuthenticationError(str(e), code="AUTH_INVALID_TOKEN") from e

        if not payload.email:
            raise AuthenticationError("Token carries no email", code="AUTH_INVALID_TOKEN")
        return VerifiedIdentity(email=payload.email, subject=payload.sub)

    async def authenticate_with_password(self, email: str, password: str) -> SessionTokens:
        response = await self._post(
            "token", {"email": email, "password": password}, params={"grant_type": "password"}
        )
        if response.status_code in (400, 401, 403, 422):
            raise AuthenticationError("Invalid email or password", code="AUTH_004")
        if response.is_error:
            logger.error(f"identity_password_grant_failed: status={response.status_code}")
            raise UpstreamError("Identity provider rejected the request")

        body = response.json()
        return SessionTokens(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token", ""),
            expires_in=int(body.get("expires_in") or 3600),
        )

    async def sign_up(self, email: str, password: str, metadata: dict[str, Any]) -> None:
        response = await self._post(
            "signup", {"email": email, "password": password, "data": metadata}
        )
        if response.status_code in (400, 422) and "registered" in response.text:
            raise ConflictError("Email is already registered", code="USER_001")
        if response.is_error:
            logger.error(f"identity_sign_up_failed: status={response.status_code}")
            raise UpstreamError("Sign-up failed at the identity provider", code="AUTH_003")

    async def sign_in_with_id_token(
        self, id_token: str, provider: str = "google"
    ) -> FederatedSession:
        """Exchange a third-party ID token (Google) for a provider session."""
        response = await self._post(
            "token",
            {"provider": provider, "id_token": id_token},
            params={"grant_type": "id_token"},
        )
        if response.status_code in (400, 401, 403, 422):
            logger.info(f"identity_id_token_rejected: provider={provider}")
            raise AuthenticationError(f"{provider.title()} authentication failed", code="AUTH_006")
        if response.is_error:
            logger.error(f"identity_id_token_grant_failed: status={response.status_code}")
            raise UpstreamError("Identity provider rejected the request")

        body = response.json()
        return FederatedSession(
            tokens=SessionTokens(
                access_token=body["access_token"],
                refresh_token=body.get("refresh_token", ""),
                expires_in=int(body.get("expires_in") or 3600),
            ),
            email=(body.get("user") or {}).get("email") or None,
        )

    async def request_password_reset(self, email: str, redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = await self._post("recover", {"email": email}, params=params)
        if response.is_error:
            logger.error(f"identity_recover_failed: status={response.status_code}")
            raise UpstreamError("Failed to send password reset email", code="AUTH_008")


class IdentityGate:
    """Resolve a bearer credential to a ``Principal``.

    Order: provider verification, local account lookup, then lock check.
    Any failure is terminal for the request.
    """

    def __init__(self, provider: IdentityProvider, accounts: AccountRepository) -> None:
        self._provider = provider
        self._accounts = accounts

    async def authenticate(self, credential: str, now: Optional[datetime] = None) -> Principal:
        """
        Authenticate a raw bearer credential.

        Args:
            credential: Token string without the ``Bearer`` prefix.
            now: Clock override for lock evaluation.

        Returns:
            Principal for the matching local account.

        Raises:
            AuthenticationError: Credential rejected, no email, or no local account.
            AccountLockedError: Account is locked; carries ``retry_after``.
        """
        if not credential:
            raise AuthenticationError("Bearer credential required")

        identity = await self._provider.verify_credential(credential)
        if not identity.email:
            raise AuthenticationError("Credential carries no email", code="AUTH_INVALID_TOKEN")

        account = await self._accounts.get_by_email(identity.email)
        if account is None:
            logger.warning("identity_gate_denied: reason=account_not_found")
            raise AuthenticationError("Account not found", code="AUTH_ACCOUNT_NOT_FOUND")

        ensure_not_locked(account, now)

        return Principal(
            id=account.id,
            email=account.email,
            display_name=account.nick_name or account.real_name,
            is_system_admin=account.is_system_admin,
        )
