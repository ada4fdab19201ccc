"""Sign-up, password login with lockout, password reset and profile edits."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import FederatedSession, IdentityProvider, SessionTokens
from src.auth.lockout import LockoutPolicy, utcnow
from src.db.models.account import AccountORM
from src.db.repositories.account_repo import AccountRepository
from src.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignupRequest:
    email: str
    password: str
    password_confirm: str
    real_name: str
    nick_name: str
    terms_all_agree: bool


@dataclass(frozen=True)
class GoogleSignupRequest:
    google_token: str
    real_name: str
    nick_name: str
    terms_all_agree: bool


@dataclass(frozen=True)
class LoginResult:
    tokens: SessionTokens
    account: AccountORM


@dataclass(frozen=True)
class GoogleLoginResult:
    """Tokens for a known account, or the email of a Google user still to sign up."""

    google_email: str
    tokens: Optional[SessionTokens] = None
    account: Optional[AccountORM] = None

    @property
    def is_new_user(self) -> bool:
        return self.account is None


class AccountService:
    """Account flows that talk to the identity provider.

    Args:
        session: Request-scoped database session.
        provider: Identity provider holding the credentials.
        settings: Settings with lockout thresholds and frontend URL.
        accounts: Repository override, mostly for tests.
    """

    def __init__(
        self,
        session: AsyncSession,
        provider: IdentityProvider,
        settings: Settings,
        accounts: Optional[AccountRepository] = None,
    ) -> None:
        self._session = session
        self._provider = provider
        self._settings = settings
        self._accounts = accounts or AccountRepository(session)
        self._lockout = LockoutPolicy.from_settings(self._accounts, settings)

    async def signup(self, request: SignupRequest) -> AccountORM:
        if request.password != request.password_confirm:
            raise ValidationError(
                "Passwords do not match",
                code="AUTH_001",
                fields={"password_confirm": "Passwords do not match"},
            )
        if not request.terms_all_agree:
            raise ValidationError(
                "Terms must be accepted",
                code="AUTH_002",
                fields={"terms_all_agree": "Terms must be accepted"},
            )

        email = request.email.strip().lower()
        if await self._accounts.get_by_email(email) is not None:
            raise ConflictError("Email is already registered", code="USER_001")
        if await self._accounts.get_by_nick_name(request.nick_name) is not None:
            raise ConflictError("Nickname is already in use", code="USER_002")

        await self._provider.sign_up(
            email,
            request.password,
            {"real_name": request.real_name, "nick_name": request.nick_name},
        )

        try:
            account = await self._accounts.create(
                email=email, real_name=request.real_name, nick_name=request.nick_name
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Email or nickname is already in use", code="USER_001") from e

        logger.info(f"account_created: account_id={account.id}")
        return account

    async def login(
        self, email: str, password: str, now: Optional[datetime] = None
    ) -> LoginResult:
        """
        Password login guarded by the lockout policy.

        The lock is checked before the provider is called. A failure that
        reaches the threshold still answers ``AUTH_004``; later attempts
        answer ``AccountLockedError`` until the lock expires.

        Raises:
            AuthenticationError: Unknown email or wrong password (``AUTH_004``).
            AccountLockedError: Account is locked; carries ``retry_after``.
        """
        now = now or utcnow()
        account = await self._accounts.get_by_email(email)
        if account is None:
            logger.info("login_failed: reason=unknown_email")
            raise AuthenticationError("Invalid email or password", code="AUTH_004")

        self._lockout.check(account, now)

        try:
            tokens = await self._provider.authenticate_with_password(account.email, password)
        except AuthenticationError:
            await self._lockout.record_failure(account, now)
            await self._session.commit()
            raise AuthenticationError("Invalid email or password", code="AUTH_004")

        await self._lockout.record_success(account)
        await self._session.commit()
        logger.info(f"login_succeeded: account_id={account.id}")
        return LoginResult(tokens=tokens, account=account)

    async def google_login(
        self, google_token: str, now: Optional[datetime] = None
    ) -> GoogleLoginResult:
        """
        Sign in with a Google ID token.

        A verified Google email with no local account is not an error: the
        caller is told to finish sign-up instead of receiving tokens.

        Raises:
            AuthenticationError: Google token rejected (AUTH_006) or no email
                on the Google account (AUTH_007).
            AccountLockedError: The matching local account is locked.
        """
        session = await self._federated_session(google_token)
        email = session.email.strip().lower()
        account = await self._accounts.get_by_email(email)
        if account is None:
            logger.info("google_login_new_user: signup_required=true")
            return GoogleLoginResult(google_email=email)

        self._lockout.check(account, now or utcnow())
        logger.info(f"google_login_succeeded: account_id={account.id}")
        return GoogleLoginResult(google_email=email, tokens=session.tokens, account=account)

    async def google_signup_complete(self, request: GoogleSignupRequest) -> LoginResult:
        """
        Create the local account for a Google user who has no account yet.

        The email is taken from the verified Google token, never from the
        request body.

        Raises:
            ValidationError: Terms not accepted (AUTH_002).
            AuthenticationError: Google token rejected (AUTH_006 / AUTH_007).
            ConflictError: Email (USER_001) or nickname (USER_002) already taken.
        """
        if not request.terms_all_agree:
            raise ValidationError(
                "Terms must be accepted",
                code="AUTH_002",
                fields={"terms_all_agree": "Terms must be accepted"},
            )

        session = await self._federated_session(request.google_token)
        email = session.email.strip().lower()
        if await self._accounts.get_by_email(email) is not None:
            raise ConflictError("Email is already registered", code="USER_001")
        if await self._accounts.get_by_nick_name(request.nick_name) is not None:
            raise ConflictError("Nickname is already in use", code="USER_002")

        try:
            account = await self._accounts.create(
                email=email, real_name=request.real_name, nick_name=request.nick_name
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Email or nickname is already in use", code="USER_001") from e

        logger.info(f"account_created: account_id={account.id}, via=google")
        return LoginResult(tokens=session.tokens, account=account)

    async def _federated_session(self, google_token: str) -> FederatedSession:
        session = await self._provider.sign_in_with_id_token(google_token, provider="google")
        if not session.email:
            raise AuthenticationError(
                "Google account did not share an email address", code="AUTH_007"
            )
        return session

    async def request_password_reset(self, email: str) -> None:
        account = await self._accounts.get_by_email(email)
        if account is None:
            raise NotFoundError("Email is not registered", code="USER_003")
        redirect_to = f"{self._settings.frontend_url.rstrip('/')}/password-reset"
        await self._provider.request_password_reset(account.email, redirect_to=redirect_to)
        logger.info(f"password_reset_requested: account_id={account.id}")

    async def get_profile(self, account_id: UUID) -> AccountORM:
        account = await self._accounts.get_by_id(account_id)
        if account is None:
            raise NotFoundError("Account not found", code="USER_003")
        return account

    async def update_profile(
        self,
        account_id: UUID,
        real_name: str,
        nick_name: str,
        phone_number: Optional[str] = None,
    ) -> AccountORM:
        account = await self.get_profile(account_id)
        if nick_name != account.nick_name:
            existing = await self._accounts.get_by_nick_name(nick_name)
            if existing is not None and existing.id != account_id:
                raise ConflictError("Nickname is already in use", code="USER_002")

        account.real_name = real_name
        account.nick_name = nick_name
        account.phone_number = phone_number
        await self._session.flush()
        await self._session.commit()
        return account

