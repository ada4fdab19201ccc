"""Authentication endpoints: sign-up, password and Google login, password reset, current account."""

import logging
from typing import Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_identity_provider, get_settings
from src.api.schemas.auth import (
    AccountResponse,
    GoogleLoginRequest,
    GoogleNewUserResponse,
    GoogleSignupCompleteRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    SignupRequest,
)
from src.api.schemas.common import SuccessResponse
from src.auth.dependencies import get_current_principal
from src.auth.identity import IdentityProvider, Principal, SessionTokens
from src.db.models.account import AccountORM
from src.services import accounts as account_flows
from src.services.accounts import AccountService
from src.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


def account_response(account: AccountORM) -> AccountResponse:
    return AccountResponse(
        id=account.id,
        email=account.email,
        real_name=account.real_name,
        nick_name=account.nick_name,
        profile_image=account.profile_image,
        phone_number=account.phone_number,
        is_system_admin=account.is_system_admin,
        created_at=account.created_at,
    )


def login_response(tokens: SessionTokens, account: AccountORM) -> LoginResponse:
    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        expires_in=tokens.expires_in,
        account=account_response(account),
    )


@router.post("/signup", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AccountResponse:
    """
    Register an account with the identity provider and create the local row.

    Raises:
        ValidationError: Passwords differ (AUTH_001) or terms not accepted (AUTH_002).
        ConflictError: Email (USER_001) or nickname (USER_002) already taken.
        UpstreamError: Identity provider sign-up failed (AUTH_003).
    """
    service = AccountService(db, provider, settings)
    account = await service.signup(
        account_flows.SignupRequest(
            email=request.email,
            password=request.password,
            password_confirm=request.password_confirm,
            real_name=request.real_name,
            nick_name=request.nick_name,
            terms_all_agree=request.terms_all_agree,
        )
    )
    return account_response(account)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> LoginResponse:
    """
    Password login guarded by account lockout.

    Five consecutive failures lock the account for five minutes; while
    locked the endpoint answers 429 with ``Retry-After``.

    Raises:
        AuthenticationError: Unknown email or wrong password (AUTH_004).
        AccountLockedError: Account locked (AUTH_005).
    """
    service = AccountService(db, provider, settings)
    result = await service.login(request.email, request.password)
    return login_response(result.tokens, result.account)


@router.post("/google-login", response_model=Union[LoginResponse, GoogleNewUserResponse])
async def google_login(
    request: GoogleLoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Union[LoginResponse, GoogleNewUserResponse]:
    """
    Sign in with a Google ID token.

    Known accounts receive session tokens. A Google user without a local
    account gets ``is_new_user`` and the page where sign-up is completed.

    Raises:
        AuthenticationError: Google token rejected (AUTH_006) or no email (AUTH_007).
    """
    service = AccountService(db, provider, settings)
    result = await service.google_login(request.google_token)
    if result.is_new_user:
        return GoogleNewUserResponse(google_email=result.google_email)
    return login_response(result.tokens, result.account)


@router.post(
    "/google-signup-complete",
    response_model=LoginResponse,
    status_code=status.HTTP_201_CREATED,
)
async def google_signup_complete(
    request: GoogleSignupCompleteRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> LoginResponse:
    """
    Finish sign-up for a Google user and log them in.

    Raises:
        ValidationError: Terms not accepted (AUTH_002).
        ConflictError: Email (USER_001) or nickname (USER_002) already taken.
    """
    service = AccountService(db, provider, settings)
    result = await service.google_signup_complete(
        account_flows.GoogleSignupRequest(
            google_token=request.google_token,
            real_name=request.real_name,
            nick_name=request.nick_name,
            terms_all_agree=request.terms_all_agree,
        )
    )
    return login_response(result.tokens, result.account)


@router.post("/password-reset", response_model=SuccessResponse)
async def request_password_reset(
    request: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> SuccessResponse:
    service = AccountService(db, provider, settings)
    await service.request_password_reset(request.email)
    return SuccessResponse(message="Password reset email sent")


@router.get("/me", response_model=AccountResponse)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AccountResponse:
    service = AccountService(db, provider, settings)
    account = await service.get_profile(principal.id)
    return account_response(account)
