"""Authentication and profile request/response schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@]+@[^@]+\.[^@]+$"


class SignupRequest(BaseModel):
    """Account sign-up request.

    Args:
        email: Valid email address (RFC 5322 simplified pattern)
        password: Password with minimum 8 characters
        password_confirm: Must equal ``password``
        real_name: Legal name shown to course managers (1-50 characters)
        nick_name: Unique public nickname (2-20 characters)
        terms_all_agree: Acceptance of all required terms
    """

    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8)
    password_confirm: str
    real_name: str = Field(..., min_length=1, max_length=50)
    nick_name: str = Field(..., min_length=2, max_length=20)
    terms_all_agree: bool = False


class LoginRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)


class GoogleLoginRequest(BaseModel):
    google_token: str = Field(..., min_length=1)


class GoogleNewUserResponse(BaseModel):
    """Google account with no local account yet; the client finishes sign-up."""

    is_new_user: bool = True
    google_email: str
    redirect_url: str = "/signup/complete"


class GoogleSignupCompleteRequest(BaseModel):
    """Extra details for a Google user's first sign-in.

    Args:
        google_token: The same Google ID token used for google-login
        real_name: Legal name shown to course managers (1-50 characters)
        nick_name: Unique public nickname (2-20 characters)
        terms_all_agree: Acceptance of all required terms
    """

    google_token: str = Field(..., min_length=1)
    real_name: str = Field(..., min_length=1, max_length=50)
    nick_name: str = Field(..., min_length=2, max_length=20)
    terms_all_agree: bool = False


class AccountResponse(BaseModel):
    """Local account representation in API responses."""

    id: UUID
    email: str
    real_name: str
    nick_name: str
    profile_image: Optional[str] = None
    phone_number: Optional[str] = None
    is_system_admin: bool = False
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Successful login response.

    Args:
        access_token: Bearer credential issued by the identity provider
        refresh_token: Provider refresh token
        token_type: Always "Bearer"
        expires_in: Access token lifetime in seconds
        account: The local account that logged in
    """

    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    account: AccountResponse


class ProfileUpdate(BaseModel):
    real_name: str = Field(..., min_length=1, max_length=50)
    nick_name: str = Field(..., min_length=2, max_length=20)
    phone_number: Optional[str] = Field(default=None, max_length=20)
