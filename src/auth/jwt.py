"""Decoding of identity-provider access tokens."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPayload:
    """Claims this service relies on from a provider-issued access token."""

    sub: str
    email: Optional[str]
    exp: datetime
    role: Optional[str]


def decode_token(
    token: str,
    secret: str,
    algorithm: str = "HS256",
    audience: Optional[str] = "authenticated",
) -> TokenPayload:
    """
    Decode and validate an access token issued by the identity provider.

    Args:
        token: Raw bearer token string.
        secret: Shared signing secret of the provider.
        algorithm: Expected signing algorithm.
        audience: Expected ``aud`` claim (None disables the audience check).

    Returns:
        TokenPayload with subject, email, expiry and provider role.

    Raises:
        ValueError: If the token is expired, has a bad signature, or lacks claims.
    """
    if not secret:
        raise ValueError("identity_jwt_secret must be configured in settings")

    options = {"verify_aud": audience is not None}
    try:
        payload = jwt.decode(
            token, secret, algorithms=[algorithm], audience=audience, options=options
        )
        sub = str(payload["sub"])
        exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except ExpiredSignatureError as e:
        logger.warning(f"token_expired: error={str(e)}")
        raise ValueError("Token has expired") from e
    except JWTError as e:
        logger.warning(f"token_invalid: error={str(e)}")
        raise ValueError("Invalid token") from e
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"token_parse_error: error={str(e)}")
        raise ValueError("Invalid token") from e

    email = payload.get("email") or None
    return TokenPayload(sub=sub, email=email, exp=exp, role=payload.get("role"))
