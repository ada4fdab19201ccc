"""Domain error taxonomy shared by services and the HTTP layer.

Every error carries a stable machine-readable ``code``. Clients render
localized text from the code; ``message`` is a default English rendering.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for all expected, request-terminal errors."""

    status_code: int = 400
    default_code: str = "bad_request"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details


class AuthenticationError(AppError):
    """Missing, invalid or unrecognised credential."""

    status_code = 401
    default_code = "AUTH_REQUIRED"


class AccountLockedError(AppError):
    """Account is temporarily locked after repeated login failures."""

    status_code = 429
    default_code = "AUTH_005"

    def __init__(self, retry_after: int, message: str = "Too many login attempts") -> None:
        super().__init__(message, details={"retry_after": retry_after})
        self.retry_after = retry_after


class NotFoundError(AppError):
    status_code = 404
    default_code = "NOT_FOUND"


class ForbiddenError(AppError):
    """Scope exists but the caller lacks the required role."""

    status_code = 403
    default_code = "FORBIDDEN"


class ConflictError(AppError):
    status_code = 409
    default_code = "CONFLICT"


class GoneError(AppError):
    """Invite expired or exhausted."""

    status_code = 410
    default_code = "GONE"


class InvalidStateError(AppError):
    """Task lifecycle precondition violated."""

    status_code = 409
    default_code = "INVALID_STATE"


class ValidationError(AppError):
    """Malformed input; ``fields`` maps field names to messages."""

    status_code = 422
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        fields: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message, code=code, details={"fields": fields or {}})
        self.fields = fields or {}


class UpstreamError(AppError):
    """An external collaborator (identity, text generation) failed."""

    status_code = 502
    default_code = "UPSTREAM_FAILURE"
