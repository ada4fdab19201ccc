"""Authentication and authorization utilities."""

from src.auth.identity import (
    FederatedSession,
    IdentityGate,
    IdentityProvider,
    Principal,
    SessionTokens,
    SupabaseIdentityProvider,
    VerifiedIdentity,
)
from src.auth.jwt import TokenPayload, decode_token
from src.auth.lockout import LockoutPolicy, ensure_not_locked, remaining_lock_seconds
from src.auth.permissions import (
    Decision,
    TeamAccess,
    authorize_course,
    authorize_system_admin,
    authorize_team,
    authorize_workspace,
    enforce,
)
from src.auth.resolver import ScopedRoleResolver

__all__ = [
    "authorize_course",
    "authorize_system_admin",
    "authorize_team",
    "authorize_workspace",
    "decode_token",
    "Decision",
    "enforce",
    "FederatedSession",
    "ensure_not_locked",
    "IdentityGate",
    "IdentityProvider",
    "LockoutPolicy",
    "Principal",
    "remaining_lock_seconds",
    "ScopedRoleResolver",
    "SessionTokens",
    "SupabaseIdentityProvider",
    "TeamAccess",
    "TokenPayload",
    "VerifiedIdentity",
]
