"""Scope-aware RBAC decisions.

Pure functions: given a resolved role and the set of roles a route requires,
return a ``Decision``. No I/O, so the precedence rules can be tested without
a database or an HTTP stack.

Precedence differs per scope:

- Workspace: ``Owner`` passes everything; ``Member`` needs an exact match.
- Course: ``Manager`` passes everything; ``Expert`` and ``Participant``
  need an exact match (an Expert does not satisfy a Participant-only gate).
- Team: exact match only, but course Managers and Experts reach any team in
  their course through a separate fallback path.

An empty required set means any member of the scope passes.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.db.models.course import CourseRole, TeamRole
from src.db.models.workspace import WorkspaceRole
from src.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

WORKSPACE_ROLE_REQUIRED = "WORKSPACE_ROLE_REQUIRED"
COURSE_ROLE_REQUIRED = "COURSE_ROLE_REQUIRED"
TEAM_ROLE_REQUIRED = "TEAM_ROLE_REQUIRED"
SYSTEM_ADMIN_REQUIRED = "SYSTEM_ADMIN_REQUIRED"

# Course roles that may enter any team of their course without a team membership
TEAM_FALLBACK_COURSE_ROLES = frozenset({CourseRole.MANAGER, CourseRole.EXPERT})


@dataclass(frozen=True)
class Decision:
    """Outcome of an authorization check.

    ``reason`` is a stable machine-readable code, set only on deny.
    """

    allowed: bool
    reason: Optional[str] = None
    required: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class TeamAccess:
    """How a principal reaches a team: own team role, course fallback, or both."""

    team_role: Optional[TeamRole] = None
    course_role: Optional[CourseRole] = None

    @property
    def via_course(self) -> bool:
        return self.course_role in TEAM_FALLBACK_COURSE_ROLES


_ALLOW = Decision(allowed=True)


def _deny(reason: str, required: Iterable[object]) -> Decision:
    values = sorted(getattr(role, "value", str(role)) for role in required)
    return Decision(allowed=False, reason=reason, required=tuple(values))


def authorize_workspace(
    role: WorkspaceRole, required: Iterable[WorkspaceRole] = ()
) -> Decision:
    required = frozenset(required)
    if role == WorkspaceRole.OWNER:
        return _ALLOW
    if not required or role in required:
        return _ALLOW
    return _deny(WORKSPACE_ROLE_REQUIRED, required)


def authorize_course(
    role: Optional[CourseRole], required: Iterable[CourseRole] = ()
) -> Decision:
    required = frozenset(required)
    if role is None:
        return _deny(COURSE_ROLE_REQUIRED, required)
    if role == CourseRole.MANAGER:
        return _ALLOW
    if not required or role in required:
        return _ALLOW
    return _deny(COURSE_ROLE_REQUIRED, required)


def authorize_team(access: TeamAccess, required: Iterable[TeamRole] = ()) -> Decision:
    required = frozenset(required)
    if access.via_course:
        return _ALLOW
    if access.team_role is None:
        return _deny(TEAM_ROLE_REQUIRED, required)
    if not required or access.team_role in required:
        return _ALLOW
    return _deny(TEAM_ROLE_REQUIRED, required)


def authorize_system_admin(is_system_admin: bool) -> Decision:
    if is_system_admin:
        return _ALLOW
    return Decision(allowed=False, reason=SYSTEM_ADMIN_REQUIRED)


def enforce(decision: Decision) -> None:
    """Translate a deny into ``ForbiddenError`` carrying the reason code."""
    if decision.allowed:
        return
    logger.warning(
        f"authorization_denied: reason={decision.reason}, required={list(decision.required)}"
    )
    raise ForbiddenError(
        "Insufficient permissions",
        code=decision.reason,
        details={"required_roles": list(decision.required)},
    )
