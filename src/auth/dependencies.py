"""FastAPI dependencies for authentication and scoped authorization."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_identity_provider
from src.auth.identity import IdentityGate, IdentityProvider, Principal
from src.auth.permissions import (
    TeamAccess,
    authorize_course,
    authorize_system_admin,
    authorize_team,
    authorize_workspace,
    enforce,
)
from src.auth.resolver import ScopedRoleResolver
from src.db.models.course import CourseRole, TeamRole
from src.db.models.task import TaskORM
from src.db.models.workspace import WorkspaceRole
from src.db.repositories.account_repo import AccountRepository
from src.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceAccess:
    principal: Principal
    workspace_id: UUID
    role: WorkspaceRole


@dataclass(frozen=True)
class CourseAccess:
    principal: Principal
    course_id: UUID
    role: CourseRole


@dataclass(frozen=True)
class TeamContext:
    principal: Principal
    team_id: UUID
    access: TeamAccess


@dataclass(frozen=True)
class TaskAccess:
    principal: Principal
    task: TaskORM
    role: CourseRole


def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the credential from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthenticationError("Bearer credential required")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Malformed Authorization header", code="AUTH_INVALID_TOKEN")
    return parts[1].strip()


async def get_current_principal(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    """
    Authenticate the request's bearer credential.

    The principal is also stored on ``request.state`` so request logging
    can attribute the call.

    Raises:
        AuthenticationError: Missing, malformed or rejected credential.
        AccountLockedError: The matching account is locked.
    """
    credential = parse_bearer(authorization)
    gate = IdentityGate(provider, AccountRepository(db))
    principal = await gate.authenticate(credential)
    request.state.principal = principal
    return principal


async def require_system_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    enforce(authorize_system_admin(principal.is_system_admin))
    return principal


def require_workspace_role(*roles: WorkspaceRole) -> Callable:
    """
    Factory for a dependency that gates a ``{workspace_id}`` route.

    ``Owner`` always passes; with no roles given any member passes.

    Example:
        >>> @router.put("/v1/workspaces/{workspace_id}/settings")
        >>> async def update_settings(
        >>>     access: WorkspaceAccess = Depends(require_workspace_role(WorkspaceRole.OWNER)),
        >>> ): ...
    """

    async def workspace_checker(
        workspace_id: UUID,
        principal: Principal = Depends(get_current_principal),
        db: AsyncSession = Depends(get_db),
    ) -> WorkspaceAccess:
        resolver = ScopedRoleResolver.for_session(db)
        role = await resolver.resolve_workspace_role(principal.id, workspace_id)
        enforce(authorize_workspace(role, roles))
        logger.debug(
            f"workspace_access_granted: account_id={principal.id}, "
            f"workspace_id={workspace_id}, role={role.value}"
        )
        return WorkspaceAccess(principal=principal, workspace_id=workspace_id, role=role)

    return workspace_checker


def require_course_role(*roles: CourseRole) -> Callable:
    """Factory for a ``{course_id}`` route gate. ``Manager`` always passes."""

    async def course_checker(
        course_id: UUID,
        principal: Principal = Depends(get_current_principal),
        db: AsyncSession = Depends(get_db),
    ) -> CourseAccess:
        resolver = ScopedRoleResolver.for_session(db)
        role = await resolver.resolve_course_role(principal.id, course_id)
        enforce(authorize_course(role, roles))
        return CourseAccess(principal=principal, course_id=course_id, role=role)

    return course_checker


def require_team_access(*roles: TeamRole) -> Callable:
    """Factory for a ``{team_id}`` route gate with the course Manager/Expert fallback."""

    async def team_checker(
        team_id: UUID,
        principal: Principal = Depends(get_current_principal),
        db: AsyncSession = Depends(get_db),
    ) -> TeamContext:
        resolver = ScopedRoleResolver.for_session(db)
        access = await resolver.resolve_team_access(principal.id, team_id)
        enforce(authorize_team(access, roles))
        return TeamContext(principal=principal, team_id=team_id, access=access)

    return team_checker


def require_task_role(*roles: CourseRole) -> Callable:
    """Factory for a ``{task_id}`` route gate, checked against the task's course role."""

    async def task_checker(
        task_id: UUID,
        principal: Principal = Depends(get_current_principal),
        db: AsyncSession = Depends(get_db),
    ) -> TaskAccess:
        resolver = ScopedRoleResolver.for_session(db)
        task, role = await resolver.resolve_task_role(principal.id, task_id)
        enforce(authorize_course(role, roles))
        return TaskAccess(principal=principal, task=task, role=role)

    return task_checker
