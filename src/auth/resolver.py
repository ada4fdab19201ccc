"""Scoped Role Resolver: principal + scope id -> membership role.

The scope row is always loaded first so a missing scope (404) is never
reported as a missing membership (403).
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.permissions import TEAM_FALLBACK_COURSE_ROLES, TeamAccess
from src.db.models.course import CourseRole, TeamORM
from src.db.models.task import TaskORM
from src.db.models.workspace import WorkspaceRole
from src.db.repositories.membership_repo import MembershipRepository
from src.db.repositories.task_repo import TaskRepository
from src.exceptions import ForbiddenError, NotFoundError

logger = logging.getLogger(__name__)


class ScopedRoleResolver:
    """Resolve the caller's role in a workspace, course, team or task."""

    def __init__(
        self, memberships: MembershipRepository, tasks: Optional[TaskRepository] = None
    ) -> None:
        self._memberships = memberships
        self._tasks = tasks

    @classmethod
    def for_session(cls, session: AsyncSession) -> "ScopedRoleResolver":
        return cls(MembershipRepository(session), TaskRepository(session))

    async def resolve_workspace_role(self, account_id: UUID, workspace_id: UUID) -> WorkspaceRole:
        workspace = await self._memberships.get_workspace(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found", code="WORKSPACE_NOT_FOUND")

        role = await self._memberships.get_workspace_role(workspace_id, account_id)
        if role is None:
            logger.info(
                f"resolve_workspace_role_denied: account_id={account_id}, "
                f"workspace_id={workspace_id}"
            )
            raise ForbiddenError("Not a member of this workspace", code="NOT_WORKSPACE_MEMBER")
        return role

    async def resolve_course_role(self, account_id: UUID, course_id: UUID) -> CourseRole:
        course = await self._memberships.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found", code="COURSE_NOT_FOUND")

        role = await self._memberships.get_course_role(course_id, account_id)
        if role is None:
            logger.info(
                f"resolve_course_role_denied: account_id={account_id}, course_id={course_id}"
            )
            raise ForbiddenError("Not a member of this course", code="NOT_COURSE_MEMBER")
        return role

    async def resolve_team_access(self, account_id: UUID, team_id: UUID) -> TeamAccess:
        """Team membership, falling back to Manager/Expert of the team's course."""
        team: Optional[TeamORM] = await self._memberships.get_team(team_id)
        if team is None:
            raise NotFoundError("Team not found", code="TEAM_NOT_FOUND")

        team_role = await self._memberships.get_team_role(team_id, account_id)
        course_role = await self._memberships.get_course_role(team.course_id, account_id)

        if team_role is None and course_role not in TEAM_FALLBACK_COURSE_ROLES:
            logger.info(f"resolve_team_access_denied: account_id={account_id}, team_id={team_id}")
            raise ForbiddenError("Not a member of this team", code="NOT_TEAM_MEMBER")
        return TeamAccess(team_role=team_role, course_role=course_role)

    async def resolve_task_role(
        self, account_id: UUID, task_id: UUID
    ) -> tuple[TaskORM, CourseRole]:
        """Load a task and the caller's role in the course it belongs to."""
        if self._tasks is None:
            raise RuntimeError("ScopedRoleResolver was built without a task repository")

        task = await self._tasks.get_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found", code="TASK_NOT_FOUND")

        role = await self.resolve_course_role(account_id, task.course_id)
        return task, role
