"""Membership lookups for the three authorization scopes."""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.account import AccountORM
from src.db.models.course import (
    CourseMembershipORM,
    CourseORM,
    CourseRole,
    TeamMembershipORM,
    TeamORM,
    TeamRole,
)
from src.db.models.workspace import WorkspaceMembershipORM, WorkspaceORM, WorkspaceRole


class MembershipRepository:
    """Reads and writes workspace, course and team memberships.

    Scope rows are looked up separately from membership rows so callers can
    tell a missing scope from a missing membership.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # Scope lookups

    async def get_workspace(self, workspace_id: UUID) -> Optional[WorkspaceORM]:
        return await self._session.get(WorkspaceORM, workspace_id)

    async def get_course(self, course_id: UUID) -> Optional[CourseORM]:
        return await self._session.get(CourseORM, course_id)

    async def get_team(self, team_id: UUID) -> Optional[TeamORM]:
        return await self._session.get(TeamORM, team_id)

    # Role lookups

    async def get_workspace_role(
        self, workspace_id: UUID, account_id: UUID
    ) -> Optional[WorkspaceRole]:
        stmt = select(WorkspaceMembershipORM.role).where(
            WorkspaceMembershipORM.workspace_id == workspace_id,
            WorkspaceMembershipORM.account_id == account_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_course_role(self, course_id: UUID, account_id: UUID) -> Optional[CourseRole]:
        stmt = select(CourseMembershipORM.role).where(
            CourseMembershipORM.course_id == course_id,
            CourseMembershipORM.account_id == account_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_team_role(self, team_id: UUID, account_id: UUID) -> Optional[TeamRole]:
        stmt = select(TeamMembershipORM.role).where(
            TeamMembershipORM.team_id == team_id,
            TeamMembershipORM.account_id == account_id,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    # Inserts

    async def add_workspace_member(
        self, workspace_id: UUID, account_id: UUID, role: WorkspaceRole
    ) -> WorkspaceMembershipORM:
        membership = WorkspaceMembershipORM(
            workspace_id=workspace_id, account_id=account_id, role=role
        )
        self._session.add(membership)
        await self._session.flush()
        return membership

    async def add_course_member(
        self, course_id: UUID, account_id: UUID, role: CourseRole
    ) -> CourseMembershipORM:
        membership = CourseMembershipORM(course_id=course_id, account_id=account_id, role=role)
        self._session.add(membership)
        await self._session.flush()
        return membership

    async def add_team_member(
        self, team_id: UUID, account_id: UUID, role: TeamRole
    ) -> TeamMembershipORM:
        membership = TeamMembershipORM(team_id=team_id, account_id=account_id, role=role)
        self._session.add(membership)
        await self._session.flush()
        return membership

    # Listings

    async def count_workspace_members(self, workspace_id: UUID) -> int:
        stmt = select(func.count()).where(WorkspaceMembershipORM.workspace_id == workspace_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def list_workspaces_for_account(
        self, account_id: UUID
    ) -> list[tuple[WorkspaceORM, WorkspaceRole]]:
        """Workspaces the account belongs to, with the account's role in each."""
        stmt = (
            select(WorkspaceORM, WorkspaceMembershipORM.role)
            .join(WorkspaceMembershipORM, WorkspaceMembershipORM.workspace_id == WorkspaceORM.id)
            .where(WorkspaceMembershipORM.account_id == account_id)
            .order_by(WorkspaceORM.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def list_course_members(
        self, course_id: UUID
    ) -> list[tuple[AccountORM, CourseRole]]:
        stmt = (
            select(AccountORM, CourseMembershipORM.role)
            .join(CourseMembershipORM, CourseMembershipORM.account_id == AccountORM.id)
            .where(CourseMembershipORM.course_id == course_id)
            .order_by(CourseMembershipORM.created_at)
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    async def list_team_members(self, team_id: UUID) -> list[tuple[AccountORM, TeamRole]]:
        stmt = (
            select(AccountORM, TeamMembershipORM.role)
            .join(TeamMembershipORM, TeamMembershipORM.account_id == AccountORM.id)
            .where(TeamMembershipORM.team_id == team_id)
            .order_by(TeamMembershipORM.created_at)
        )
        result = await self._session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]
