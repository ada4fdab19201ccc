"""Invite token repository with the conditional use-count claim."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.course import CourseMembershipORM, CourseRole
from src.db.models.invite import InviteScope, InviteTokenORM
from src.db.models.workspace import WorkspaceMembershipORM, WorkspaceRole
from src.db.repositories.base import BaseRepository


class InviteRepository(BaseRepository[InviteTokenORM]):
    """Repository for invite tokens and the memberships they grant."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, InviteTokenORM)

    async def get_by_token(self, token: str) -> Optional[InviteTokenORM]:
        stmt = select(InviteTokenORM).where(InviteTokenORM.token == token)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def claim_use(self, invite_id: UUID, now: datetime) -> bool:
        """Consume one use of the invite if it is still live.

        ``UPDATE ... SET used_count = used_count + 1 WHERE used_count < max_uses
        AND expires_at > now RETURNING id``. Row locking on the update
        serialises concurrent claims, so the cap is never overshot.

        Returns:
            True if a use was claimed, False if the invite is exhausted or expired.
        """
        stmt = (
            update(InviteTokenORM)
            .where(
                InviteTokenORM.id == invite_id,
                InviteTokenORM.used_count < InviteTokenORM.max_uses,
                InviteTokenORM.expires_at > now,
            )
            .values(used_count=InviteTokenORM.used_count + 1)
            .returning(InviteTokenORM.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def membership_exists(self, invite: InviteTokenORM, account_id: UUID) -> bool:
        if invite.scope == InviteScope.WORKSPACE:
            stmt = select(WorkspaceMembershipORM.id).where(
                WorkspaceMembershipORM.workspace_id == invite.workspace_id,
                WorkspaceMembershipORM.account_id == account_id,
            )
        else:
            stmt = select(CourseMembershipORM.id).where(
                CourseMembershipORM.course_id == invite.course_id,
                CourseMembershipORM.account_id == account_id,
            )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def add_membership(self, invite: InviteTokenORM, account_id: UUID) -> None:
        """Insert the membership the invite grants.

        Workspace invites grant ``Member``; course invites grant ``Participant``.
        Raises ``IntegrityError`` on flush if the membership already exists.
        """
        membership: WorkspaceMembershipORM | CourseMembershipORM
        if invite.scope == InviteScope.WORKSPACE:
            membership = WorkspaceMembershipORM(
                workspace_id=invite.workspace_id,
                account_id=account_id,
                role=WorkspaceRole.MEMBER,
            )
        else:
            membership = CourseMembershipORM(
                course_id=invite.course_id,
                account_id=account_id,
                role=CourseRole.PARTICIPANT,
            )
        self._session.add(membership)
        await self._session.flush()
