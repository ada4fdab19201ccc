"""Workspace creation, listing, settings and deletion."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Principal
from src.auth.permissions import authorize_system_admin, enforce
from src.db.models.workspace import WorkspaceORM, WorkspaceRole
from src.db.repositories.base import BaseRepository
from src.db.repositories.membership_repo import MembershipRepository
from src.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceView:
    """A workspace as seen by one member."""

    id: UUID
    name: str
    description: Optional[str]
    logo_image: Optional[str]
    owner_id: UUID
    member_count: int
    my_role: WorkspaceRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WorkspaceService:
    def __init__(
        self,
        session: AsyncSession,
        memberships: Optional[MembershipRepository] = None,
        workspaces: Optional[BaseRepository[WorkspaceORM]] = None,
    ) -> None:
        self._session = session
        self._workspaces = workspaces or BaseRepository(session, WorkspaceORM)
        self._memberships = memberships or MembershipRepository(session)

    async def _view(self, workspace: WorkspaceORM, role: WorkspaceRole) -> WorkspaceView:
        member_count = await self._memberships.count_workspace_members(workspace.id)
        return WorkspaceView(
            id=workspace.id,
            name=workspace.name,
            description=workspace.description,
            logo_image=workspace.logo_image,
            owner_id=workspace.owner_id,
            member_count=member_count,
            my_role=role,
            created_at=workspace.created_at,
            updated_at=workspace.updated_at,
        )

    async def create(
        self, principal: Principal, name: str, description: Optional[str] = None
    ) -> WorkspaceView:
        """
        Create a workspace owned by a system admin.

        The workspace row and the creator's ``Owner`` membership are written
        in one transaction.

        Raises:
            ForbiddenError: Caller is not a system admin (``SYSTEM_ADMIN_REQUIRED``).
            ConflictError: A workspace with that name exists (``WS_002``).
        """
        enforce(authorize_system_admin(principal.is_system_admin))

        name = name.strip()
        if await self._workspaces.find_one(name=name) is not None:
            raise ConflictError("Workspace name already exists", code="WS_002")

        try:
            workspace = await self._workspaces.create(
                name=name, description=description, owner_id=principal.id
            )
            await self._memberships.add_workspace_member(
                workspace.id, principal.id, WorkspaceRole.OWNER
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Workspace name already exists", code="WS_002") from e

        logger.info(f"workspace_created: workspace_id={workspace.id}, owner_id={principal.id}")
        return await self._view(workspace, WorkspaceRole.OWNER)

    async def list_for_account(self, account_id: UUID) -> list[WorkspaceView]:
        rows = await self._memberships.list_workspaces_for_account(account_id)
        return [await self._view(workspace, role) for workspace, role in rows]

    async def get_view(self, workspace_id: UUID, role: WorkspaceRole) -> WorkspaceView:
        workspace = await self._memberships.get_workspace(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found", code="WORKSPACE_NOT_FOUND")
        return await self._view(workspace, role)

    async def update(
        self,
        workspace_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WorkspaceView:
        workspace = await self._memberships.get_workspace(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found", code="WORKSPACE_NOT_FOUND")

        if name and name.strip() != workspace.name:
            existing = await self._workspaces.find_one(name=name.strip())
            if existing is not None:
                raise ConflictError("Workspace name already exists", code="WS_002")
            workspace.name = name.strip()
        if description is not None:
            workspace.description = description

        try:
            await self._session.flush()
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Workspace name already exists", code="WS_002") from e
        return await self._view(workspace, WorkspaceRole.OWNER)

    async def delete(self, workspace_id: UUID, confirm_name: str) -> None:
        """Delete a workspace after the caller retypes its exact name."""
        workspace = await self._memberships.get_workspace(workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace not found", code="WS_009")
        if workspace.name != confirm_name:
            raise ValidationError(
                "Workspace name does not match",
                code="WS_010",
                fields={"confirm_name": "Workspace name does not match"},
            )

        await self._session.delete(workspace)
        await self._session.commit()
        logger.info(f"workspace_deleted: workspace_id={workspace_id}")
