"""Workspace CRUD, settings and invite endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_settings
from src.api.schemas.common import SuccessResponse
from src.api.schemas.workspaces import (
    InviteCreate,
    InviteResponse,
    JoinRequest,
    WorkspaceCreate,
    WorkspaceDelete,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from src.auth.dependencies import WorkspaceAccess, get_current_principal, require_workspace_role
from src.auth.identity import Principal
from src.db.models.invite import InviteScope, InviteTokenORM
from src.db.models.workspace import WorkspaceRole
from src.services.invites import InviteService
from src.services.workspaces import WorkspaceService, WorkspaceView
from src.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/workspaces", tags=["workspaces"])


def workspace_response(view: WorkspaceView) -> WorkspaceResponse:
    return WorkspaceResponse(
        id=view.id,
        name=view.name,
        description=view.description,
        logo_image=view.logo_image,
        owner_id=view.owner_id,
        member_count=view.member_count,
        my_role=view.my_role.value,
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


def invite_response(service: InviteService, invite: InviteTokenORM) -> InviteResponse:
    return InviteResponse(
        token=invite.token,
        invite_url=service.invite_url(invite),
        scope=invite.scope,
        scope_id=invite.scope_id,
        max_uses=invite.max_uses,
        used_count=invite.used_count,
        expires_at=invite.expires_at,
    )


@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    data: WorkspaceCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> WorkspaceResponse:
    """
    Create a workspace. Only system admins may do this; the creator becomes Owner.

    Raises:
        ForbiddenError: Caller is not a system admin.
        ConflictError: Name already taken (WS_002).
    """
    view = await WorkspaceService(db).create(principal, data.name, data.description)
    return workspace_response(view)


@router.get("", response_model=list[WorkspaceResponse])
async def list_workspaces(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> list[WorkspaceResponse]:
    """List workspaces the caller belongs to, each with the caller's role."""
    views = await WorkspaceService(db).list_for_account(principal.id)
    logger.info(f"list_workspaces: account_id={principal.id}, count={len(views)}")
    return [workspace_response(view) for view in views]


@router.get("/{workspace_id}/settings", response_model=WorkspaceResponse)
async def get_workspace_settings(
    access: WorkspaceAccess = Depends(require_workspace_role()),
    db: AsyncSession = Depends(get_db),
) -> WorkspaceResponse:
    view = await WorkspaceService(db).get_view(access.workspace_id, access.role)
    return workspace_response(view)


@router.put("/{workspace_id}/settings", response_model=WorkspaceResponse)
async def update_workspace_settings(
    data: WorkspaceUpdate,
    access: WorkspaceAccess = Depends(require_workspace_role(WorkspaceRole.OWNER)),
    db: AsyncSession = Depends(get_db),
) -> WorkspaceResponse:
    view = await WorkspaceService(db).update(
        access.workspace_id, name=data.name, description=data.description
    )
    return workspace_response(view)


@router.delete("/{workspace_id}", response_model=SuccessResponse)
async def delete_workspace(
    data: WorkspaceDelete,
    access: WorkspaceAccess = Depends(require_workspace_role(WorkspaceRole.OWNER)),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    """
    Delete a workspace and everything under it.

    Raises:
        ValidationError: ``confirm_name`` does not match (WS_010).
    """
    await WorkspaceService(db).delete(access.workspace_id, data.confirm_name)
    return SuccessResponse(message="Workspace deleted")


@router.post(
    "/{workspace_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_workspace_invite(
    data: InviteCreate,
    access: WorkspaceAccess = Depends(require_workspace_role(WorkspaceRole.OWNER)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> InviteResponse:
    service = InviteService(db, settings)
    invite = await service.create_invite(
        InviteScope.WORKSPACE,
        access.workspace_id,
        created_by=access.principal.id,
        max_uses=data.max_uses,
    )
    return invite_response(service, invite)


@router.post("/join", response_model=WorkspaceResponse)
async def join_workspace(
    data: JoinRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> WorkspaceResponse:
    """
    Redeem a workspace invite; the caller joins as Member.

    Returns the workspace as the new member sees it.

    Raises:
        NotFoundError: Unknown token (INVITE_NOT_FOUND).
        GoneError: Expired (INVITE_EXPIRED) or used up (INVITE_EXHAUSTED).
        ConflictError: Already a member (ALREADY_MEMBER).
    """
    redemption = await InviteService(db, settings).redeem(
        data.token, principal.id, expected_scope=InviteScope.WORKSPACE
    )
    view = await WorkspaceService(db).get_view(redemption.scope_id, redemption.role)
    return workspace_response(view)
