"""Workspace, course invite and membership schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.db.models.invite import InviteScope


class WorkspaceCreate(BaseModel):
    """Create a new workspace request (system admins only).

    Args:
        name: Globally unique workspace name (1-100 characters)
        description: Optional free-text description
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class WorkspaceUpdate(BaseModel):
    """Update workspace settings. Only provided fields are changed."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)


class WorkspaceDelete(BaseModel):
    """Deletion confirmation; ``confirm_name`` must equal the workspace name."""

    confirm_name: str


class WorkspaceResponse(BaseModel):
    """Workspace representation in API responses.

    Args:
        id: Unique workspace identifier
        name: Workspace name
        description: Optional description
        logo_image: Optional logo URL
        owner_id: Account that created the workspace
        member_count: Number of memberships
        my_role: Caller's role ("Owner" or "Member")
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: UUID
    name: str
    description: Optional[str] = None
    logo_image: Optional[str] = None
    owner_id: UUID
    member_count: int
    my_role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class InviteCreate(BaseModel):
    max_uses: Optional[int] = Field(default=None, ge=1, le=100)


class InviteResponse(BaseModel):
    """Newly issued invite link.

    Args:
        token: Opaque invite token
        invite_url: Frontend URL embedding the token
        scope: "workspace" or "course"
        scope_id: Target workspace or course
        max_uses: Redemption cap
        used_count: Redemptions so far
        expires_at: Expiry timestamp
    """

    token: str
    invite_url: str
    scope: InviteScope
    scope_id: UUID
    max_uses: int
    used_count: int
    expires_at: datetime


class InvitePreviewResponse(BaseModel):
    scope: InviteScope
    scope_id: UUID
    scope_name: str
    expires_at: datetime
    remaining_uses: int
    is_expired: bool


class JoinRequest(BaseModel):
    token: str = Field(..., min_length=1)
