"""Public invite preview shown on the landing page before login."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_settings
from src.api.schemas.workspaces import InvitePreviewResponse
from src.services.invites import InviteService
from src.settings import Settings

router = APIRouter(prefix="/v1/invites", tags=["invites"])


@router.get("/{token}", response_model=InvitePreviewResponse)
async def preview_invite(
    token: str,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> InvitePreviewResponse:
    preview = await InviteService(db, settings).preview(token)
    return InvitePreviewResponse(
        scope=preview.scope,
        scope_id=preview.scope_id,
        scope_name=preview.scope_name,
        expires_at=preview.expires_at,
        remaining_uses=preview.remaining_uses,
        is_expired=preview.is_expired,
    )
