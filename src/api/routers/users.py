"""Profile endpoints for the authenticated account."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_identity_provider, get_settings
from src.api.routers.auth import account_response
from src.api.schemas.auth import AccountResponse, ProfileUpdate
from src.auth.dependencies import get_current_principal
from src.auth.identity import IdentityProvider, Principal
from src.services.accounts import AccountService
from src.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/users", tags=["users"])


@router.put("/profile", response_model=AccountResponse)
async def update_profile(
    update: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> AccountResponse:
    """
    Update name, nickname and phone number of the caller's account.

    Raises:
        ConflictError: Nickname already used by another account (USER_002).
    """
    service = AccountService(db, provider, settings)
    account = await service.update_profile(
        principal.id,
        real_name=update.real_name,
        nick_name=update.nick_name,
        phone_number=update.phone_number,
    )
    logger.info(f"profile_updated: account_id={principal.id}")
    return account_response(account)
