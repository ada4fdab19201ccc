"""Invite creation, preview and redemption.

Redemption is exactly-once per use: the use-count claim is a conditional
``UPDATE`` and the membership insert rides in the same transaction, so a
token can never be over-redeemed and a membership never exists without its
counted use (or vice versa).
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.lockout import utcnow
from src.db.models.course import CourseRole
from src.db.models.invite import InviteScope, InviteTokenORM
from src.db.models.workspace import WorkspaceRole
from src.db.repositories.audit_repo import AuditLogRepository
from src.db.repositories.invite_repo import InviteRepository
from src.db.repositories.membership_repo import MembershipRepository
from src.exceptions import ConflictError, GoneError, NotFoundError, ValidationError
from src.settings import Settings

logger = logging.getLogger(__name__)

INVITE_NOT_FOUND = "INVITE_NOT_FOUND"
INVITE_EXPIRED = "INVITE_EXPIRED"
INVITE_EXHAUSTED = "INVITE_EXHAUSTED"
ALREADY_MEMBER = "ALREADY_MEMBER"

MAX_INVITE_USES = 100


@dataclass(frozen=True)
class Redemption:
    """Membership granted by a successful redemption."""

    scope: InviteScope
    scope_id: UUID
    role: WorkspaceRole | CourseRole


@dataclass(frozen=True)
class InvitePreview:
    scope: InviteScope
    scope_id: UUID
    scope_name: str
    expires_at: datetime
    remaining_uses: int
    is_expired: bool


def generate_invite_token() -> str:
    return secrets.token_urlsafe(24)


class InviteService:
    """Issue and redeem invite tokens for workspaces and courses.

    Args:
        session: Request-scoped database session; redemption commits on it.
        settings: Settings with invite TTL, default cap and frontend URL.
        invites: Repository override, mostly for tests.
        audit: Audit repository override, mostly for tests.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        invites: Optional[InviteRepository] = None,
        audit: Optional[AuditLogRepository] = None,
        memberships: Optional[MembershipRepository] = None,
    ) -> None:
        self._session = session
        self._settings = settings
        self._invites = invites or InviteRepository(session)
        self._audit = audit or AuditLogRepository(session)
        self._memberships = memberships or MembershipRepository(session)

    def invite_url(self, invite: InviteTokenORM) -> str:
        base = self._settings.frontend_url.rstrip("/")
        return f"{base}/invite/{invite.scope.value}/{invite.token}"

    async def create_invite(
        self,
        scope: InviteScope,
        scope_id: UUID,
        created_by: UUID,
        max_uses: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> InviteTokenORM:
        """Create an invite. The caller must already be Owner/Manager of the scope."""
        max_uses = max_uses if max_uses is not None else self._settings.invite_default_max_uses
        if not 1 <= max_uses <= MAX_INVITE_USES:
            raise ValidationError(
                "max_uses must be between 1 and 100",
                fields={"max_uses": "must be between 1 and 100"},
            )

        now = now or utcnow()
        invite = await self._invites.create(
            token=generate_invite_token(),
            scope=scope,
            workspace_id=scope_id if scope == InviteScope.WORKSPACE else None,
            course_id=scope_id if scope == InviteScope.COURSE else None,
            created_by=created_by,
            max_uses=max_uses,
            used_count=0,
            expires_at=now + timedelta(hours=self._settings.invite_ttl_hours),
        )
        await self._session.commit()
        logger.info(
            f"invite_created: invite_id={invite.id}, scope={scope.value}, "
            f"scope_id={scope_id}, max_uses={max_uses}"
        )
        return invite

    async def preview(self, token: str, now: Optional[datetime] = None) -> InvitePreview:
        """Public view of an invite, for the landing page before login."""
        invite = await self._invites.get_by_token(token)
        if invite is None:
            raise NotFoundError("Invite not found", code=INVITE_NOT_FOUND)

        if invite.scope == InviteScope.WORKSPACE:
            scope_row = await self._memberships.get_workspace(invite.scope_id)
        else:
            scope_row = await self._memberships.get_course(invite.scope_id)
        if scope_row is None:
            raise NotFoundError("Invite not found", code=INVITE_NOT_FOUND)

        now = now or utcnow()
        return InvitePreview(
            scope=invite.scope,
            scope_id=invite.scope_id,
            scope_name=scope_row.name,
            expires_at=invite.expires_at,
            remaining_uses=max(invite.max_uses - invite.used_count, 0),
            is_expired=invite.expires_at <= now,
        )

    async def redeem(
        self,
        token: str,
        account_id: UUID,
        expected_scope: Optional[InviteScope] = None,
        now: Optional[datetime] = None,
    ) -> Redemption:
        """
        Redeem an invite for ``account_id``.

        Checks run in a fixed order: unknown token, expired, exhausted,
        already a member. The use-count claim and the membership insert are
        committed together.

        Args:
            token: Invite token string.
            account_id: Account joining the scope.
            expected_scope: If given, tokens of another scope are treated as unknown.
            now: Clock override.

        Returns:
            Redemption describing the granted membership.

        Raises:
            NotFoundError: Unknown token (``INVITE_NOT_FOUND``).
            GoneError: ``INVITE_EXPIRED`` or ``INVITE_EXHAUSTED``.
            ConflictError: Account already belongs to the scope (``ALREADY_MEMBER``).
        """
        now = now or utcnow()
        invite = await self._invites.get_by_token(token)
        if invite is None or (expected_scope is not None and invite.scope != expected_scope):
            raise NotFoundError("Invite not found", code=INVITE_NOT_FOUND)
        if invite.expires_at <= now:
            raise GoneError("Invite has expired", code=INVITE_EXPIRED)
        if invite.used_count >= invite.max_uses:
            raise GoneError("Invite has no uses left", code=INVITE_EXHAUSTED)
        if await self._invites.membership_exists(invite, account_id):
            raise ConflictError("Already a member", code=ALREADY_MEMBER)

        try:
            claimed = await self._invites.claim_use(invite.id, now)
            if not claimed:
                await self._session.rollback()
                logger.info(f"invite_claim_lost: invite_id={invite.id}, account_id={account_id}")
                raise GoneError("Invite has no uses left", code=INVITE_EXHAUSTED)

            await self._invites.add_membership(invite, account_id)
            await self._audit.record(
                action="invite.redeemed",
                resource_type=invite.scope.value,
                resource_id=invite.scope_id,
                account_id=account_id,
                changes={"invite_id": str(invite.id)},
            )
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Already a member", code=ALREADY_MEMBER) from e

        role: WorkspaceRole | CourseRole = (
            WorkspaceRole.MEMBER
            if invite.scope == InviteScope.WORKSPACE
            else CourseRole.PARTICIPANT
        )
        logger.info(
            f"invite_redeemed: invite_id={invite.id}, account_id={account_id}, "
            f"scope={invite.scope.value}, scope_id={invite.scope_id}"
        )
        return Redemption(scope=invite.scope, scope_id=invite.scope_id, role=role)
