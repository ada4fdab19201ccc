"""Append-only audit log repository."""

from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.tracking import AuditLogORM
from src.db.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLogORM]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AuditLogORM)

    async def record(
        self,
        action: str,
        resource_type: str,
        resource_id: Optional[UUID],
        account_id: Optional[UUID],
        changes: Optional[dict[str, Any]] = None,
    ) -> AuditLogORM:
        """Append an entry. Flushed with the caller's transaction."""
        entry = AuditLogORM(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            account_id=account_id,
            changes=changes,
        )
        self._session.add(entry)
        await self._session.flush()
        return entry

    async def list_for_resource(self, resource_type: str, resource_id: UUID) -> list[AuditLogORM]:
        stmt = (
            select(AuditLogORM)
            .where(
                AuditLogORM.resource_type == resource_type,
                AuditLogORM.resource_id == resource_id,
            )
            .order_by(AuditLogORM.created_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
