"""Account repository, including the atomic failed-login counter."""

from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.account import AccountORM
from src.db.repositories.base import BaseRepository


class AccountRepository(BaseRepository[AccountORM]):
    """Repository for local account records.

    Credentials live with the identity provider; this table only carries
    profile data, the system-admin flag and lockout bookkeeping.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AccountORM)

    async def get_by_email(self, email: str) -> Optional[AccountORM]:
        """Look up an account by email, case-insensitively."""
        stmt = select(AccountORM).where(func.lower(AccountORM.email) == email.strip().lower())
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_nick_name(self, nick_name: str) -> Optional[AccountORM]:
        stmt = select(AccountORM).where(AccountORM.nick_name == nick_name)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def register_failed_login(
        self,
        account_id: UUID,
        now: datetime,
        max_attempts: int,
        lock_duration: timedelta,
    ) -> tuple[int, Optional[datetime]]:
        """Increment the failure counter and lock the account at the threshold.

        Runs as one ``UPDATE ... RETURNING`` so concurrent failures cannot
        under-count.

        Returns:
            Tuple of (new failed_attempt_count, locked_until).
        """
        new_count = AccountORM.failed_attempt_count + 1
        stmt = (
            update(AccountORM)
            .where(AccountORM.id == account_id)
            .values(
                failed_attempt_count=new_count,
                locked_until=case(
                    (new_count >= max_attempts, now + lock_duration),
                    else_=AccountORM.locked_until,
                ),
            )
            .returning(AccountORM.failed_attempt_count, AccountORM.locked_until)
        )
        result = await self._session.execute(stmt)
        count, locked_until = result.one()
        return count, locked_until

    async def reset_failed_logins(self, account_id: UUID) -> None:
        """Clear the failure counter and any lock."""
        stmt = (
            update(AccountORM)
            .where(AccountORM.id == account_id)
            .values(failed_attempt_count=0, locked_until=None)
        )
        await self._session.execute(stmt)
