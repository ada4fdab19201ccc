"""Account lockout after repeated failed password logins."""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.db.models.account import AccountORM
from src.db.repositories.account_repo import AccountRepository
from src.exceptions import AccountLockedError
from src.settings import Settings

logger = logging.getLogger(__name__)

MAX_LOGIN_ATTEMPTS = 5
LOCK_DURATION = timedelta(minutes=5)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def remaining_lock_seconds(locked_until: Optional[datetime], now: datetime) -> int:
    """Whole seconds until ``locked_until``, rounded up. 0 when not locked."""
    if locked_until is None or locked_until <= now:
        return 0
    return math.ceil((locked_until - now).total_seconds())


def ensure_not_locked(account: AccountORM, now: Optional[datetime] = None) -> None:
    """Raise AccountLockedError if the account's lock has not yet expired."""
    now = now or utcnow()
    retry_after = remaining_lock_seconds(account.locked_until, now)
    if retry_after > 0:
        logger.warning(
            f"account_locked: account_id={account.id}, retry_after={retry_after}"
        )
        raise AccountLockedError(retry_after=retry_after)


class LockoutPolicy:
    """Failure counting for the password-login path.

    The lock check must run before the identity provider is contacted, so a
    locked account never costs a provider round trip.

    Args:
        accounts: Repository used for the atomic counter updates.
        max_attempts: Consecutive failures that trigger a lock.
        lock_duration: How long a triggered lock lasts.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        max_attempts: int = MAX_LOGIN_ATTEMPTS,
        lock_duration: timedelta = LOCK_DURATION,
    ) -> None:
        self._accounts = accounts
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration

    @classmethod
    def from_settings(cls, accounts: AccountRepository, settings: Settings) -> "LockoutPolicy":
        return cls(
            accounts,
            max_attempts=settings.max_login_attempts,
            lock_duration=timedelta(minutes=settings.lock_duration_minutes),
        )

    def check(self, account: AccountORM, now: Optional[datetime] = None) -> None:
        ensure_not_locked(account, now)

    async def record_failure(
        self, account: AccountORM, now: Optional[datetime] = None
    ) -> tuple[int, Optional[datetime]]:
        """Count one failed password check.

        Returns:
            Tuple of (failed_attempt_count, locked_until) after the update.
        """
        now = now or utcnow()
        count, locked_until = await self._accounts.register_failed_login(
            account.id, now, self.max_attempts, self.lock_duration
        )
        if count >= self.max_attempts:
            logger.warning(
                f"account_lock_applied: account_id={account.id}, attempts={count}, "
                f"locked_until={locked_until.isoformat() if locked_until else None}"
            )
        else:
            logger.info(f"login_failure_recorded: account_id={account.id}, attempts={count}")
        return count, locked_until

    async def record_success(self, account: AccountORM) -> None:
        await self._accounts.reset_failed_logins(account.id)
        logger.info(f"login_failures_reset: account_id={account.id}")
