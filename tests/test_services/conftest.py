"""In-memory repositories for service tests.

The fakes keep the contract of the real repositories (atomic conditional
updates return a bool or the new value) and yield to the event loop inside
every call, so concurrent callers interleave the way separate requests do.
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.account import AccountORM
from src.db.models.invite import InviteScope, InviteTokenORM
from src.db.models.task import ProductORM, ProductVersionORM, TaskORM, TaskStatus
from src.db.models.workspace import WorkspaceORM, WorkspaceRole
from src.db.repositories.audit_repo import AuditLogRepository
from src.settings import Settings


class FakeAccountRepository:
    def __init__(self, *accounts: AccountORM) -> None:
        self.accounts = {account.id: account for account in accounts}

    async def get_by_email(self, email: str) -> Optional[AccountORM]:
        await asyncio.sleep(0)
        email = email.strip().lower()
        return next((a for a in self.accounts.values() if a.email.lower() == email), None)

    async def get_by_id(self, id: UUID) -> Optional[AccountORM]:
        return self.accounts.get(id)

    async def get_by_nick_name(self, nick_name: str) -> Optional[AccountORM]:
        return next((a for a in self.accounts.values() if a.nick_name == nick_name), None)

    async def create(self, **kwargs) -> AccountORM:
        account = AccountORM(
            id=uuid4(), is_system_admin=False, failed_attempt_count=0, locked_until=None, **kwargs
        )
        self.accounts[account.id] = account
        return account

    async def register_failed_login(
        self, account_id: UUID, now: datetime, max_attempts: int, lock_duration: timedelta
    ) -> tuple[int, Optional[datetime]]:
        account = self.accounts[account_id]
        account.failed_attempt_count += 1
        if account.failed_attempt_count >= max_attempts:
            account.locked_until = now + lock_duration
        return account.failed_attempt_count, account.locked_until

    async def reset_failed_logins(self, account_id: UUID) -> None:
        account = self.accounts[account_id]
        account.failed_attempt_count = 0
        account.locked_until = None


class FakeInviteRepository:
    def __init__(self, invite: InviteTokenORM, members: Optional[set[UUID]] = None) -> None:
        self.invite = invite
        self.members = set(members or ())

    async def get_by_token(self, token: str) -> Optional[InviteTokenORM]:
        await asyncio.sleep(0)
        return self.invite if token == self.invite.token else None

    async def membership_exists(self, invite: InviteTokenORM, account_id: UUID) -> bool:
        await asyncio.sleep(0)
        return account_id in self.members

    async def claim_use(self, invite_id: UUID, now: datetime) -> bool:
        await asyncio.sleep(0)
        invite = self.invite
        if invite.used_count < invite.max_uses and invite.expires_at > now:
            invite.used_count += 1
            return True
        return False

    async def add_membership(self, invite: InviteTokenORM, account_id: UUID) -> None:
        await asyncio.sleep(0)
        if account_id in self.members:
            raise IntegrityError("INSERT INTO membership", {}, Exception("duplicate key"))
        self.members.add(account_id)


class FakeTaskRepository:
    def __init__(self, task: TaskORM, product: ProductORM) -> None:
        self.task = task
        self.product = product
        self.versions: list[ProductVersionORM] = []
        self.reviews: list[dict] = []

    async def get_product(self, task_id: UUID) -> Optional[ProductORM]:
        return self.product if task_id == self.task.id else None

    async def transition(self, task_id: UUID, expected: TaskStatus, target: TaskStatus) -> bool:
        await asyncio.sleep(0)
        if task_id != self.task.id or self.task.status != expected:
            return False
        self.task.status = target
        return True

    async def save_product_content(
        self, task_id: UUID, content: str, editor_id: UUID
    ) -> Optional[int]:
        if self.task.status != TaskStatus.DOING:
            return None
        self.product.content = content
        self.product.current_version += 1
        self.product.last_editor_id = editor_id
        return self.product.current_version

    async def mark_submitted(self, task_id: UUID, submitted_at: datetime) -> None:
        self.product.submitted_at = submitted_at

    async def record_review(self, task_id: UUID, result: dict, reviewed_at: datetime) -> None:
        self.product.review_result = result
        self.product.reviewed_at = reviewed_at
        self.reviews.append(result)

    async def add_version(
        self,
        product_id: UUID,
        version_number: int,
        content: str,
        editor_id: UUID,
        memo: Optional[str] = None,
    ) -> ProductVersionORM:
        version = ProductVersionORM(
            id=uuid4(),
            product_id=product_id,
            version_number=version_number,
            content=content,
            editor_id=editor_id,
            memo=memo,
        )
        self.versions.append(version)
        return version

    async def list_versions(self, product_id: UUID) -> list[ProductVersionORM]:
        return sorted(self.versions, key=lambda v: v.version_number, reverse=True)


class FakeWorkspaceRepository:
    def __init__(self) -> None:
        self.rows: dict[UUID, WorkspaceORM] = {}

    async def find_one(self, **filters) -> Optional[WorkspaceORM]:
        for row in self.rows.values():
            if all(getattr(row, key) == value for key, value in filters.items()):
                return row
        return None

    async def create(self, **kwargs) -> WorkspaceORM:
        workspace = WorkspaceORM(id=uuid4(), **kwargs)
        self.rows[workspace.id] = workspace
        return workspace


class FakeMembershipRepository:
    def __init__(self, workspaces: FakeWorkspaceRepository) -> None:
        self.workspaces = workspaces
        self.workspace_roles: dict[tuple[UUID, UUID], WorkspaceRole] = {}

    async def get_workspace(self, workspace_id: UUID) -> Optional[WorkspaceORM]:
        return self.workspaces.rows.get(workspace_id)

    async def get_workspace_role(
        self, workspace_id: UUID, account_id: UUID
    ) -> Optional[WorkspaceRole]:
        return self.workspace_roles.get((workspace_id, account_id))

    async def add_workspace_member(
        self, workspace_id: UUID, account_id: UUID, role: WorkspaceRole
    ) -> None:
        self.workspace_roles[(workspace_id, account_id)] = role

    async def count_workspace_members(self, workspace_id: UUID) -> int:
        return sum(1 for ws_id, _ in self.workspace_roles if ws_id == workspace_id)

    async def list_workspaces_for_account(
        self, account_id: UUID
    ) -> list[tuple[WorkspaceORM, WorkspaceRole]]:
        return [
            (self.workspaces.rows[ws_id], role)
            for (ws_id, acc_id), role in self.workspace_roles.items()
            if acc_id == account_id
        ]


@pytest.fixture
def db_session() -> AsyncSession:
    """Mock AsyncSession; the fakes above hold the state."""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.commit = AsyncMock()
    mock_session.rollback = AsyncMock()
    mock_session.flush = AsyncMock()
    mock_session.add = MagicMock()
    return mock_session


@pytest.fixture
def settings() -> Settings:
    return Settings(
        frontend_url="http://localhost:5173",
        max_login_attempts=5,
        lock_duration_minutes=5,
        invite_ttl_hours=24,
        invite_default_max_uses=100,
    )


@pytest.fixture
def audit() -> AsyncMock:
    return AsyncMock(spec=AuditLogRepository)


@pytest.fixture
def account() -> AccountORM:
    return AccountORM(
        id=uuid4(),
        email="choi@example.com",
        nick_name="choi",
        real_name="Choi",
        is_system_admin=False,
        failed_attempt_count=0,
        locked_until=None,
    )


@pytest.fixture
def accounts(account: AccountORM) -> FakeAccountRepository:
    return FakeAccountRepository(account)


@pytest.fixture
def make_invite_repo():
    """Build a FakeInviteRepository around a fresh invite token."""

    def _make(
        now: datetime,
        scope: InviteScope = InviteScope.WORKSPACE,
        max_uses: int = 1,
        used_count: int = 0,
        ttl: timedelta = timedelta(hours=24),
        members: Optional[set[UUID]] = None,
    ) -> FakeInviteRepository:
        scope_id = uuid4()
        invite = InviteTokenORM(
            id=uuid4(),
            token="tok-" + scope_id.hex[:12],
            scope=scope,
            workspace_id=scope_id if scope == InviteScope.WORKSPACE else None,
            course_id=scope_id if scope == InviteScope.COURSE else None,
            max_uses=max_uses,
            used_count=used_count,
            expires_at=now + ttl,
        )
        return FakeInviteRepository(invite, members)

    return _make


@pytest.fixture
def task_repo() -> FakeTaskRepository:
    """A Todo task whose product is still empty (version 1)."""
    task = TaskORM(id=uuid4(), course_id=uuid4(), module_id=uuid4(), name="Market research")
    task.status = TaskStatus.TODO
    product = ProductORM(id=uuid4(), task_id=task.id, content="", current_version=1)
    return FakeTaskRepository(task, product)


@pytest.fixture
def workspace_repos() -> tuple[FakeWorkspaceRepository, FakeMembershipRepository]:
    workspaces = FakeWorkspaceRepository()
    return workspaces, FakeMembershipRepository(workspaces)
