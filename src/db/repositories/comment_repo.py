"""Comment and prompt-history repositories for the task tabs."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.task import CommentORM, PromptORM, TabType
from src.db.repositories.base import BaseRepository


class CommentRepository(BaseRepository[CommentORM]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CommentORM)

    async def list_for_tab(
        self,
        task_id: UUID,
        tab_type: TabType,
        prompt_account_id: Optional[UUID] = None,
    ) -> list[CommentORM]:
        """Comments on one tab, oldest first.

        Prompt-tab comments are scoped to the participant whose prompt
        history they discuss; pass ``prompt_account_id`` to filter on it.
        """
        stmt = select(CommentORM).where(
            CommentORM.task_id == task_id, CommentORM.tab_type == tab_type
        )
        if prompt_account_id is not None:
            stmt = stmt.where(CommentORM.prompt_account_id == prompt_account_id)
        stmt = stmt.order_by(CommentORM.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class PromptRepository(BaseRepository[PromptORM]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PromptORM)

    async def list_for_account(
        self, task_id: UUID, account_id: UUID, limit: int = 50
    ) -> list[PromptORM]:
        stmt = (
            select(PromptORM)
            .where(PromptORM.task_id == task_id, PromptORM.account_id == account_id)
            .order_by(PromptORM.created_at.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
