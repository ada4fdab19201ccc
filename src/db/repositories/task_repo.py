"""Task and product repository with conditional state transitions."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.task import ProductORM, ProductVersionORM, TaskORM, TaskStatus
from src.db.repositories.base import BaseRepository


class TaskRepository(BaseRepository[TaskORM]):
    """Repository for tasks, their product and product versions.

    Every status change goes through ``transition`` so that a retried or
    concurrent request observes the already-moved status and fails instead
    of applying twice.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskORM)

    async def get_product(self, task_id: UUID) -> Optional[ProductORM]:
        stmt = (
            select(ProductORM)
            .where(ProductORM.task_id == task_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_course(
        self,
        course_id: UUID,
        status: Optional[TaskStatus] = None,
        module_id: Optional[UUID] = None,
    ) -> list[TaskORM]:
        stmt = select(TaskORM).where(TaskORM.course_id == course_id)
        if status is not None:
            stmt = stmt.where(TaskORM.status == status)
        if module_id is not None:
            stmt = stmt.where(TaskORM.module_id == module_id)
        stmt = stmt.order_by(TaskORM.module_id, TaskORM.order_index)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def transition(self, task_id: UUID, expected: TaskStatus, target: TaskStatus) -> bool:
        """Move a task from ``expected`` to ``target`` status.

        Returns:
            True if the row was in ``expected`` and was moved, False otherwise.
        """
        stmt = (
            update(TaskORM)
            .where(TaskORM.id == task_id, TaskORM.status == expected)
            .values(status=target)
            .returning(TaskORM.id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def save_product_content(
        self, task_id: UUID, content: str, editor_id: UUID
    ) -> Optional[int]:
        """Write product content and bump its version, only while the task is Doing.

        Returns:
            The new ``current_version``, or None if the task is not in Doing.
        """
        doing_task = select(TaskORM.id).where(
            TaskORM.id == task_id, TaskORM.status == TaskStatus.DOING
        )
        stmt = (
            update(ProductORM)
            .where(ProductORM.task_id.in_(doing_task))
            .values(
                content=content,
                current_version=ProductORM.current_version + 1,
                last_editor_id=editor_id,
            )
            .returning(ProductORM.current_version)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_submitted(self, task_id: UUID, submitted_at: datetime) -> None:
        stmt = (
            update(ProductORM)
            .where(ProductORM.task_id == task_id)
            .values(submitted_at=submitted_at)
        )
        await self._session.execute(stmt)

    async def record_review(self, task_id: UUID, result: dict, reviewed_at: datetime) -> None:
        stmt = (
            update(ProductORM)
            .where(ProductORM.task_id == task_id)
            .values(review_result=result, reviewed_at=reviewed_at)
        )
        await self._session.execute(stmt)

    async def add_version(
        self,
        product_id: UUID,
        version_number: int,
        content: str,
        editor_id: UUID,
        memo: Optional[str] = None,
    ) -> ProductVersionORM:
        version = ProductVersionORM(
            product_id=product_id,
            version_number=version_number,
            content=content,
            editor_id=editor_id,
            memo=memo,
        )
        self._session.add(version)
        await self._session.flush()
        return version

    async def list_versions(self, product_id: UUID) -> list[ProductVersionORM]:
        stmt = (
            select(ProductVersionORM)
            .where(ProductVersionORM.product_id == product_id)
            .order_by(ProductVersionORM.version_number.desc())
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
