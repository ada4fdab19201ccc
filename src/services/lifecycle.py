"""Task lifecycle: Todo -> Doing -> Review -> Done, with Review -> Doing on revision.

Transitions are conditional updates on the expected origin status. A retry
or a concurrent request that lost the race sees zero affected rows and gets
``InvalidStateError``; nothing is applied twice.
"""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.lockout import utcnow
from src.db.models.task import ProductORM, ProductVersionORM, ReviewAction, TaskORM, TaskStatus
from src.db.repositories.audit_repo import AuditLogRepository
from src.db.repositories.task_repo import TaskRepository
from src.exceptions import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TASK_NOT_IN_TODO = "TASK_NOT_IN_TODO"
TASK_NOT_IN_DOING = "TASK_NOT_IN_DOING"
TASK_NOT_IN_REVIEW = "TASK_NOT_IN_REVIEW"
TASK_NOT_EDITABLE = "TASK_NOT_EDITABLE"
PRODUCT_EMPTY = "PRODUCT_EMPTY"

REVIEW_TARGETS: dict[ReviewAction, TaskStatus] = {
    ReviewAction.APPROVE: TaskStatus.DONE,
    ReviewAction.REJECT: TaskStatus.DOING,
    ReviewAction.REQUEST_REVISION: TaskStatus.DOING,
}


class TaskLifecycle:
    """Drives a task and its product through the pipeline.

    Role checks happen before these methods are called; this class only
    enforces state preconditions.

    Args:
        session: Request-scoped database session; each action commits on it.
        tasks: Repository override, mostly for tests.
        audit: Audit repository override, mostly for tests.
    """

    def __init__(
        self,
        session: AsyncSession,
        tasks: Optional[TaskRepository] = None,
        audit: Optional[AuditLogRepository] = None,
    ) -> None:
        self._session = session
        self._tasks = tasks or TaskRepository(session)
        self._audit = audit or AuditLogRepository(session)

    async def _product(self, task_id: UUID) -> ProductORM:
        product = await self._tasks.get_product(task_id)
        if product is None:
            raise NotFoundError("Product not found", code="PRODUCT_NOT_FOUND")
        return product

    async def _record(
        self, task_id: UUID, actor_id: UUID, action: str, changes: dict[str, Any]
    ) -> None:
        await self._audit.record(
            action=action,
            resource_type="task",
            resource_id=task_id,
            account_id=actor_id,
            changes=changes,
        )

    async def get_product(self, task_id: UUID) -> ProductORM:
        return await self._product(task_id)

    async def list_versions(self, task_id: UUID) -> list[ProductVersionORM]:
        product = await self._product(task_id)
        return await self._tasks.list_versions(product.id)

    async def start(self, task_id: UUID, actor_id: UUID) -> TaskStatus:
        """Explicit Todo -> Doing."""
        if not await self._tasks.transition(task_id, TaskStatus.TODO, TaskStatus.DOING):
            raise InvalidStateError("Task is not in Todo", code=TASK_NOT_IN_TODO)
        await self._record(
            task_id, actor_id, "task.started", {"from": "Todo", "to": "Doing", "implicit": False}
        )
        await self._session.commit()
        logger.info(f"task_started: task_id={task_id}, actor_id={actor_id}")
        return TaskStatus.DOING

    async def save_content(
        self,
        task_id: UUID,
        content: str,
        actor_id: UUID,
        memo: Optional[str] = None,
    ) -> ProductORM:
        """
        Save product content as a new version.

        A save while the task is still ``Todo`` starts it first. The version
        increments once per save and only while the task is ``Doing``.

        Raises:
            InvalidStateError: Task is in Review or Done (``TASK_NOT_EDITABLE``).
        """
        product = await self._product(task_id)

        if await self._tasks.transition(task_id, TaskStatus.TODO, TaskStatus.DOING):
            await self._record(
                task_id, actor_id, "task.started", {"from": "Todo", "to": "Doing", "implicit": True}
            )
            logger.info(f"task_started: task_id={task_id}, actor_id={actor_id}, implicit=True")

        version = await self._tasks.save_product_content(task_id, content, actor_id)
        if version is None:
            await self._session.rollback()
            raise InvalidStateError(
                "Task is not editable in its current state", code=TASK_NOT_EDITABLE
            )

        await self._tasks.add_version(product.id, version, content, actor_id, memo)
        await self._session.commit()
        logger.info(f"product_saved: task_id={task_id}, version={version}, actor_id={actor_id}")
        return await self._product(task_id)

    async def submit(
        self, task: TaskORM, actor_id: UUID, now: Optional[datetime] = None
    ) -> TaskStatus:
        """
        Doing -> Review. The product must have non-empty content.

        Raises:
            InvalidStateError: Task is not in Doing (``TASK_NOT_IN_DOING``).
            ValidationError: Product content is empty (``PRODUCT_EMPTY``).
        """
        if task.status != TaskStatus.DOING:
            raise InvalidStateError("Task is not in Doing", code=TASK_NOT_IN_DOING)

        product = await self._product(task.id)
        if not (product.content or "").strip():
            raise ValidationError(
                "Product content is empty",
                code=PRODUCT_EMPTY,
                fields={"content": "must not be empty"},
            )

        if not await self._tasks.transition(task.id, TaskStatus.DOING, TaskStatus.REVIEW):
            raise InvalidStateError("Task is not in Doing", code=TASK_NOT_IN_DOING)

        now = now or utcnow()
        await self._tasks.mark_submitted(task.id, now)
        await self._record(
            task.id,
            actor_id,
            "task.submitted",
            {"from": "Doing", "to": "Review", "version": product.current_version},
        )
        await self._session.commit()
        logger.info(f"task_submitted: task_id={task.id}, actor_id={actor_id}")
        return TaskStatus.REVIEW

    async def review(
        self,
        task_id: UUID,
        action: ReviewAction,
        actor_id: UUID,
        feedback: Optional[str] = None,
        score: Optional[int] = None,
        rank: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TaskStatus:
        """
        Close a review cycle: approve -> Done, reject/request_revision -> Doing.

        Raises:
            InvalidStateError: Task is not in Review (``TASK_NOT_IN_REVIEW``).
        """
        target = REVIEW_TARGETS[action]
        if not await self._tasks.transition(task_id, TaskStatus.REVIEW, target):
            raise InvalidStateError("Task is not in Review", code=TASK_NOT_IN_REVIEW)

        now = now or utcnow()
        result = {
            "action": action.value,
            "score": score,
            "rank": rank,
            "feedback": feedback,
            "reviewer_id": str(actor_id),
        }
        await self._tasks.record_review(task_id, result, now)
        await self._record(
            task_id,
            actor_id,
            "task.reviewed",
            {"from": "Review", "to": target.value, "action": action.value},
        )
        await self._session.commit()
        logger.info(
            f"task_reviewed: task_id={task_id}, action={action.value}, "
            f"status={target.value}, actor_id={actor_id}"
        )
        return target
