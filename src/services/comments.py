"""Threaded comments on the Guide, Prompt and Product tabs."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.task import CommentORM, TabType
from src.db.repositories.comment_repo import CommentRepository
from src.exceptions import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CommentService:
    """Comments nest one level: a reply may not itself be replied to."""

    def __init__(self, session: AsyncSession, comments: Optional[CommentRepository] = None) -> None:
        self._session = session
        self._comments = comments or CommentRepository(session)

    async def create(
        self,
        task_id: UUID,
        tab_type: TabType,
        author_id: UUID,
        body: str,
        parent_id: Optional[UUID] = None,
        prompt_account_id: Optional[UUID] = None,
    ) -> CommentORM:
        if not body.strip():
            raise ValidationError("Comment is empty", fields={"body": "must not be empty"})

        if parent_id is not None:
            parent = await self._comments.get_by_id(parent_id)
            if parent is None or parent.task_id != task_id or parent.tab_type != tab_type:
                raise NotFoundError("Parent comment not found", code="COMMENT_NOT_FOUND")
            if parent.parent_id is not None:
                raise ValidationError(
                    "Replies cannot be nested",
                    code="COMMENT_DEPTH_EXCEEDED",
                    fields={"parent_id": "must reference a top-level comment"},
                )
            prompt_account_id = parent.prompt_account_id

        comment = await self._comments.create(
            task_id=task_id,
            tab_type=tab_type,
            author_id=author_id,
            body=body,
            parent_id=parent_id,
            prompt_account_id=prompt_account_id if tab_type == TabType.PROMPT else None,
        )
        await self._session.commit()
        logger.info(f"comment_created: comment_id={comment.id}, task_id={task_id}")
        return comment

    async def list_for_tab(
        self,
        task_id: UUID,
        tab_type: TabType,
        prompt_account_id: Optional[UUID] = None,
    ) -> list[CommentORM]:
        return await self._comments.list_for_tab(task_id, tab_type, prompt_account_id)

    async def edit(self, task_id: UUID, comment_id: UUID, author_id: UUID, body: str) -> CommentORM:
        """Edit one's own comment and flag it as edited."""
        comment = await self._comments.get_by_id(comment_id)
        if comment is None or comment.task_id != task_id:
            raise NotFoundError("Comment not found", code="COMMENT_NOT_FOUND")
        if comment.author_id != author_id:
            raise ForbiddenError(
                "Only the author can edit a comment", code="COMMENT_AUTHOR_REQUIRED"
            )
        if not body.strip():
            raise ValidationError("Comment is empty", fields={"body": "must not be empty"})

        comment.body = body
        comment.is_edited = True
        await self._session.flush()
        await self._session.commit()
        return comment
