"""Comment threads on a task's Guide, Prompt and Product tabs."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.schemas.tasks import CommentCreate, CommentResponse, CommentUpdate
from src.auth.dependencies import TaskAccess, require_task_role
from src.db.models.task import CommentORM, TabType
from src.services.comments import CommentService

router = APIRouter(prefix="/v1/tasks/{task_id}/comments", tags=["comments"])


def comment_response(comment: CommentORM) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        task_id=comment.task_id,
        tab_type=comment.tab_type,
        author_id=comment.author_id,
        parent_id=comment.parent_id,
        prompt_account_id=comment.prompt_account_id,
        body=comment.body,
        is_edited=comment.is_edited,
        created_at=comment.created_at,
    )


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """
    Post a comment or a reply.

    Raises:
        NotFoundError: Parent not on the same task and tab (COMMENT_NOT_FOUND).
        ValidationError: Parent is itself a reply (COMMENT_DEPTH_EXCEEDED).
    """
    comment = await CommentService(db).create(
        access.task.id,
        data.tab_type,
        access.principal.id,
        data.body,
        parent_id=data.parent_id,
        prompt_account_id=data.prompt_account_id,
    )
    return comment_response(comment)


@router.get("", response_model=list[CommentResponse])
async def list_comments(
    tab_type: TabType = Query(...),
    prompt_account_id: Optional[UUID] = Query(default=None),
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
) -> list[CommentResponse]:
    comments = await CommentService(db).list_for_tab(access.task.id, tab_type, prompt_account_id)
    return [comment_response(comment) for comment in comments]


@router.put("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: UUID,
    data: CommentUpdate,
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    comment = await CommentService(db).edit(
        access.task.id, comment_id, access.principal.id, data.body
    )
    return comment_response(comment)
