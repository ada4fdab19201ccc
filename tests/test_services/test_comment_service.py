"""Unit tests for threaded task comments."""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from src.db.models.task import CommentORM, TabType
from src.db.repositories.comment_repo import CommentRepository
from src.exceptions import ForbiddenError, NotFoundError, ValidationError
from src.services.comments import CommentService


@pytest.fixture
def comments() -> AsyncMock:
    mock = AsyncMock(spec=CommentRepository)
    mock.create.side_effect = lambda **kwargs: CommentORM(id=uuid4(), is_edited=False, **kwargs)
    return mock


def _comment(task_id, tab_type=TabType.GUIDE, parent_id=None, **kwargs) -> CommentORM:
    return CommentORM(
        id=uuid4(),
        task_id=task_id,
        tab_type=tab_type,
        author_id=kwargs.pop("author_id", uuid4()),
        parent_id=parent_id,
        body="hi",
        is_edited=False,
        **kwargs,
    )


class TestCreateComment:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_reply_to_top_level(self, db_session, comments) -> None:
        task_id = uuid4()
        parent = _comment(task_id)
        comments.get_by_id.return_value = parent

        reply = await CommentService(db_session, comments).create(
            task_id, TabType.GUIDE, uuid4(), "reply", parent_id=parent.id
        )

        assert reply.parent_id == parent.id
        db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_reply_to_reply_rejected(self, db_session, comments) -> None:
        task_id = uuid4()
        reply = _comment(task_id, parent_id=uuid4())
        comments.get_by_id.return_value = reply

        with pytest.raises(ValidationError) as exc_info:
            await CommentService(db_session, comments).create(
                task_id, TabType.GUIDE, uuid4(), "nested", parent_id=reply.id
            )

        assert exc_info.value.code == "COMMENT_DEPTH_EXCEEDED"
        comments.create.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_parent_on_other_tab_not_found(self, db_session, comments) -> None:
        task_id = uuid4()
        comments.get_by_id.return_value = _comment(task_id, tab_type=TabType.PRODUCT)

        with pytest.raises(NotFoundError):
            await CommentService(db_session, comments).create(
                task_id, TabType.GUIDE, uuid4(), "x", parent_id=uuid4()
            )

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_prompt_reply_inherits_thread_owner(self, db_session, comments) -> None:
        task_id, owner = uuid4(), uuid4()
        parent = _comment(task_id, tab_type=TabType.PROMPT, prompt_account_id=owner)
        comments.get_by_id.return_value = parent

        reply = await CommentService(db_session, comments).create(
            task_id, TabType.PROMPT, uuid4(), "nice", parent_id=parent.id
        )

        assert reply.prompt_account_id == owner

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_empty_body_rejected(self, db_session, comments) -> None:
        with pytest.raises(ValidationError):
            await CommentService(db_session, comments).create(uuid4(), TabType.GUIDE, uuid4(), " ")


class TestEditComment:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_author_edit_sets_flag(self, db_session, comments) -> None:
        task_id, author = uuid4(), uuid4()
        comment = _comment(task_id, author_id=author)
        comments.get_by_id.return_value = comment

        edited = await CommentService(db_session, comments).edit(
            task_id, comment.id, author, "updated"
        )

        assert edited.body == "updated"
        assert edited.is_edited is True

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_other_account_forbidden(self, db_session, comments) -> None:
        task_id = uuid4()
        comments.get_by_id.return_value = _comment(task_id)

        with pytest.raises(ForbiddenError):
            await CommentService(db_session, comments).edit(task_id, uuid4(), uuid4(), "x")
