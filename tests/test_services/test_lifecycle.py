"""Unit tests for the task lifecycle state machine."""

import asyncio
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from src.db.models.task import ReviewAction, TaskStatus
from src.exceptions import InvalidStateError, ValidationError
from src.services.lifecycle import (
    PRODUCT_EMPTY,
    TASK_NOT_EDITABLE,
    TASK_NOT_IN_DOING,
    TASK_NOT_IN_REVIEW,
    TASK_NOT_IN_TODO,
    TaskLifecycle,
)

NOW = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def lifecycle(db_session, task_repo, audit) -> TaskLifecycle:
    return TaskLifecycle(db_session, tasks=task_repo, audit=audit)


async def _to_review(lifecycle: TaskLifecycle, task_repo, actor) -> None:
    await lifecycle.save_content(task_repo.task.id, "draft", actor)
    await lifecycle.submit(task_repo.task, actor, now=NOW)


class TestStart:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_todo_to_doing(self, lifecycle, task_repo, audit) -> None:
        status = await lifecycle.start(task_repo.task.id, uuid4())

        assert status == TaskStatus.DOING
        assert task_repo.task.status == TaskStatus.DOING
        assert audit.record.call_args.kwargs["action"] == "task.started"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_second_start_rejected(self, lifecycle, task_repo) -> None:
        await lifecycle.start(task_repo.task.id, uuid4())

        with pytest.raises(InvalidStateError) as exc_info:
            await lifecycle.start(task_repo.task.id, uuid4())

        assert exc_info.value.code == TASK_NOT_IN_TODO


class TestSaveContent:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_first_save_starts_task_implicitly(self, lifecycle, task_repo, audit) -> None:
        product = await lifecycle.save_content(task_repo.task.id, "v2 text", uuid4())

        assert task_repo.task.status == TaskStatus.DOING
        assert product.current_version == 2
        assert product.content == "v2 text"
        started = audit.record.call_args_list[0].kwargs
        assert started["action"] == "task.started"
        assert started["changes"]["implicit"] is True

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_each_save_adds_one_version(self, lifecycle, task_repo) -> None:
        actor = uuid4()
        for text in ("a", "ab", "abc"):
            await lifecycle.save_content(task_repo.task.id, text, actor, memo=f"memo {text}")

        versions = await lifecycle.list_versions(task_repo.task.id)
        assert task_repo.product.current_version == 4
        assert [v.version_number for v in versions] == [4, 3, 2]
        assert versions[0].content == "abc"

    @pytest.mark.asyncio
    @pytest.mark.unit
    @pytest.mark.parametrize("status", [TaskStatus.REVIEW, TaskStatus.DONE])
    async def test_not_editable_outside_doing(
        self, lifecycle, task_repo, db_session, status
    ) -> None:
        task_repo.task.status = status

        with pytest.raises(InvalidStateError) as exc_info:
            await lifecycle.save_content(task_repo.task.id, "late edit", uuid4())

        assert exc_info.value.code == TASK_NOT_EDITABLE
        assert task_repo.product.current_version == 1
        assert task_repo.versions == []
        db_session.rollback.assert_awaited_once()


class TestSubmit:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_doing_to_review(self, lifecycle, task_repo) -> None:
        await lifecycle.save_content(task_repo.task.id, "final", uuid4())

        status = await lifecycle.submit(task_repo.task, uuid4(), now=NOW)

        assert status == TaskStatus.REVIEW
        assert task_repo.product.submitted_at == NOW

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_empty_product_rejected(self, lifecycle, task_repo) -> None:
        await lifecycle.start(task_repo.task.id, uuid4())

        with pytest.raises(ValidationError) as exc_info:
            await lifecycle.submit(task_repo.task, uuid4())

        assert exc_info.value.code == PRODUCT_EMPTY
        assert task_repo.task.status == TaskStatus.DOING

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_whitespace_product_rejected(self, lifecycle, task_repo) -> None:
        await lifecycle.save_content(task_repo.task.id, "   \n", uuid4())

        with pytest.raises(ValidationError):
            await lifecycle.submit(task_repo.task, uuid4())

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_submit_from_todo_rejected(self, lifecycle, task_repo) -> None:
        with pytest.raises(InvalidStateError) as exc_info:
            await lifecycle.submit(task_repo.task, uuid4())

        assert exc_info.value.code == TASK_NOT_IN_DOING


class TestReview:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_approve_moves_to_done(self, lifecycle, task_repo) -> None:
        await _to_review(lifecycle, task_repo, uuid4())

        status = await lifecycle.review(
            task_repo.task.id, ReviewAction.APPROVE, uuid4(), feedback="Good", score=90, now=NOW
        )

        assert status == TaskStatus.DONE
        assert task_repo.product.review_result["action"] == "approve"
        assert task_repo.product.review_result["score"] == 90
        assert task_repo.product.reviewed_at == NOW

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_approve_twice_rejected(self, lifecycle, task_repo) -> None:
        await _to_review(lifecycle, task_repo, uuid4())
        await lifecycle.review(task_repo.task.id, ReviewAction.APPROVE, uuid4())

        with pytest.raises(InvalidStateError) as exc_info:
            await lifecycle.review(task_repo.task.id, ReviewAction.APPROVE, uuid4())

        assert exc_info.value.code == TASK_NOT_IN_REVIEW
        assert task_repo.task.status == TaskStatus.DONE
        assert len(task_repo.reviews) == 1

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_approve_while_doing_rejected(self, lifecycle, task_repo) -> None:
        await lifecycle.start(task_repo.task.id, uuid4())

        with pytest.raises(InvalidStateError):
            await lifecycle.review(task_repo.task.id, ReviewAction.APPROVE, uuid4())

        assert task_repo.task.status == TaskStatus.DOING

    @pytest.mark.asyncio
    @pytest.mark.unit
    @pytest.mark.parametrize("action", [ReviewAction.REJECT, ReviewAction.REQUEST_REVISION])
    async def test_send_back_reopens_editing(self, lifecycle, task_repo, action) -> None:
        actor = uuid4()
        await _to_review(lifecycle, task_repo, actor)

        status = await lifecycle.review(task_repo.task.id, action, uuid4(), feedback="Redo")
        product = await lifecycle.save_content(task_repo.task.id, "revised", actor)

        assert status == TaskStatus.DOING
        assert product.current_version == 3

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_concurrent_approvals_apply_once(self, lifecycle, task_repo) -> None:
        await _to_review(lifecycle, task_repo, uuid4())

        results = await asyncio.gather(
            *(
                lifecycle.review(task_repo.task.id, ReviewAction.APPROVE, uuid4())
                for _ in range(5)
            ),
            return_exceptions=True,
        )

        assert results.count(TaskStatus.DONE) == 1
        assert sum(isinstance(r, InvalidStateError) for r in results) == 4
        assert len(task_repo.reviews) == 1
