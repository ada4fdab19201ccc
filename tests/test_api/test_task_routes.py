"""Tests for task lifecycle endpoints and their course-role gates."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from src.db.models.course import CourseRole
from src.db.models.task import TaskORM, TaskStatus
from src.exceptions import InvalidStateError


@pytest.fixture
def task() -> TaskORM:
    task = TaskORM(
        id=uuid4(),
        course_id=uuid4(),
        module_id=uuid4(),
        name="Market research",
        order_index=0,
    )
    task.status = TaskStatus.REVIEW
    return task


def _as_role(resolver, task: TaskORM, role: CourseRole) -> None:
    resolver.resolve_task_role.return_value = (task, role)


class TestReviewGate:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_participant_cannot_review(self, client, resolver, task) -> None:
        _as_role(resolver, task, CourseRole.PARTICIPANT)

        response = await client.post(f"/v1/tasks/{task.id}/review", json={"action": "approve"})

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "COURSE_ROLE_REQUIRED"
        assert body["details"] == {"required_roles": ["Expert"]}

    @pytest.mark.asyncio
    @pytest.mark.unit
    @pytest.mark.parametrize("role", [CourseRole.EXPERT, CourseRole.MANAGER])
    async def test_reviewer_approves(self, client, resolver, task, role) -> None:
        _as_role(resolver, task, role)
        with patch("src.api.routers.tasks.TaskLifecycle") as lifecycle_cls:
            lifecycle_cls.return_value.review = AsyncMock(return_value=TaskStatus.DONE)
            response = await client.post(
                f"/v1/tasks/{task.id}/review",
                json={"action": "approve", "feedback": "Good", "score": 90},
            )

        assert response.status_code == 200
        assert response.json() == {"task_id": str(task.id), "status": "Done"}

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_second_approval_is_409(self, client, resolver, task) -> None:
        _as_role(resolver, task, CourseRole.EXPERT)
        with patch("src.api.routers.tasks.TaskLifecycle") as lifecycle_cls:
            lifecycle_cls.return_value.review = AsyncMock(
                side_effect=InvalidStateError("Task is not in Review", code="TASK_NOT_IN_REVIEW")
            )
            response = await client.post(f"/v1/tasks/{task.id}/review", json={"action": "approve"})

        assert response.status_code == 409
        assert response.json()["error"] == "TASK_NOT_IN_REVIEW"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_unknown_action_rejected(self, client, resolver, task) -> None:
        _as_role(resolver, task, CourseRole.EXPERT)

        response = await client.post(f"/v1/tasks/{task.id}/review", json={"action": "publish"})

        assert response.status_code == 422


class TestProductSave:
    @pytest.mark.asyncio
    @pytest.mark.unit
    @pytest.mark.parametrize("role", [CourseRole.PARTICIPANT, CourseRole.EXPERT])
    async def test_save_refused_during_review(self, client, resolver, task, role) -> None:
        _as_role(resolver, task, role)
        with patch("src.api.routers.tasks.TaskLifecycle") as lifecycle_cls:
            lifecycle_cls.return_value.save_content = AsyncMock(
                side_effect=InvalidStateError(
                    "Task is not editable in its current state", code="TASK_NOT_EDITABLE"
                )
            )
            response = await client.put(
                f"/v1/tasks/{task.id}/product", json={"content": "late edit"}
            )

        assert response.status_code == 409
        assert response.json()["error"] == "TASK_NOT_EDITABLE"

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_task_detail_open_to_any_course_member(self, client, resolver, task) -> None:
        _as_role(resolver, task, CourseRole.PARTICIPANT)

        response = await client.get(f"/v1/tasks/{task.id}")

        assert response.status_code == 200
        assert response.json()["status"] == "Review"
        assert response.json()["name"] == "Market research"
