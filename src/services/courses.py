"""Courses, modules, tasks and teams."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.account import AccountORM
from src.db.models.course import (
    CourseORM,
    CourseRole,
    CourseStatus,
    ModuleORM,
    TeamORM,
    TeamRole,
)
from src.db.models.task import ProductORM, TaskORM, TaskStatus
from src.db.repositories.base import BaseRepository
from src.db.repositories.membership_repo import MembershipRepository
from src.db.repositories.task_repo import TaskRepository
from src.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourseView:
    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str]
    status: CourseStatus
    my_role: CourseRole
    created_at: Optional[datetime] = None


class CourseService:
    def __init__(
        self,
        session: AsyncSession,
        memberships: Optional[MembershipRepository] = None,
        tasks: Optional[TaskRepository] = None,
    ) -> None:
        self._session = session
        self._memberships = memberships or MembershipRepository(session)
        self._tasks = tasks or TaskRepository(session)
        self._courses = BaseRepository(session, CourseORM)
        self._modules = BaseRepository(session, ModuleORM)
        self._teams = BaseRepository(session, TeamORM)

    # Courses

    async def create_course(
        self,
        workspace_id: UUID,
        creator_id: UUID,
        name: str,
        description: Optional[str] = None,
        status: CourseStatus = CourseStatus.DRAFT,
    ) -> CourseView:
        """Create a course; the creator becomes its Manager in the same transaction."""
        course = await self._courses.create(
            workspace_id=workspace_id, name=name, description=description, status=status
        )
        await self._memberships.add_course_member(course.id, creator_id, CourseRole.MANAGER)
        await self._session.commit()
        logger.info(f"course_created: course_id={course.id}, workspace_id={workspace_id}")
        return self._view(course, CourseRole.MANAGER)

    async def get_view(self, course_id: UUID, role: CourseRole) -> CourseView:
        course = await self._memberships.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found", code="COURSE_NOT_FOUND")
        return self._view(course, role)

    @staticmethod
    def _view(course: CourseORM, role: CourseRole) -> CourseView:
        return CourseView(
            id=course.id,
            workspace_id=course.workspace_id,
            name=course.name,
            description=course.description,
            status=course.status,
            my_role=role,
            created_at=course.created_at,
        )

    async def list_members(self, course_id: UUID) -> list[tuple[AccountORM, CourseRole]]:
        return await self._memberships.list_course_members(course_id)

    # Modules and tasks

    async def create_module(
        self,
        course_id: UUID,
        name: str,
        description: Optional[str] = None,
        order_index: int = 0,
    ) -> ModuleORM:
        module = await self._modules.create(
            course_id=course_id, name=name, description=description, order_index=order_index
        )
        await self._session.commit()
        return module

    async def create_task(
        self,
        course_id: UUID,
        module_id: UUID,
        name: str,
        description: Optional[str] = None,
        guide_content: Optional[str] = None,
        order_index: int = 0,
        due_date: Optional[datetime] = None,
    ) -> TaskORM:
        """Create a task in ``Todo`` together with its empty product (version 1)."""
        module = await self._modules.get_by_id(module_id)
        if module is None or module.course_id != course_id:
            raise NotFoundError("Module not found", code="MODULE_NOT_FOUND")

        task = TaskORM(
            module_id=module_id,
            course_id=course_id,
            name=name,
            description=description,
            guide_content=guide_content,
            order_index=order_index,
            due_date=due_date,
            status=TaskStatus.TODO,
        )
        self._session.add(task)
        await self._session.flush()
        self._session.add(ProductORM(task_id=task.id, content="", current_version=1))
        await self._session.commit()
        logger.info(f"task_created: task_id={task.id}, module_id={module_id}")
        return task

    async def list_tasks(
        self,
        course_id: UUID,
        status: Optional[TaskStatus] = None,
        module_id: Optional[UUID] = None,
    ) -> list[TaskORM]:
        return await self._tasks.list_for_course(course_id, status=status, module_id=module_id)

    # Teams

    async def create_team(
        self, course_id: UUID, name: str, description: Optional[str] = None
    ) -> TeamORM:
        team = await self._teams.create(course_id=course_id, name=name, description=description)
        await self._session.commit()
        return team

    async def get_team(self, team_id: UUID) -> TeamORM:
        team = await self._memberships.get_team(team_id)
        if team is None:
            raise NotFoundError("Team not found", code="TEAM_NOT_FOUND")
        return team

    async def add_team_member(self, team: TeamORM, account_id: UUID, role: TeamRole) -> None:
        """Place a course member into a team under a business-function role."""
        course_role = await self._memberships.get_course_role(team.course_id, account_id)
        if course_role is None:
            raise ValidationError(
                "Account is not a member of this course",
                code="NOT_COURSE_MEMBER",
                fields={"account_id": "must belong to the team's course"},
            )
        try:
            await self._memberships.add_team_member(team.id, account_id, role)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise ConflictError("Already a member of this team", code="ALREADY_MEMBER") from e

    async def list_team_members(self, team_id: UUID) -> list[tuple[AccountORM, TeamRole]]:
        return await self._memberships.list_team_members(team_id)
