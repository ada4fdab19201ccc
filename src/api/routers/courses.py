"""Course, module, task and team-creation endpoints."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_settings
from src.api.routers.tasks import task_response
from src.api.routers.workspaces import invite_response
from src.api.schemas.courses import (
    CourseCreate,
    CourseResponse,
    MemberResponse,
    ModuleCreate,
    ModuleResponse,
    TeamCreate,
    TeamResponse,
)
from src.api.schemas.tasks import TaskCreate, TaskResponse
from src.api.schemas.workspaces import InviteCreate, InviteResponse, JoinRequest
from src.auth.dependencies import (
    CourseAccess,
    WorkspaceAccess,
    get_current_principal,
    require_course_role,
    require_workspace_role,
)
from src.auth.identity import Principal
from src.db.models.course import CourseRole
from src.db.models.invite import InviteScope
from src.db.models.task import TaskStatus
from src.db.models.workspace import WorkspaceRole
from src.services.courses import CourseService, CourseView
from src.services.invites import InviteService
from src.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["courses"])


def course_response(view: CourseView) -> CourseResponse:
    return CourseResponse(
        id=view.id,
        workspace_id=view.workspace_id,
        name=view.name,
        description=view.description,
        status=view.status,
        my_role=view.my_role.value,
        created_at=view.created_at,
    )


@router.post(
    "/workspaces/{workspace_id}/courses",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_course(
    data: CourseCreate,
    access: WorkspaceAccess = Depends(require_workspace_role(WorkspaceRole.OWNER)),
    db: AsyncSession = Depends(get_db),
) -> CourseResponse:
    """Create a course in a workspace. The creator becomes the course Manager."""
    view = await CourseService(db).create_course(
        access.workspace_id,
        access.principal.id,
        name=data.name,
        description=data.description,
        status=data.status,
    )
    return course_response(view)


@router.get("/courses/{course_id}", response_model=CourseResponse)
async def get_course(
    access: CourseAccess = Depends(require_course_role()),
    db: AsyncSession = Depends(get_db),
) -> CourseResponse:
    view = await CourseService(db).get_view(access.course_id, access.role)
    return course_response(view)


@router.get("/courses/{course_id}/members", response_model=list[MemberResponse])
async def list_course_members(
    access: CourseAccess = Depends(require_course_role()),
    db: AsyncSession = Depends(get_db),
) -> list[MemberResponse]:
    rows = await CourseService(db).list_members(access.course_id)
    return [
        MemberResponse(
            account_id=account.id,
            nick_name=account.nick_name,
            real_name=account.real_name,
            role=role.value,
        )
        for account, role in rows
    ]


@router.post(
    "/courses/{course_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_course_invite(
    data: InviteCreate,
    access: CourseAccess = Depends(require_course_role(CourseRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> InviteResponse:
    service = InviteService(db, settings)
    invite = await service.create_invite(
        InviteScope.COURSE,
        access.course_id,
        created_by=access.principal.id,
        max_uses=data.max_uses,
    )
    return invite_response(service, invite)


@router.post("/courses/join", response_model=CourseResponse)
async def join_course(
    data: JoinRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> CourseResponse:
    """Redeem a course invite; the caller joins as Participant and gets the course back."""
    redemption = await InviteService(db, settings).redeem(
        data.token, principal.id, expected_scope=InviteScope.COURSE
    )
    view = await CourseService(db).get_view(redemption.scope_id, redemption.role)
    return course_response(view)


@router.post(
    "/courses/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_module(
    data: ModuleCreate,
    access: CourseAccess = Depends(require_course_role(CourseRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> ModuleResponse:
    module = await CourseService(db).create_module(
        access.course_id,
        name=data.name,
        description=data.description,
        order_index=data.order_index,
    )
    return ModuleResponse(
        id=module.id,
        course_id=module.course_id,
        name=module.name,
        description=module.description,
        order_index=module.order_index,
    )


@router.post(
    "/courses/{course_id}/modules/{module_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    module_id: UUID,
    data: TaskCreate,
    access: CourseAccess = Depends(require_course_role(CourseRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    """Create a task in Todo together with its empty product."""
    task = await CourseService(db).create_task(
        access.course_id,
        module_id,
        name=data.name,
        description=data.description,
        guide_content=data.guide_content,
        order_index=data.order_index,
        due_date=data.due_date,
    )
    return task_response(task)


@router.get("/courses/{course_id}/tasks", response_model=list[TaskResponse])
async def list_tasks(
    task_status: Optional[TaskStatus] = Query(default=None, alias="status"),
    module_id: Optional[UUID] = Query(default=None),
    access: CourseAccess = Depends(require_course_role()),
    db: AsyncSession = Depends(get_db),
) -> list[TaskResponse]:
    """List a course's tasks, optionally filtered by status and module."""
    tasks = await CourseService(db).list_tasks(
        access.course_id, status=task_status, module_id=module_id
    )
    return [task_response(task) for task in tasks]


@router.post(
    "/courses/{course_id}/teams",
    response_model=TeamResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_team(
    data: TeamCreate,
    access: CourseAccess = Depends(require_course_role(CourseRole.MANAGER)),
    db: AsyncSession = Depends(get_db),
) -> TeamResponse:
    team = await CourseService(db).create_team(
        access.course_id, name=data.name, description=data.description
    )
    return TeamResponse(
        id=team.id,
        course_id=team.course_id,
        name=team.name,
        description=team.description,
        created_at=team.created_at,
    )
