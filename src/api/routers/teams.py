"""Team detail and membership endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.schemas.common import SuccessResponse
from src.api.schemas.courses import MemberResponse, TeamDetailResponse, TeamMemberAdd
from src.auth.dependencies import TeamContext, require_team_access
from src.auth.permissions import authorize_course, enforce
from src.db.models.course import CourseRole
from src.services.courses import CourseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/teams", tags=["teams"])


@router.get("/{team_id}", response_model=TeamDetailResponse)
async def get_team(
    ctx: TeamContext = Depends(require_team_access()),
    db: AsyncSession = Depends(get_db),
) -> TeamDetailResponse:
    """
    Get a team with its members.

    Team members, and Managers or Experts of the team's course, may view it.
    """
    service = CourseService(db)
    team = await service.get_team(ctx.team_id)
    members = await service.list_team_members(ctx.team_id)
    return TeamDetailResponse(
        id=team.id,
        course_id=team.course_id,
        name=team.name,
        description=team.description,
        created_at=team.created_at,
        members=[
            MemberResponse(
                account_id=account.id,
                nick_name=account.nick_name,
                real_name=account.real_name,
                role=role.value,
            )
            for account, role in members
        ],
        my_team_role=ctx.access.team_role.value if ctx.access.team_role else None,
        via_course=ctx.access.via_course,
    )


@router.post(
    "/{team_id}/members",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_team_member(
    data: TeamMemberAdd,
    ctx: TeamContext = Depends(require_team_access()),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    """
    Add a course member to the team (course Manager only).

    Raises:
        ForbiddenError: Caller is not a Manager of the team's course.
        ValidationError: Account is not a member of the course (NOT_COURSE_MEMBER).
        ConflictError: Account is already in the team (ALREADY_MEMBER).
    """
    enforce(authorize_course(ctx.access.course_role, {CourseRole.MANAGER}))

    service = CourseService(db)
    team = await service.get_team(ctx.team_id)
    await service.add_team_member(team, data.account_id, data.role)
    logger.info(
        f"team_member_added: team_id={team.id}, account_id={data.account_id}, "
        f"role={data.role.value}, actor_id={ctx.principal.id}"
    )
    return SuccessResponse(message="Team member added")
