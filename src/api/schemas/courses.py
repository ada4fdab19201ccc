"""Course, module and team schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.db.models.course import CourseStatus, TeamRole


class CourseCreate(BaseModel):
    """Create a course inside a workspace (workspace Owner only).

    Args:
        name: Course name (1-100 characters)
        description: Optional description
        status: Initial status, defaults to "draft"
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: CourseStatus = CourseStatus.DRAFT


class CourseResponse(BaseModel):
    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str] = None
    status: CourseStatus
    my_role: str
    created_at: Optional[datetime] = None


class MemberResponse(BaseModel):
    """Course or team member representation.

    Args:
        account_id: Member's account
        nick_name: Public nickname
        real_name: Legal name
        role: Role within the scope
    """

    account_id: UUID
    nick_name: str
    real_name: str
    role: str


class ModuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    order_index: int = Field(default=0, ge=0)


class ModuleResponse(BaseModel):
    id: UUID
    course_id: UUID
    name: str
    description: Optional[str] = None
    order_index: int


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class TeamResponse(BaseModel):
    id: UUID
    course_id: UUID
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class TeamMemberAdd(BaseModel):
    """Place a course member into a team.

    Args:
        account_id: Account to add; must already belong to the team's course
        role: Business-function role (CEO, CPO, CMO, COO, CTO, CFO)
    """

    account_id: UUID
    role: TeamRole


class TeamDetailResponse(TeamResponse):
    """Team with its members and how the caller reaches it."""

    members: list[MemberResponse]
    my_team_role: Optional[str] = None
    via_course: bool = False
