"""Course, Module, Team and their membership ORM models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Text, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.db.models.account import AccountORM
    from src.db.models.task import TaskORM
    from src.db.models.workspace import WorkspaceORM


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class CourseRole(str, enum.Enum):
    """Role an account can hold within a course.

    Maps to the ``course_role`` PostgreSQL enum type.
    """

    MANAGER = "Manager"
    EXPERT = "Expert"
    PARTICIPANT = "Participant"


class CourseStatus(str, enum.Enum):
    """Display-only course status; never consulted for authorization."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"


class TeamRole(str, enum.Enum):
    """Business-function label inside a team. No precedence between values."""

    CEO = "CEO"
    CPO = "CPO"
    CMO = "CMO"
    COO = "COO"
    CTO = "CTO"
    CFO = "CFO"


class CourseORM(Base, UUIDMixin, TimestampMixin):
    """A course run inside a workspace. Maps to the ``course`` table."""

    __tablename__ = "course"

    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[CourseStatus] = mapped_column(
        Enum(CourseStatus, name="course_status", values_callable=_values),
        nullable=False,
        default=CourseStatus.DRAFT,
    )

    # Relationships
    workspace: Mapped["WorkspaceORM"] = relationship("WorkspaceORM", back_populates="courses")
    memberships: Mapped[List["CourseMembershipORM"]] = relationship(
        "CourseMembershipORM", back_populates="course", cascade="all, delete-orphan"
    )
    modules: Mapped[List["ModuleORM"]] = relationship(
        "ModuleORM",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="ModuleORM.order_index",
    )
    teams: Mapped[List["TeamORM"]] = relationship(
        "TeamORM", back_populates="course", cascade="all, delete-orphan"
    )


class CourseMembershipORM(Base, UUIDMixin):
    """RBAC join table linking accounts to courses. Maps to ``course_membership``."""

    __tablename__ = "course_membership"
    __table_args__ = (UniqueConstraint("course_id", "account_id", name="uq_course_membership"),)

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("course.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[CourseRole] = mapped_column(
        Enum(CourseRole, name="course_role", values_callable=_values),
        nullable=False,
        default=CourseRole.PARTICIPANT,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    course: Mapped["CourseORM"] = relationship("CourseORM", back_populates="memberships")
    account: Mapped["AccountORM"] = relationship("AccountORM", back_populates="course_memberships")


class ModuleORM(Base, UUIDMixin, TimestampMixin):
    """Ordered group of tasks inside a course. Maps to the ``module`` table."""

    __tablename__ = "module"

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("course.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))

    course: Mapped["CourseORM"] = relationship("CourseORM", back_populates="modules")
    tasks: Mapped[List["TaskORM"]] = relationship(
        "TaskORM",
        back_populates="module",
        cascade="all, delete-orphan",
        order_by="TaskORM.order_index",
    )


class TeamORM(Base, UUIDMixin, TimestampMixin):
    """Group of participants inside a course. Maps to the ``team`` table."""

    __tablename__ = "team"

    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("course.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    course: Mapped["CourseORM"] = relationship("CourseORM", back_populates="teams")
    memberships: Mapped[List["TeamMembershipORM"]] = relationship(
        "TeamMembershipORM", back_populates="team", cascade="all, delete-orphan"
    )


class TeamMembershipORM(Base, UUIDMixin):
    """RBAC join table linking accounts to teams. Maps to ``team_membership``."""

    __tablename__ = "team_membership"
    __table_args__ = (UniqueConstraint("team_id", "account_id", name="uq_team_membership"),)

    team_id: Mapped[UUID] = mapped_column(ForeignKey("team.id", ondelete="CASCADE"), nullable=False)
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[TeamRole] = mapped_column(
        Enum(TeamRole, name="team_role", values_callable=_values), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    team: Mapped["TeamORM"] = relationship("TeamORM", back_populates="memberships")
    account: Mapped["AccountORM"] = relationship("AccountORM", back_populates="team_memberships")
