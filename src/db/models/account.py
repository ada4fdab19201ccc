"""Account ORM model."""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.db.models.course import CourseMembershipORM, TeamMembershipORM
    from src.db.models.workspace import WorkspaceMembershipORM


class AccountORM(Base, UUIDMixin, TimestampMixin):
    """Local account record.

    Credentials live with the external identity provider; this row only holds
    profile data, the system-admin flag and the login lockout counters.
    Maps to the ``account`` table.
    """

    __tablename__ = "account"
    __table_args__ = (
        CheckConstraint("failed_attempt_count >= 0", name="failed_attempt_count_non_negative"),
    )

    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    nick_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    real_name: Mapped[str] = mapped_column(Text, nullable=False)
    profile_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_system_admin: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false"), default=False
    )
    failed_attempt_count: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )
    locked_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    workspace_memberships: Mapped[List["WorkspaceMembershipORM"]] = relationship(
        "WorkspaceMembershipORM", back_populates="account", cascade="all, delete-orphan"
    )
    course_memberships: Mapped[List["CourseMembershipORM"]] = relationship(
        "CourseMembershipORM", back_populates="account", cascade="all, delete-orphan"
    )
    team_memberships: Mapped[List["TeamMembershipORM"]] = relationship(
        "TeamMembershipORM", back_populates="account", cascade="all, delete-orphan"
    )
