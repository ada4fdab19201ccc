"""Workspace and WorkspaceMembership ORM models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.db.models.account import AccountORM
    from src.db.models.course import CourseORM


class WorkspaceRole(str, enum.Enum):
    """Role an account can hold within a workspace.

    Maps to the ``workspace_role`` PostgreSQL enum type.
    """

    OWNER = "Owner"
    MEMBER = "Member"


class WorkspaceORM(Base, UUIDMixin, TimestampMixin):
    """Top-level organisation that runs courses.

    Maps to the ``workspace`` table.
    """

    __tablename__ = "workspace"

    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    logo_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    owner_id: Mapped[UUID] = mapped_column(ForeignKey("account.id"), nullable=False)

    # Relationships
    owner: Mapped["AccountORM"] = relationship("AccountORM", foreign_keys=[owner_id])
    memberships: Mapped[List["WorkspaceMembershipORM"]] = relationship(
        "WorkspaceMembershipORM", back_populates="workspace", cascade="all, delete-orphan"
    )
    courses: Mapped[List["CourseORM"]] = relationship(
        "CourseORM", back_populates="workspace", cascade="all, delete-orphan"
    )


class WorkspaceMembershipORM(Base, UUIDMixin):
    """RBAC join table linking accounts to workspaces with a role.

    Maps to the ``workspace_membership`` table.
    """

    __tablename__ = "workspace_membership"
    __table_args__ = (
        UniqueConstraint("workspace_id", "account_id", name="uq_workspace_membership"),
    )

    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[WorkspaceRole] = mapped_column(
        Enum(
            WorkspaceRole,
            name="workspace_role",
            values_callable=lambda roles: [r.value for r in roles],
        ),
        nullable=False,
        default=WorkspaceRole.MEMBER,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    workspace: Mapped["WorkspaceORM"] = relationship("WorkspaceORM", back_populates="memberships")
    account: Mapped["AccountORM"] = relationship(
        "AccountORM", back_populates="workspace_memberships"
    )
