"""Invite token ORM model."""

import enum
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Text,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDMixin


class InviteScope(str, enum.Enum):
    """Kind of scope an invite grants membership to."""

    WORKSPACE = "workspace"
    COURSE = "course"


class InviteTokenORM(Base, UUIDMixin):
    """Capped, time-limited link that grants membership when redeemed.

    Exactly one of ``workspace_id`` / ``course_id`` is set, matching
    ``scope``. ``used_count`` never exceeds ``max_uses``.
    Maps to the ``invite_token`` table.
    """

    __tablename__ = "invite_token"
    __table_args__ = (
        CheckConstraint("used_count >= 0", name="used_count_non_negative"),
        CheckConstraint("used_count <= max_uses", name="used_count_within_cap"),
        CheckConstraint(
            "(workspace_id IS NOT NULL AND course_id IS NULL AND scope = 'workspace') OR "
            "(course_id IS NOT NULL AND workspace_id IS NULL AND scope = 'course')",
            name="single_scope",
        ),
    )

    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    scope: Mapped[InviteScope] = mapped_column(
        Enum(
            InviteScope,
            name="invite_scope",
            values_callable=lambda scopes: [s.value for s in scopes],
        ),
        nullable=False,
    )
    workspace_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("workspace.id", ondelete="CASCADE"), nullable=True
    )
    course_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("course.id", ondelete="CASCADE"), nullable=True
    )
    created_by: Mapped[Optional[UUID]] = mapped_column(ForeignKey("account.id"), nullable=True)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("100"))
    used_count: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("0"), default=0
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def scope_id(self) -> UUID:
        """Id of the workspace or course this invite targets."""
        scope_id = self.workspace_id if self.scope == InviteScope.WORKSPACE else self.course_id
        if scope_id is None:
            raise ValueError(f"Invite {self.id} has no {self.scope.value} id")
        return scope_id
