"""Task, Product, ProductVersion, Comment and Prompt ORM models."""

import enum
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from src.db.models.account import AccountORM
    from src.db.models.course import ModuleORM


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class TaskStatus(str, enum.Enum):
    """Linear task pipeline: Todo -> Doing -> Review -> Done."""

    TODO = "Todo"
    DOING = "Doing"
    REVIEW = "Review"
    DONE = "Done"


class ReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    REQUEST_REVISION = "request_revision"


class TabType(str, enum.Enum):
    GUIDE = "guide"
    PROMPT = "prompt"
    PRODUCT = "product"


class TaskORM(Base, UUIDMixin, TimestampMixin):
    """Unit of work inside a module.

    ``course_id`` is denormalised from the module so authorization can resolve
    the course scope with a single lookup. Maps to the ``task`` table.
    """

    __tablename__ = "task"

    module_id: Mapped[UUID] = mapped_column(
        ForeignKey("module.id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[UUID] = mapped_column(
        ForeignKey("course.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    guide_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", values_callable=_values),
        nullable=False,
        default=TaskStatus.TODO,
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    assignee_role: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    module: Mapped["ModuleORM"] = relationship("ModuleORM", back_populates="tasks")
    product: Mapped[Optional["ProductORM"]] = relationship(
        "ProductORM", back_populates="task", uselist=False, cascade="all, delete-orphan"
    )


class ProductORM(Base, UUIDMixin, TimestampMixin):
    """Current snapshot of a task's deliverable. Maps to the ``product`` table."""

    __tablename__ = "product"
    __table_args__ = (CheckConstraint("current_version >= 1", name="current_version_positive"),)

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("task.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    content: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("''"), default=""
    )
    current_version: Mapped[int] = mapped_column(
        Integer, nullable=False, server_default=text("1"), default=1
    )
    last_editor_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("account.id"), nullable=True)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_result: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)

    task: Mapped["TaskORM"] = relationship("TaskORM", back_populates="product")
    versions: Mapped[List["ProductVersionORM"]] = relationship(
        "ProductVersionORM",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVersionORM.version_number.desc()",
    )


class ProductVersionORM(Base, UUIDMixin):
    """Immutable snapshot written on every explicit product save."""

    __tablename__ = "product_version"
    __table_args__ = (
        UniqueConstraint("product_id", "version_number", name="uq_product_version_number"),
    )

    product_id: Mapped[UUID] = mapped_column(
        ForeignKey("product.id", ondelete="CASCADE"), nullable=False
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    memo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    editor_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("account.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    product: Mapped["ProductORM"] = relationship("ProductORM", back_populates="versions")
    editor: Mapped[Optional["AccountORM"]] = relationship("AccountORM")


class CommentORM(Base, UUIDMixin, TimestampMixin):
    """Comment on one of a task's tabs. Replies nest one level deep."""

    __tablename__ = "comment"

    task_id: Mapped[UUID] = mapped_column(ForeignKey("task.id", ondelete="CASCADE"), nullable=False)
    tab_type: Mapped[TabType] = mapped_column(
        Enum(TabType, name="tab_type", values_callable=_values), nullable=False
    )
    prompt_account_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("account.id"), nullable=True
    )
    author_id: Mapped[UUID] = mapped_column(ForeignKey("account.id"), nullable=False)
    parent_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("comment.id", ondelete="CASCADE"), nullable=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_edited: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false"), default=False
    )

    author: Mapped["AccountORM"] = relationship("AccountORM", foreign_keys=[author_id])


class PromptORM(Base, UUIDMixin):
    """One prompt/response exchange on a task's Prompt tab."""

    __tablename__ = "prompt"

    task_id: Mapped[UUID] = mapped_column(ForeignKey("task.id", ondelete="CASCADE"), nullable=False)
    account_id: Mapped[UUID] = mapped_column(ForeignKey("account.id"), nullable=False)
    prompt_text: Mapped[str] = mapped_column(Text, nullable=False)
    ai_response: Mapped[str] = mapped_column(Text, nullable=False)
    ai_model: Mapped[str] = mapped_column(Text, nullable=False)
    tokens_used: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    evaluation: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
