"""Audit log ORM model."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.db.base import Base, UUIDMixin


class AuditLogORM(Base, UUIDMixin):
    """Trail of lifecycle transitions, invite redemptions and other state changes.

    Maps to the ``audit_log`` table.
    """

    __tablename__ = "audit_log"

    account_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("account.id"), nullable=True)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    resource_type: Mapped[str] = mapped_column(Text, nullable=False)
    resource_id: Mapped[Optional[UUID]] = mapped_column(nullable=True)
    changes: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
