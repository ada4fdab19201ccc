"""Repository layer for database access."""

from src.db.repositories.account_repo import AccountRepository
from src.db.repositories.audit_repo import AuditLogRepository
from src.db.repositories.base import BaseRepository
from src.db.repositories.comment_repo import CommentRepository, PromptRepository
from src.db.repositories.invite_repo import InviteRepository
from src.db.repositories.membership_repo import MembershipRepository
from src.db.repositories.task_repo import TaskRepository

__all__ = [
    "AccountRepository",
    "AuditLogRepository",
    "BaseRepository",
    "CommentRepository",
    "InviteRepository",
    "MembershipRepository",
    "PromptRepository",
    "TaskRepository",
]
