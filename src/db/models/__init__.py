"""ORM models for database tables."""

from src.db.models.account import AccountORM
from src.db.models.course import (
    CourseMembershipORM,
    CourseORM,
    CourseRole,
    CourseStatus,
    ModuleORM,
    TeamMembershipORM,
    TeamORM,
    TeamRole,
)
from src.db.models.invite import InviteScope, InviteTokenORM
from src.db.models.task import (
    CommentORM,
    ProductORM,
    ProductVersionORM,
    PromptORM,
    ReviewAction,
    TabType,
    TaskORM,
    TaskStatus,
)
from src.db.models.tracking import AuditLogORM
from src.db.models.workspace import WorkspaceMembershipORM, WorkspaceORM, WorkspaceRole

__all__ = [
    "AccountORM",
    "AuditLogORM",
    "CommentORM",
    "CourseMembershipORM",
    "CourseORM",
    "CourseRole",
    "CourseStatus",
    "InviteScope",
    "InviteTokenORM",
    "ModuleORM",
    "ProductORM",
    "ProductVersionORM",
    "PromptORM",
    "ReviewAction",
    "TabType",
    "TaskORM",
    "TaskStatus",
    "TeamMembershipORM",
    "TeamORM",
    "TeamRole",
    "WorkspaceMembershipORM",
    "WorkspaceORM",
    "WorkspaceRole",
]
