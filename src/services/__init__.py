"""Business services. Each public coroutine is one unit of work and owns its commit."""

from src.services.accounts import AccountService
from src.services.comments import CommentService
from src.services.courses import CourseService
from src.services.invites import InviteService, Redemption
from src.services.lifecycle import TaskLifecycle
from src.services.prompts import PromptService
from src.services.workspaces import WorkspaceService, WorkspaceView

__all__ = [
    "AccountService",
    "CommentService",
    "CourseService",
    "InviteService",
    "PromptService",
    "Redemption",
    "TaskLifecycle",
    "WorkspaceService",
    "WorkspaceView",
]
