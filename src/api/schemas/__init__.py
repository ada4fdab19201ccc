"""API request/response schemas."""

from src.api.schemas.auth import (
    AccountResponse,
    GoogleLoginRequest,
    GoogleNewUserResponse,
    GoogleSignupCompleteRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    ProfileUpdate,
    SignupRequest,
)
from src.api.schemas.common import ErrorResponse, HealthResponse, ServiceStatus, SuccessResponse
from src.api.schemas.courses import (
    CourseCreate,
    CourseResponse,
    MemberResponse,
    ModuleCreate,
    ModuleResponse,
    TeamCreate,
    TeamDetailResponse,
    TeamMemberAdd,
    TeamResponse,
)
from src.api.schemas.tasks import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    ProductResponse,
    ProductSave,
    ProductVersionResponse,
    PromptEvaluationResponse,
    PromptResponse,
    PromptSubmit,
    ReviewRequest,
    TaskCreate,
    TaskResponse,
    TaskStatusResponse,
)
from src.api.schemas.workspaces import (
    InviteCreate,
    InvitePreviewResponse,
    InviteResponse,
    JoinRequest,
    WorkspaceCreate,
    WorkspaceDelete,
    WorkspaceResponse,
    WorkspaceUpdate,
)

__all__ = [
    "AccountResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
    "CourseCreate",
    "CourseResponse",
    "ErrorResponse",
    "GoogleLoginRequest",
    "GoogleNewUserResponse",
    "GoogleSignupCompleteRequest",
    "HealthResponse",
    "InviteCreate",
    "InvitePreviewResponse",
    "InviteResponse",
    "JoinRequest",
    "LoginRequest",
    "LoginResponse",
    "MemberResponse",
    "ModuleCreate",
    "ModuleResponse",
    "PasswordResetRequest",
    "ProductResponse",
    "ProductSave",
    "ProductVersionResponse",
    "ProfileUpdate",
    "PromptEvaluationResponse",
    "PromptResponse",
    "PromptSubmit",
    "ReviewRequest",
    "ServiceStatus",
    "SignupRequest",
    "SuccessResponse",
    "TaskCreate",
    "TaskResponse",
    "TaskStatusResponse",
    "TeamCreate",
    "TeamDetailResponse",
    "TeamMemberAdd",
    "TeamResponse",
    "WorkspaceCreate",
    "WorkspaceDelete",
    "WorkspaceResponse",
    "WorkspaceUpdate",
]
