"""Task, product, comment and prompt schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.db.models.task import ReviewAction, TabType, TaskStatus


class TaskCreate(BaseModel):
    """Create a task under a module (course Manager only).

    Args:
        name: Task name (1-200 characters)
        description: Optional short description
        guide_content: Markdown shown on the Guide tab
        order_index: Position within the module
        due_date: Optional deadline
    """

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    guide_content: Optional[str] = None
    order_index: int = Field(default=0, ge=0)
    due_date: Optional[datetime] = None


class TaskResponse(BaseModel):
    id: UUID
    module_id: UUID
    course_id: UUID
    name: str
    description: Optional[str] = None
    guide_content: Optional[str] = None
    status: TaskStatus
    order_index: int
    due_date: Optional[datetime] = None


class TaskStatusResponse(BaseModel):
    task_id: UUID
    status: TaskStatus


class ProductResponse(BaseModel):
    """Product of a task.

    ``status`` mirrors the owning task's status.
    """

    id: UUID
    task_id: UUID
    content: str
    current_version: int
    status: TaskStatus
    last_editor_id: Optional[UUID] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    review_result: Optional[dict] = None
    updated_at: Optional[datetime] = None


class ProductSave(BaseModel):
    content: str = Field(..., max_length=200_000)
    memo: Optional[str] = Field(default=None, max_length=500)


class ProductVersionResponse(BaseModel):
    version_number: int
    content: str
    memo: Optional[str] = None
    editor_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class ReviewRequest(BaseModel):
    """Expert review of a submitted product.

    Args:
        action: approve (-> Done), reject or request_revision (-> Doing)
        feedback: Optional free-text feedback
        score: Optional score 0-100
        rank: Optional grade label
    """

    action: ReviewAction
    feedback: Optional[str] = Field(default=None, max_length=5000)
    score: Optional[int] = Field(default=None, ge=0, le=100)
    rank: Optional[str] = Field(default=None, max_length=20)


class CommentCreate(BaseModel):
    tab_type: TabType
    body: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[UUID] = None
    prompt_account_id: Optional[UUID] = None


class CommentUpdate(BaseModel):
    body: str = Field(..., min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    id: UUID
    task_id: UUID
    tab_type: TabType
    author_id: UUID
    parent_id: Optional[UUID] = None
    prompt_account_id: Optional[UUID] = None
    body: str
    is_edited: bool
    created_at: Optional[datetime] = None


class PromptSubmit(BaseModel):
    """Run a prompt against the text generator.

    Args:
        prompt_text: The participant's prompt
        model_id: Optional model override
        temperature: Optional sampling temperature (0-2)
    """

    prompt_text: str = Field(..., min_length=1, max_length=20_000)
    model_id: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)


class PromptResponse(BaseModel):
    id: UUID
    task_id: UUID
    account_id: UUID
    prompt_text: str
    ai_response: str
    ai_model: str
    tokens_used: int
    evaluation: Optional[dict] = None
    created_at: Optional[datetime] = None


class PromptEvaluationResponse(BaseModel):
    clarity_score: int
    specificity_score: int
    context_score: int
    format_score: int
    piq_score: int
    strengths: list[str]
    improvements: list[str]
    ai_comment: str
