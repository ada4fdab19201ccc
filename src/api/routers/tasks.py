"""Task detail, product tab and lifecycle endpoints."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.schemas.tasks import (
    ProductResponse,
    ProductSave,
    ProductVersionResponse,
    ReviewRequest,
    TaskResponse,
    TaskStatusResponse,
)
from src.auth.dependencies import TaskAccess, require_task_role
from src.db.models.course import CourseRole
from src.db.models.task import ProductORM, TaskORM, TaskStatus
from src.services.lifecycle import TaskLifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tasks", tags=["tasks"])

# Manager passes every course gate, so these sets only name the non-Manager roles
WORKER_ROLES = (CourseRole.PARTICIPANT, CourseRole.EXPERT)
REVIEWER_ROLES = (CourseRole.EXPERT,)


def task_response(task: TaskORM) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        module_id=task.module_id,
        course_id=task.course_id,
        name=task.name,
        description=task.description,
        guide_content=task.guide_content,
        status=task.status,
        order_index=task.order_index,
        due_date=task.due_date,
    )


def product_response(product: ProductORM, task_status: TaskStatus) -> ProductResponse:
    return ProductResponse(
        id=product.id,
        task_id=product.task_id,
        content=product.content,
        current_version=product.current_version,
        status=task_status,
        last_editor_id=product.last_editor_id,
        submitted_at=product.submitted_at,
        reviewed_at=product.reviewed_at,
        review_result=product.review_result,
        updated_at=product.updated_at,
    )


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(access: TaskAccess = Depends(require_task_role())) -> TaskResponse:
    return task_response(access.task)


@router.get("/{task_id}/product", response_model=ProductResponse)
async def get_product(
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    product = await TaskLifecycle(db).get_product(access.task.id)
    return product_response(product, access.task.status)


@router.put("/{task_id}/product", response_model=ProductResponse)
async def save_product(
    data: ProductSave,
    access: TaskAccess = Depends(require_task_role(*WORKER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> ProductResponse:
    """
    Save product content as a new version.

    A save on a Todo task starts it. Saving is refused once the task is in
    Review or Done.

    Raises:
        InvalidStateError: Task is not editable (TASK_NOT_EDITABLE).
    """
    product = await TaskLifecycle(db).save_content(
        access.task.id, data.content, access.principal.id, memo=data.memo
    )
    return product_response(product, TaskStatus.DOING)


@router.get("/{task_id}/product/versions", response_model=list[ProductVersionResponse])
async def list_product_versions(
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
) -> list[ProductVersionResponse]:
    versions = await TaskLifecycle(db).list_versions(access.task.id)
    return [
        ProductVersionResponse(
            version_number=version.version_number,
            content=version.content,
            memo=version.memo,
            editor_id=version.editor_id,
            created_at=version.created_at,
        )
        for version in versions
    ]


@router.post("/{task_id}/start", response_model=TaskStatusResponse)
async def start_task(
    access: TaskAccess = Depends(require_task_role(*WORKER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> TaskStatusResponse:
    new_status = await TaskLifecycle(db).start(access.task.id, access.principal.id)
    return TaskStatusResponse(task_id=access.task.id, status=new_status)


@router.post("/{task_id}/submit", response_model=TaskStatusResponse)
async def submit_task(
    access: TaskAccess = Depends(require_task_role(*WORKER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> TaskStatusResponse:
    """
    Submit the product for review (Doing -> Review).

    Raises:
        InvalidStateError: Task is not in Doing (TASK_NOT_IN_DOING).
        ValidationError: Product is empty (PRODUCT_EMPTY).
    """
    new_status = await TaskLifecycle(db).submit(access.task, access.principal.id)
    return TaskStatusResponse(task_id=access.task.id, status=new_status)


@router.post("/{task_id}/review", response_model=TaskStatusResponse)
async def review_task(
    data: ReviewRequest,
    access: TaskAccess = Depends(require_task_role(*REVIEWER_ROLES)),
    db: AsyncSession = Depends(get_db),
) -> TaskStatusResponse:
    """
    Review a submitted product (Expert or Manager).

    approve moves the task to Done; reject and request_revision send it back
    to Doing.
    """
    new_status = await TaskLifecycle(db).review(
        access.task.id,
        data.action,
        access.principal.id,
        feedback=data.feedback,
        score=data.score,
        rank=data.rank,
    )
    return TaskStatusResponse(task_id=access.task.id, status=new_status)
