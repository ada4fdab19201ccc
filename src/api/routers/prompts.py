"""Prompt tab: run prompts against the text generator and score them."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db, get_settings, get_text_generator
from src.api.schemas.tasks import PromptEvaluationResponse, PromptResponse, PromptSubmit
from src.auth.dependencies import TaskAccess, require_task_role
from src.db.models.task import PromptORM
from src.providers import TextGenerator
from src.services.prompts import PromptService
from src.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/tasks/{task_id}/prompts", tags=["prompts"])


def prompt_response(prompt: PromptORM) -> PromptResponse:
    return PromptResponse(
        id=prompt.id,
        task_id=prompt.task_id,
        account_id=prompt.account_id,
        prompt_text=prompt.prompt_text,
        ai_response=prompt.ai_response,
        ai_model=prompt.ai_model,
        tokens_used=prompt.tokens_used,
        evaluation=prompt.evaluation,
        created_at=prompt.created_at,
    )


@router.post("", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
async def submit_prompt(
    data: PromptSubmit,
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    generator: TextGenerator = Depends(get_text_generator),
) -> PromptResponse:
    """
    Send a prompt to the text generator and store the exchange.

    Raises:
        UpstreamError: Text generation failed (AI_GENERATION_FAILED); nothing is stored.
    """
    prompt = await PromptService(db, generator, settings).submit(
        access.task.id,
        access.principal.id,
        data.prompt_text,
        model_id=data.model_id,
        temperature=data.temperature,
    )
    return prompt_response(prompt)


@router.get("", response_model=list[PromptResponse])
async def list_prompts(
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    generator: TextGenerator = Depends(get_text_generator),
) -> list[PromptResponse]:
    """The caller's own prompt history for this task, newest first."""
    prompts = await PromptService(db, generator, settings).history(
        access.task.id, access.principal.id
    )
    return [prompt_response(prompt) for prompt in prompts]


@router.post("/{prompt_id}/evaluate", response_model=PromptEvaluationResponse)
async def evaluate_prompt(
    prompt_id: UUID,
    access: TaskAccess = Depends(require_task_role()),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    generator: TextGenerator = Depends(get_text_generator),
) -> PromptEvaluationResponse:
    evaluation = await PromptService(db, generator, settings).evaluate(
        access.task.id, prompt_id, access.principal.id
    )
    logger.info(
        f"prompt_evaluated: prompt_id={prompt_id}, piq_score={evaluation.piq_score}"
    )
    return PromptEvaluationResponse(**evaluation.model_dump())
