"""Prompt tab: run a participant's prompt and score it."""

import logging
import re
from typing import Optional
from uuid import UUID

import pydantic
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.models.task import PromptORM
from src.db.repositories.comment_repo import PromptRepository
from src.exceptions import ForbiddenError, NotFoundError, ValidationError
from src.providers import GenerationOptions, TextGenerator
from src.settings import Settings

logger = logging.getLogger(__name__)

EVALUATION_TEMPLATE = """Evaluate the following prompt.

[User prompt]
{prompt_text}

[AI response]
{ai_response}

Score each criterion from 1 to 5 and answer in JSON only:
1. clarity: how clear the prompt is
2. specificity: how specific the prompt is
3. context: whether enough background is provided
4. format: whether the desired output format is stated

Also give a PIQ score (0-100), strengths and improvements.

JSON format:
{{
  "clarity_score": number,
  "specificity_score": number,
  "context_score": number,
  "format_score": number,
  "piq_score": number,
  "strengths": string[],
  "improvements": string[],
  "ai_comment": string
}}
"""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)


class PromptEvaluation(BaseModel):
    clarity_score: int = Field(ge=1, le=5)
    specificity_score: int = Field(ge=1, le=5)
    context_score: int = Field(ge=1, le=5)
    format_score: int = Field(ge=1, le=5)
    piq_score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    ai_comment: str = ""

    @classmethod
    def neutral(cls, raw_text: str) -> "PromptEvaluation":
        """Placeholder scores used when the evaluator's answer cannot be parsed."""
        return cls(
            clarity_score=3,
            specificity_score=3,
            context_score=3,
            format_score=3,
            piq_score=60,
            strengths=[],
            improvements=["evaluation failed"],
            ai_comment=raw_text,
        )


def parse_evaluation(raw_text: str) -> PromptEvaluation:
    """Parse the evaluator output, falling back to neutral scores on any malformation."""
    try:
        return PromptEvaluation.model_validate_json(_FENCE.sub("", raw_text.strip()))
    except pydantic.ValidationError as e:
        logger.warning(f"prompt_evaluation_unparseable: error={str(e)[:200]}")
        return PromptEvaluation.neutral(raw_text)


class PromptService:
    def __init__(
        self,
        session: AsyncSession,
        generator: TextGenerator,
        settings: Settings,
        prompts: Optional[PromptRepository] = None,
    ) -> None:
        self._session = session
        self._generator = generator
        self._settings = settings
        self._prompts = prompts or PromptRepository(session)

    async def submit(
        self,
        task_id: UUID,
        account_id: UUID,
        prompt_text: str,
        model_id: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> PromptORM:
        """Send the prompt to the generator and store the exchange.

        Generator failures propagate as ``UpstreamError`` and nothing is stored.
        """
        if not prompt_text.strip():
            raise ValidationError("Prompt is empty", fields={"prompt_text": "must not be empty"})

        options = GenerationOptions()
        if temperature is not None:
            options.temperature = temperature
        result = await self._generator.generate(prompt_text, model_id, options)

        prompt = await self._prompts.create(
            task_id=task_id,
            account_id=account_id,
            prompt_text=prompt_text,
            ai_response=result.text,
            ai_model=result.model,
            tokens_used=result.tokens_used,
        )
        await self._session.commit()
        logger.info(
            f"prompt_submitted: prompt_id={prompt.id}, task_id={task_id}, "
            f"tokens_used={result.tokens_used}"
        )
        return prompt

    async def history(self, task_id: UUID, account_id: UUID) -> list[PromptORM]:
        return await self._prompts.list_for_account(task_id, account_id)

    async def evaluate(self, task_id: UUID, prompt_id: UUID, account_id: UUID) -> PromptEvaluation:
        """Score a stored prompt. Only its author may request the evaluation."""
        prompt = await self._prompts.get_by_id(prompt_id)
        if prompt is None or prompt.task_id != task_id:
            raise NotFoundError("Prompt not found", code="PROMPT_NOT_FOUND")
        if prompt.account_id != account_id:
            raise ForbiddenError(
                "Only the author can evaluate a prompt", code="PROMPT_AUTHOR_REQUIRED"
            )

        evaluation_prompt = EVALUATION_TEMPLATE.format(
            prompt_text=prompt.prompt_text, ai_response=prompt.ai_response
        )
        result = await self._generator.generate(
            evaluation_prompt,
            self._settings.llm_evaluation_model,
            GenerationOptions(temperature=0.0),
        )
        evaluation = parse_evaluation(result.text)

        prompt.evaluation = evaluation.model_dump()
        await self._session.flush()
        await self._session.commit()
        return evaluation
