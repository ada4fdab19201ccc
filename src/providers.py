"""Text-generation provider support for OpenRouter, OpenAI and Ollama via pydantic-ai."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.models.openrouter import OpenRouterModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.providers.openrouter import OpenRouterProvider

from src.exceptions import UpstreamError
from src.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048


@dataclass(frozen=True)
class GenerationResult:
    text: str
    tokens_used: int
    model: str


@dataclass
class GenerationOptions:
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    system_prompt: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


class TextGenerator(Protocol):
    """Opaque text-generation collaborator used by the Prompt tab."""

    async def generate(
        self,
        prompt: str,
        model_id: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult: ...


def get_llm_model(
    settings: Settings, model_name: Optional[str] = None
) -> Union[OpenAIChatModel, OpenRouterModel]:
    """
    Build a pydantic-ai model for the configured provider.

    Args:
        settings: Application settings
        model_name: Model to use instead of ``settings.llm_model``

    Returns:
        Configured model with provider-specific integration

    Raises:
        ValueError: If the provider is not supported
    """
    name = model_name or settings.llm_model
    provider = settings.llm_provider

    if provider == "openrouter":
        return OpenRouterModel(name, provider=OpenRouterProvider(api_key=settings.llm_api_key))
    elif provider == "openai":
        kwargs: dict[str, Any] = {"api_key": settings.llm_api_key}
        if settings.llm_base_url:
            kwargs["base_url"] = settings.llm_base_url
        return OpenAIChatModel(name, provider=OpenAIProvider(**kwargs))
    elif provider == "ollama":
        # Ollama exposes an OpenAI-compatible endpoint; the key is required but unused
        ollama = OpenAIProvider(
            base_url=settings.llm_base_url or "http://localhost:11434/v1",
            api_key="ollama",
        )
        return OpenAIChatModel(name, provider=ollama)
    else:
        raise ValueError(f"Unsupported provider: {provider}")


class PydanticAITextGenerator:
    """``TextGenerator`` backed by a plain-text pydantic-ai ``Agent``.

    Every failure of the provider surfaces as ``UpstreamError``; nothing is
    retried here.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def generate(
        self,
        prompt: str,
        model_id: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        options = options or GenerationOptions()
        model_name = model_id or self._settings.llm_model

        try:
            agent = Agent(
                get_llm_model(self._settings, model_name),
                system_prompt=options.system_prompt or (),
            )
            result = await agent.run(
                prompt,
                model_settings={
                    "temperature": options.temperature,
                    "max_tokens": options.max_tokens,
                    **options.extra,
                },
            )
        except Exception as e:
            logger.exception(f"text_generation_failed: model={model_name}, error={str(e)}")
            raise UpstreamError("Text generation failed", code="AI_GENERATION_FAILED") from e

        tokens_used = result.usage().total_tokens or 0
        logger.info(f"text_generated: model={model_name}, tokens_used={tokens_used}")
        return GenerationResult(text=str(result.output), tokens_used=tokens_used, model=model_name)
