"""
Language model client used by the link ranker.

A missing model is a normal condition: get_language_model() returns None
when LLM ranking is disabled or no API key is configured, and callers fall
back to deterministic behaviour.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import anthropic

from leadgen_pipeline.config import settings

logger = logging.getLogger(__name__)


class LanguageModel(ABC):
    """Prompt in, generated text out."""

    @abstractmethod
    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        pass


class AnthropicLanguageModel(LanguageModel):
    """Claude via the official async SDK."""

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.model = model or settings.LLM_MODEL
        self.max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout or settings.LLM_TIMEOUT_SECONDS,
        )

    async def generate(self, prompt: str, system: Optional[str] = None) -> str:
        kwargs = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(**kwargs)
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()


def get_language_model(user_id: Optional[str] = None) -> Optional[LanguageModel]:
    """
    Resolve the model for a caller.

    Returns None when LLM link ranking is disabled or no API key is set.
    """
    if not settings.ENABLE_LLM_LINK_RANKING:
        return None
    if not settings.ANTHROPIC_API_KEY:
        logger.debug(f"No ANTHROPIC_API_KEY configured; LLM disabled for user {user_id}")
        return None
    return AnthropicLanguageModel(api_key=settings.ANTHROPIC_API_KEY)
