"""OpenAI Chat Completion client wrapper."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from openai import AsyncOpenAI

from agents.errors import ConfigurationError, SummarizationError
from config.settings import Settings, get_settings
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """Wrapper for the OpenAI Chat Completion API."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY must be configured for the OpenAI client.")

        self._client = AsyncOpenAI(api_key=settings.openai_api_key)
        self._model = settings.completion_model

    async def chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float = 0.1,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        kwargs: dict[str, Any] = {}
        if response_format is not None:
            kwargs["response_format"] = response_format

        response = await self._client.chat.completions.create(
            model=self._model,
            messages=list(messages),
            temperature=temperature,
            max_tokens=768,
            **kwargs,
        )
        LOGGER.debug("Chat completion finished (model=%s, id=%s)", self._model, response.id)
        if not response.choices:
            raise SummarizationError("Chat completion contains no choices.")
        return response.choices[0].message.content or ""
