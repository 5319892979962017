"""Shared abstractions for language model clients."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable


class BaseLLMClient(ABC):
    """Abstract base class for chat completion providers."""

    @abstractmethod
    async def chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float = 0.1,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Return the content of a chat-style completion."""
