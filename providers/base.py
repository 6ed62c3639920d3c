"""
Abstract base for all LLM providers.
Services depend only on ILLMProvider; no concrete provider imports in services.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from core.interfaces import ILLMProvider


class BaseLLMProvider(ILLMProvider, ABC):
    """Abstract LLM provider. Implement chat(); chat_vision has a default."""

    default_model: str = ""

    @abstractmethod
    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Chat completion. Returns content string ("" when the response carries none)."""
        ...

    def chat_vision(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        """Vision-capable chat. OpenAI-compatible APIs take image_url parts in the same endpoint."""
        return self.chat(messages, **kwargs)
