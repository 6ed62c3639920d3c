"""LLM providers: abstract base and concrete implementations."""

from providers.base import BaseLLMProvider
from providers.openai_provider import OpenAIProvider, OpenRouterProvider
from providers.ollama_provider import OllamaProvider
from providers.factory import create_provider

__all__ = [
    "BaseLLMProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "OllamaProvider",
    "create_provider",
]
