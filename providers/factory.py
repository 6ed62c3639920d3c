"""Factory for creating LLM providers from config. No hardcoded model names in services."""

from __future__ import annotations

from core.exceptions import ConfigError
from core.interfaces import ILLMProvider
from providers.openai_provider import OpenAIProvider, OpenRouterProvider
from providers.ollama_provider import OllamaProvider
from utils.config import LLMConfig


def create_provider(config: LLMConfig, model: str | None = None) -> ILLMProvider:
    """
    Create an LLM provider by name from LLMConfig. `model` overrides the provider's default model,
    so one config can build separate vision and parsing clients.
    """
    name = (config.provider or "openrouter").strip().lower()
    chosen = model or config.vision_model
    base_url = config.base_url or None
    if name == "openrouter":
        return OpenRouterProvider(
            base_url=base_url,
            api_key=config.api_key,
            model=chosen,
            timeout_sec=config.timeout_sec,
            app_referer=config.app_referer,
            app_title=config.app_title,
        )
    if name == "openai":
        return OpenAIProvider(
            base_url=base_url,
            api_key=config.api_key,
            model=chosen,
            timeout_sec=config.timeout_sec,
        )
    if name == "ollama":
        return OllamaProvider(
            base_url=base_url,
            api_key=config.api_key,
            model=chosen,
            timeout_sec=config.timeout_sec,
        )
    raise ConfigError(f"Unknown LLM provider: {config.provider}. Use openrouter, openai, or ollama.")
