"""Ollama (local) OpenAI-compatible API provider."""

from __future__ import annotations

import requests

from providers.openai_provider import OpenAIProvider

DEFAULT_OLLAMA_BASE = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """Ollama local server; same HTTP contract as OpenAI chat/completions."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str = "",
        model: str = "llava",
        timeout_sec: int = 120,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or DEFAULT_OLLAMA_BASE,
            api_key=api_key,
            model=model,
            timeout_sec=timeout_sec,
            session=session,
        )
