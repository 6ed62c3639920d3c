"""OpenAI and OpenAI-compatible HTTP providers (OpenRouter, Azure, etc.)."""

from __future__ import annotations

import logging
from typing import Any

import requests

from providers.base import BaseLLMProvider

logger = logging.getLogger(__name__)
DEFAULT_OPENAI_BASE = "https://api.openai.com/v1"
DEFAULT_OPENROUTER_BASE = "https://openrouter.ai/api/v1"


class OpenAIProvider(BaseLLMProvider):
    """OpenAI API and OpenAI-compatible endpoints (POST {base_url}/chat/completions)."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str = "",
        model: str = "gpt-4o-mini",
        timeout_sec: int = 120,
        extra_headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or DEFAULT_OPENAI_BASE).rstrip("/")
        self._api_key = api_key or ""
        self.default_model = model
        self._timeout = timeout_sec
        self._extra_headers = dict(extra_headers or {})
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        h: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            h["Authorization"] = f"Bearer {self._api_key}"
        h.update(self._extra_headers)
        return h

    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        url = f"{self._base_url}/chat/completions"
        payload: dict[str, Any] = {
            "model": kwargs.get("model") or self.default_model,
            "messages": messages,
            "stream": False,
        }
        if kwargs.get("max_tokens") is not None:
            payload["max_tokens"] = kwargs["max_tokens"]
        if kwargs.get("temperature") is not None:
            payload["temperature"] = kwargs["temperature"]
        if kwargs.get("top_p") is not None:
            payload["top_p"] = kwargs["top_p"]
        logger.debug("POST %s (model=%s, messages=%s)", url, payload["model"], len(messages))
        resp = self._session.post(url, json=payload, headers=self._headers(), timeout=self._timeout)
        resp.raise_for_status()
        data = resp.json()
        choices = data.get("choices") or [{}]
        return ((choices[0].get("message") or {}).get("content") or "").strip()


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter: OpenAI-compatible, with app attribution headers."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str = "",
        model: str = "google/gemma-3-27b-it:free",
        timeout_sec: int = 120,
        app_referer: str = "",
        app_title: str = "",
        session: requests.Session | None = None,
    ) -> None:
        headers: dict[str, str] = {}
        if app_referer:
            headers["HTTP-Referer"] = app_referer
        if app_title:
            headers["X-Title"] = app_title
        super().__init__(
            base_url=base_url or DEFAULT_OPENROUTER_BASE,
            api_key=api_key,
            model=model,
            timeout_sec=timeout_sec,
            extra_headers=headers,
            session=session,
        )
