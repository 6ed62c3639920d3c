"""HTTP providers: request shape against a mocked requests session, plus the factory."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from core.exceptions import ConfigError
from providers.factory import create_provider
from providers.ollama_provider import DEFAULT_OLLAMA_BASE, OllamaProvider
from providers.openai_provider import OpenAIProvider, OpenRouterProvider
from utils.config import LLMConfig


def _session(payload: dict) -> MagicMock:
    session = MagicMock(spec=requests.Session)
    response = MagicMock()
    response.json.return_value = payload
    session.post.return_value = response
    return session


def test_openrouter_request_shape() -> None:
    session = _session({"choices": [{"message": {"content": "  hello \n"}}]})
    provider = OpenRouterProvider(
        api_key="or-key",
        model="vision-m",
        timeout_sec=30,
        app_referer="https://example.org",
        app_title="Bill Import",
        session=session,
    )
    out = provider.chat([{"role": "user", "content": "hi"}], max_tokens=64, temperature=0.0)
    assert out == "hello"
    (url,), kwargs = session.post.call_args
    assert url == "https://openrouter.ai/api/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer or-key"
    assert kwargs["headers"]["HTTP-Referer"] == "https://example.org"
    assert kwargs["headers"]["X-Title"] == "Bill Import"
    assert kwargs["json"] == {
        "model": "vision-m",
        "messages": [{"role": "user", "content": "hi"}],
        "stream": False,
        "max_tokens": 64,
        "temperature": 0.0,
    }
    assert kwargs["timeout"] == 30


def test_missing_content_is_empty_string() -> None:
    provider = OpenAIProvider(session=_session({"choices": [{"message": {}}]}))
    assert provider.chat([{"role": "user", "content": "x"}]) == ""
    provider = OpenAIProvider(session=_session({}))
    assert provider.chat([{"role": "user", "content": "x"}]) == ""


def test_http_error_propagates() -> None:
    session = _session({})
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError("503")
    with pytest.raises(requests.HTTPError):
        OpenAIProvider(session=session).chat([{"role": "user", "content": "x"}])


def test_factory_builds_each_provider() -> None:
    router = create_provider(LLMConfig(provider="openrouter"), model="parser-m")
    assert isinstance(router, OpenRouterProvider)
    assert router.default_model == "parser-m"

    local = create_provider(LLMConfig(provider="ollama", vision_model="llava"))
    assert isinstance(local, OllamaProvider)
    assert local.default_model == "llava"
    assert local._base_url == DEFAULT_OLLAMA_BASE

    custom = create_provider(LLMConfig(provider="openai", base_url="http://gateway/v1/"))
    assert custom._base_url == "http://gateway/v1"


def test_factory_rejects_unknown_provider() -> None:
    with pytest.raises(ConfigError):
        create_provider(LLMConfig(provider="huggingface"))
