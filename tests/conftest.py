"""Shared test doubles: scripted LLM provider, tiny images, seeded SKU generator."""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any, Callable

import pytest
from PIL import Image

from providers.base import BaseLLMProvider
from utils.sku import SkuGenerator


class FakeLLMProvider(BaseLLMProvider):
    """Returns scripted responses in order; an Exception entry is raised instead. Records every call."""

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []
        self.default_model = "fake-model"

    def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> str:
        self.calls.append({"messages": messages, **kwargs})
        if not self.responses:
            return ""
        nxt = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


@pytest.fixture
def make_llm() -> Callable[..., FakeLLMProvider]:
    def _make(*responses: Any) -> FakeLLMProvider:
        return FakeLLMProvider(list(responses))
    return _make


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a small real image; suffix picks the format."""
    formats = {".png": "PNG", ".jpg": "JPEG", ".jpeg": "JPEG", ".webp": "WEBP", ".gif": "GIF"}

    def _make(name: str = "bill.png", size: tuple[int, int] = (40, 20)) -> Path:
        path = tmp_path / name
        Image.new("RGB", size, color=(255, 255, 255)).save(path, format=formats[path.suffix.lower()])
        return path
    return _make


@pytest.fixture
def sku_generator() -> SkuGenerator:
    return SkuGenerator(rng=random.Random(7), clock=lambda: 1_700_000_000.123)


@pytest.fixture
def no_sleep() -> Callable[[float], None]:
    return lambda _sec: None
