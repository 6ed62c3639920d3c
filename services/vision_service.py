"""
Vision text extraction: one page image -> raw unstructured text.
Uses ILLMProvider (injected); no interpretation of the bill happens here.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Callable

import requests

from core.exceptions import ExtractionFailure
from core.interfaces import ILLMProvider, IVisionTextExtractor
from prompts import VISION_TEXT_PROMPT, load_prompt
from utils.image_utils import (
    downscale_image_bytes,
    image_to_data_url,
    media_type_for_path,
    verify_image_bytes,
)
from utils.retry import with_retry

logger = logging.getLogger(__name__)


class VisionTextExtractor(IVisionTextExtractor):
    """Vision-model OCR using an injected LLM provider. Fail-fast: any failure raises ExtractionFailure."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        model: str = "google/gemma-3-27b-it:free",
        max_retries: int = 3,
        retry_delay_sec: float = 2.0,
        max_image_px: int = 0,
        max_tokens: int = 4096,
        prompt: str | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._llm = llm_provider
        self._model = model
        self._max_retries = max_retries
        self._retry_delay_sec = retry_delay_sec
        self._max_image_px = max_image_px
        self._max_tokens = max_tokens
        self._prompt = prompt or load_prompt(VISION_TEXT_PROMPT)
        self._sleep = sleep

    def _load_image(self, path: Path) -> tuple[bytes, str]:
        media_type = media_type_for_path(path)
        if media_type is None:
            raise ExtractionFailure(f"Unsupported file type: {path.suffix or path.name}")
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ExtractionFailure(f"Could not read image {path.name}: {e}") from e
        if not data:
            raise ExtractionFailure(f"Image is empty: {path.name}")
        try:
            if self._max_image_px > 0:
                return downscale_image_bytes(data, self._max_image_px), "image/jpeg"
            verify_image_bytes(data)
        except (OSError, SyntaxError, ValueError) as e:
            raise ExtractionFailure(f"Unreadable image {path.name}: {e}") from e
        return data, media_type

    def _messages(self, data: bytes, media_type: str) -> list[dict[str, Any]]:
        content = [
            {"type": "text", "text": self._prompt},
            {"type": "image_url", "image_url": {"url": image_to_data_url(data, media_type)}},
        ]
        return [{"role": "user", "content": content}]

    def extract_text(self, image_path: Path) -> str:
        path = Path(image_path)
        data, media_type = self._load_image(path)
        messages = self._messages(data, media_type)
        logger.info("Calling vision model (model=%s) for %s", self._model, path.name)
        try:
            text = with_retry(
                lambda: self._llm.chat_vision(messages, model=self._model, max_tokens=self._max_tokens),
                max_attempts=self._max_retries,
                delay_sec=self._retry_delay_sec,
                retry_exceptions=(requests.RequestException,),
                label="Vision extraction",
                sleep=self._sleep,
            )
        except Exception as e:
            logger.warning("Vision extraction failed for %s: %s", path.name, e)
            raise ExtractionFailure(f"Failed to extract text from image {path.name}: {e}") from e
        text = text or ""
        logger.info("Extracted %s characters from %s", len(text), path.name)
        return text
