"""Tolerant JSON decoding for model responses that may wrap JSON in prose or markdown fences."""
from __future__ import annotations

import json
import re
from typing import Any

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_ANY_FENCE = re.compile(r"```\s*([\s\S]*?)\s*```")


class JsonDecodeFailure(ValueError):
    """Response held no decodable JSON object."""

    pass


def select_json_candidate(text: str) -> str:
    """Prefer a ```json fenced block, else any fenced block, else the whole response."""
    m = _JSON_FENCE.search(text) or _ANY_FENCE.search(text)
    if m:
        return m.group(1)
    return text


def outer_brace_slice(text: str) -> str | None:
    """Substring from the first '{' to the last '}' inclusive, or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        return None
    return text[start : end + 1]


def decode_json_object(text: str) -> dict[str, Any]:
    """
    Decode a JSON object from a model response.
    1. fenced candidate (json > any > whole); 2. if not parseable, first '{' .. last '}'.
    Raises JsonDecodeFailure when neither yields a JSON object.
    """
    candidate = select_json_candidate(text or "").strip()
    try:
        parsed = json.loads(candidate)
    except RecursionError as e:
        raise JsonDecodeFailure("JSON nested too deeply") from e
    except json.JSONDecodeError:
        sliced = outer_brace_slice(candidate)
        if sliced is None:
            raise JsonDecodeFailure("no JSON object in response")
        try:
            parsed = json.loads(sliced)
        except RecursionError as e:
            raise JsonDecodeFailure("JSON nested too deeply") from e
        except json.JSONDecodeError as e:
            raise JsonDecodeFailure(f"invalid JSON: {e.msg} at pos {e.pos}") from e
    if not isinstance(parsed, dict):
        raise JsonDecodeFailure(f"expected JSON object, got {type(parsed).__name__}")
    return parsed
