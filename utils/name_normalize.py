"""
Default medicine-name normalizer. The real normalizer is an external pure function
injected into the pipeline; this one only tidies whitespace.
"""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_medicine_name(name: str) -> str:
    """Collapse runs of whitespace and strip. Case is preserved (matching is case-insensitive)."""
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name).strip()
