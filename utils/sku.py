"""SKU generation for newly created batches."""

from __future__ import annotations

import random
import re
import time
from typing import Callable

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
SKU_RANDOM_BOUND = 999


class SkuGenerator:
    """
    SKU = NAME[:3] - alphanumeric batch (or time-derived fallback) - random suffix in [0, 999).
    Reduces collision likelihood; does not guarantee uniqueness. Random source and clock are
    injectable so tests can pin the output.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock

    def generate(self, name: str, batch_number: str | None) -> str:
        prefix = (name or "")[:3].upper()
        clean_batch = _NON_ALNUM.sub("", batch_number or "")
        if not batch_number:
            clean_batch = str(int(self._clock() * 1000))[:6]
        suffix = self._rng.randrange(SKU_RANDOM_BOUND)
        return f"{prefix}-{clean_batch}-{suffix}"
