"""Implementación por defecto de `RandomSource` (uuid + random)."""

from __future__ import annotations

import random
import uuid


class SystemRandomSource:
    """Ids `uuid4` y jitter uniforme con el PRNG del módulo `random`."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def new_uid(self) -> str:
        return str(uuid.uuid4())

    def jitter_ms(self, upper: int) -> int:
        if upper <= 0:
            return 0
        return self._rng.randrange(upper)
