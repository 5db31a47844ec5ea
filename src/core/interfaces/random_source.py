"""Contratos de aleatoriedad inyectable.

Por qué Protocol:
- El generador de ids y el jitter del reintento dejan de ser globales.
- Los tests inyectan valores deterministas y verifican timing e ids exactos.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Fuente de ids únicos y de esperas aleatorias."""

    def new_uid(self) -> str:
        """Devuelve un identificador aleatorio globalmente único."""

        ...

    def jitter_ms(self, upper: int) -> int:
        """Devuelve un entero en `[0, upper)` (milisegundos)."""

        ...


Sleeper = Callable[[float], Awaitable[None]]
