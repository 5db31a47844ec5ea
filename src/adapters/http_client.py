"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y credenciales de todas las llamadas.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass, field, replace

import httpx

from adapters.randomness import SystemRandomSource
from core.config import CouchSettings
from core.interfaces.random_source import RandomSource, Sleeper


def basic_credentials(login: str, password: str) -> str:
    """Valor del header `Authorization` para HTTP Basic."""

    token = base64.b64encode(f"{login}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


@dataclass(frozen=True)
class ConnectionContext:
    """Dirección base + credencial, inmutable y compartible entre llamadas.

    Por qué frozen:
    - Muchas llamadas concurrentes leen el mismo contexto; nadie lo muta.
    - `scoped()` deriva el contexto de una base sin tocar el del servidor.
    """

    url: str
    credentials: str
    timeout_seconds: float = 30.0
    debug: bool = False
    conflict_jitter_ms: int = 1000
    random_source: RandomSource = field(default_factory=SystemRandomSource)
    sleep: Sleeper = asyncio.sleep
    transport: httpx.AsyncBaseTransport | None = None

    @classmethod
    def from_settings(
        cls,
        settings: CouchSettings | None = None,
        *,
        random_source: RandomSource | None = None,
        sleep: Sleeper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ConnectionContext":
        settings = settings or CouchSettings()
        return cls(
            url=settings.url.rstrip("/"),
            credentials=basic_credentials(settings.login, settings.password),
            timeout_seconds=settings.http_timeout_seconds,
            debug=settings.debug,
            conflict_jitter_ms=settings.conflict_jitter_ms,
            random_source=random_source or SystemRandomSource(),
            sleep=sleep or asyncio.sleep,
            transport=transport,
        )

    def scoped(self, path: str) -> "ConnectionContext":
        """Contexto cuya URL base es `<url>/<path>` (p.ej. una base de datos)."""

        return replace(self, url=f"{self.url}/{path.strip('/')}")


def build_async_client(context: ConnectionContext) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` para una única llamada.

    Por qué un builder:
    - Centraliza timeouts/transport para que todas las llamadas se comporten igual.
    - No hay pool compartido: cada llamada abre y cierra su cliente.

    Los headers (`Authorization`, `Accept`) los arma el dispatcher por request.
    """

    return httpx.AsyncClient(
        timeout=httpx.Timeout(context.timeout_seconds),
        transport=context.transport,
    )
