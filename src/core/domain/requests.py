"""Descriptores transitorios de una llamada HTTP.

Por qué dataclasses y no Pydantic:
- Viven lo que dura una llamada; no se validan ni se serializan.
- El body es una unión etiquetada: el caller declara si envía JSON o un
  stream binario, así el dispatcher no inspecciona tipos en runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterable, Union

from core.domain.errors import CouchDbError, ErrorKind


@dataclass(frozen=True)
class JsonBody:
    """Payload estructurado: se serializa a JSON y fuerza `Content-Type`."""

    payload: Any


@dataclass(frozen=True)
class StreamBody:
    """Payload binario: se envía tal cual, con los headers del caller."""

    content: bytes | AsyncIterable[bytes]


RequestBody = Union[JsonBody, StreamBody]


@dataclass(frozen=True)
class CallOk:
    """Respuesta 2xx ya decodificada."""

    value: Any
    status: int = 200

    ok = True


@dataclass(frozen=True)
class CallFailed:
    """Respuesta no-2xx clasificada."""

    error: CouchDbError
    ok = False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


CallOutcome = Union[CallOk, CallFailed]

