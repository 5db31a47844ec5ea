"""Taxonomía de errores del driver.

Por qué un módulo propio:
- Los callers ramifican por `kind`/`status` sin parsear mensajes.
- Los errores HTTP se construyen solo en el borde del dispatcher.
"""

from __future__ import annotations

from enum import Enum

BAD_REQUEST = 400
NOT_FOUND = 404
CONFLICT = 409
PRECONDITION_FAILED = 412


class ErrorKind(str, Enum):
    """Clasificación de una respuesta HTTP no-2xx."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    OTHER = "other"

    @classmethod
    def from_status(cls, status: int) -> "ErrorKind":
        if status == NOT_FOUND:
            return cls.NOT_FOUND
        if status == CONFLICT:
            return cls.CONFLICT
        return cls.OTHER


class CouchDriverError(Exception):
    """Base de todos los errores del driver."""


class TransportError(CouchDriverError):
    """La llamada de red no pudo completarse (servidor caído, DNS, timeout...)."""

    def __init__(self, url: str, message: str = "CouchDB server not connected") -> None:
        super().__init__(f"{message} ({url})")
        self.url = url


class CouchDbError(CouchDriverError):
    """Respuesta HTTP no-2xx, con todo el contexto para diagnosticar."""

    def __init__(self, status: int, status_text: str, request: str, error_body: str) -> None:
        super().__init__(f"CouchDB - {status} - {status_text}")
        self.status = status
        self.status_text = status_text
        self.request = request
        self.error_body = error_body

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.from_status(self.status)


class ResponseDecodeError(CouchDriverError, ValueError):
    """Respuesta 2xx cuyo body no es JSON válido."""

    def __init__(self, request: str, body: str) -> None:
        super().__init__(f"CouchDB - invalid JSON body for {request}")
        self.request = request
        self.body = body


class InvalidDatabaseNameError(CouchDriverError):
    """El servidor rechazó la creación de la base (HTTP 400)."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Illegal database name: {name!r}")
        self.name = name


def is_conflict_error(error: object) -> bool:
    return isinstance(error, CouchDbError) and error.status == CONFLICT


def is_not_found_error(error: object) -> bool:
    return isinstance(error, CouchDbError) and error.status == NOT_FOUND
