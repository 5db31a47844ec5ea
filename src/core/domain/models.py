"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Las respuestas JSON del servidor se normalizan en el borde.

Nota:
- Los documentos en sí se manejan como `dict`: su esquema es del usuario.
- Estos modelos describen *qué* devuelve el servidor, no *cómo* se obtiene.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

#: Último carácter del rango Unicode usado por CouchDB; sirve como cota
#: superior en consultas por rango (`end_key=prefix + UNICODE_END`).
UNICODE_END = "￰"


class SaveResult(BaseModel):
    """Confirmación de escritura (save/delete de documento o attachment).

    Por qué `ok` explícito:
    - Tras un conflicto no resuelto el driver devuelve `ok=False` en vez de
      lanzar; el caller debe inspeccionarlo.
    """

    model_config = ConfigDict(extra="ignore")

    ok: bool = Field(
        default=True,
        description="True si el servidor aceptó la escritura.",
    )
    id: str = Field(
        ...,
        min_length=1,
        description="Id del documento escrito.",
    )
    rev: str | None = Field(
        default=None,
        description="Revision-token vigente (posiblemente obsoleto si ok=False).",
    )


class ViewRow(BaseModel):
    """Fila devuelta por una vista o por `_all_docs`."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(
        default=None,
        description="Id del documento que generó la fila (ausente en filas reducidas).",
    )
    key: Any = Field(
        default=None,
        description="Clave emitida por la función map.",
    )
    value: Any = Field(
        default=None,
        description="Valor emitido por la función map (o resultado del reduce).",
    )
    doc: dict[str, Any] | None = Field(
        default=None,
        description="Documento embebido si se pidió `include_docs`.",
    )


class ViewResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_rows: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    rows: list[ViewRow] = Field(default_factory=list)


class DesignDocView(BaseModel):
    map: str | None = None
    reduce: str | None = None


class DesignDoc(BaseModel):
    """Design document compilado en cliente antes de guardarse."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", pattern=r"^_design/.+")
    language: str = Field(default="javascript")
    views: dict[str, DesignDocView] | None = None

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Attachment(BaseModel):
    """Contenido binario de un attachment y su content type."""

    name: str = Field(..., min_length=1)
    content_type: str = Field(default="application/octet-stream")
    content: bytes = Field(default=b"")
