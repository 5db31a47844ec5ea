"""Construcción de paths de la API (ids y nombres escapados)."""

from __future__ import annotations

from urllib.parse import quote

DESIGN_PREFIX = "_design/"


def segment(value: str) -> str:
    """Escapa un segmento de path (incluida `/`)."""

    return quote(value, safe="")


def doc_path(doc_id: str) -> str:
    """`/<id>`; en design docs se conserva la barra de `_design/`."""

    if doc_id.startswith(DESIGN_PREFIX):
        return f"/{DESIGN_PREFIX}{segment(doc_id[len(DESIGN_PREFIX):])}"
    return f"/{segment(doc_id)}"


def attachment_path(doc_id: str, attachment_name: str) -> str:
    return f"{doc_path(doc_id)}/{segment(attachment_name)}"
