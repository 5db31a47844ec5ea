"""Normalización de parámetros de consulta de vistas.

El parser de vistas de CouchDB exige literales JSON en las cotas de la
consulta: una clave string llega entre comillas, una numérica sin ellas.
"""

from __future__ import annotations

from typing import Any, Mapping

from adapters.dispatcher import dumps

#: Parámetros que delimitan la consulta y viajan como texto JSON.
JSON_BOUNDARY_PARAMS: tuple[str, ...] = ("key", "keys", "start_key", "end_key")


def encode_view_params(params: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Devuelve el mapping listo para el dispatcher.

    - descarta claves con valor `None`
    - serializa a JSON `key`, `keys`, `start_key` y `end_key`
    - fija `reduce=False` si el caller no lo indicó (CouchDB reduce por
      defecto cuando la vista tiene función reduce)
    """

    encoded: dict[str, Any] = {k: v for k, v in (params or {}).items() if v is not None}

    for name in JSON_BOUNDARY_PARAMS:
        if name in encoded:
            encoded[name] = dumps(encoded[name])

    encoded.setdefault("reduce", False)
    return encoded
