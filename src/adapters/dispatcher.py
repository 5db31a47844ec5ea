"""Primitiva única de llamada HTTP contra CouchDB.

Responsabilidad:
- Construir el request (query string, body, headers) desde parámetros
  estructurados.
- Ejecutarlo y clasificar el resultado: JSON decodificado o `CouchDbError`.
- Normalizar fallos de red como `TransportError` (sin filtrar tipos de httpx).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from adapters.http_client import ConnectionContext, build_async_client
from core.domain.errors import CouchDbError, ResponseDecodeError, TransportError
from core.domain.requests import (
    CallFailed,
    CallOk,
    CallOutcome,
    JsonBody,
    RequestBody,
    StreamBody,
)

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def dumps(value: Any) -> str:
    """JSON compacto (mismo texto que produce el servidor / `JSON.stringify`)."""

    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list, tuple)):
        return dumps(value)
    return str(value)


def build_query_pairs(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Codifica parámetros de query respetando el orden de inserción.

    - escalar: `k=v` (booleans en minúscula, como los espera CouchDB)
    - lista/tupla: un `k=item` por elemento, más un `k=a,b,c` final
    - dict: `k=<json>`
    - None: se omite
    """

    pairs: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                pairs.append((key, _scalar(item)))
            # Entrada con el array completo: los servidores/fixtures existentes la esperan.
            pairs.append((key, ",".join(_scalar(item) for item in value)))
        elif isinstance(value, dict):
            pairs.append((key, dumps(value)))
        else:
            pairs.append((key, _scalar(value)))
    return pairs


def _request_id(method: str, path: str, query: httpx.QueryParams) -> str:
    query_text = str(query)
    return f"{method}|{path}?{query_text}" if query_text else f"{method}|{path}"


def _masked(headers: httpx.Headers) -> dict[str, str]:
    out = dict(headers.items())
    if "authorization" in out:
        out["authorization"] = "***"
    return out


async def dispatch_outcome(
    context: ConnectionContext,
    method: str,
    path: str = "",
    *,
    params: Mapping[str, Any] | None = None,
    body: RequestBody | None = None,
    headers: Mapping[str, str] | None = None,
    debug: bool = False,
    accept: str = JSON_CONTENT_TYPE,
    decode: bool = True,
) -> CallOutcome:
    """Ejecuta una llamada y devuelve `CallOk` o `CallFailed` sin lanzar.

    Solo lanza ante fallos irrecuperables: `TransportError` (red) y
    `ResponseDecodeError` (2xx sin JSON válido).

    Con `decode=False` el valor de `CallOk` es el `httpx.Response` ya leído
    (útil para attachments binarios).
    """

    query = httpx.QueryParams(build_query_pairs(params))
    request_id = _request_id(method, path, query)
    url = f"{context.url}{path}"

    request_headers = httpx.Headers(dict(headers or {}))
    content: bytes | Any | None = None
    if isinstance(body, JsonBody):
        content = dumps(body.payload).encode("utf-8")
        request_headers["Content-Type"] = JSON_CONTENT_TYPE
    elif isinstance(body, StreamBody):
        content = body.content

    request_headers["Authorization"] = context.credentials
    request_headers["Accept"] = accept

    if debug or context.debug:
        logger.info(
            "Fetching %s with params %s",
            f"{url}?{query}" if query else url,
            {
                "method": method,
                "body": body.payload if isinstance(body, JsonBody) else body,
                "headers": _masked(request_headers),
            },
        )

    try:
        async with build_async_client(context) as client:
            response = await client.request(
                method,
                url,
                params=query,
                content=content,
                headers=request_headers,
            )
    except httpx.TransportError as exc:
        logger.error("CouchDB server not connected: %s %s (%r)", method, url, exc)
        raise TransportError(url) from None

    if not response.is_success:
        return CallFailed(
            CouchDbError(
                status=response.status_code,
                status_text=response.reason_phrase,
                request=request_id,
                error_body=response.text,
            )
        )

    if not decode:
        return CallOk(response, status=response.status_code)

    try:
        value = response.json()
    except ValueError:
        raise ResponseDecodeError(request_id, response.text) from None
    return CallOk(value, status=response.status_code)


async def dispatch(
    context: ConnectionContext,
    method: str,
    path: str = "",
    *,
    params: Mapping[str, Any] | None = None,
    body: RequestBody | None = None,
    headers: Mapping[str, str] | None = None,
    debug: bool = False,
) -> Any:
    """Como `dispatch_outcome`, pero lanza `CouchDbError` ante un no-2xx."""

    outcome = await dispatch_outcome(
        context,
        method,
        path,
        params=params,
        body=body,
        headers=headers,
        debug=debug,
    )
    if isinstance(outcome, CallFailed):
        raise outcome.error
    return outcome.value
