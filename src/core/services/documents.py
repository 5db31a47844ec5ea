"""Lectura y escritura de documentos con recuperación local de errores.

Son los dos únicos puntos donde un error HTTP no sube tal cual:
- `load_document`: un 404 se traduce en `None`.
- `save_document`: un 409 dispara un único reintento con jitter.

Política del reintento:
- Se espera un tiempo aleatorio en `[0, conflict_jitter_ms)` para
  desincronizar escritores concurrentes, se relee el documento y se adopta
  su revision-token (los campos del caller ganan).
- Si el documento fue borrado entre medio, se reintenta como creación.
- Si el segundo intento también falla se devuelve `SaveResult(ok=False)`:
  el caller debe inspeccionar `ok`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from adapters.dispatcher import dispatch_outcome
from adapters.http_client import ConnectionContext
from adapters.paths import doc_path
from core.domain.errors import ErrorKind
from core.domain.models import SaveResult
from core.domain.requests import CallFailed, CallOk, CallOutcome, JsonBody

logger = logging.getLogger(__name__)


async def load_document(
    context: ConnectionContext,
    doc_id: str,
    *,
    params: Mapping[str, Any] | None = None,
) -> dict[str, Any] | None:
    """`GET /{db}/{id}`; devuelve `None` si el documento no existe."""

    outcome = await dispatch_outcome(context, "GET", doc_path(doc_id), params=params)
    if isinstance(outcome, CallOk):
        return outcome.value
    if outcome.kind is ErrorKind.NOT_FOUND:
        return None
    raise outcome.error


async def _put(context: ConnectionContext, doc: dict[str, Any]) -> CallOutcome:
    return await dispatch_outcome(context, "PUT", doc_path(doc["_id"]), body=JsonBody(doc))


async def save_document(
    context: ConnectionContext,
    doc: dict[str, Any],
    *,
    allow_conflict_resolution: bool = True,
) -> SaveResult:
    """Crea o actualiza `doc` (`PUT /{db}/{id}`).

    `doc` se modifica in-place: recibe `_id` si no tenía y, tras un conflicto,
    el `_rev` releído del servidor.

    Con `allow_conflict_resolution=False` el primer fallo se lanza tal cual.
    """

    doc_id = doc.get("_id")
    if not doc_id:
        doc_id = doc["_id"] = context.random_source.new_uid()

    outcome = await _put(context, doc)
    if isinstance(outcome, CallOk):
        return SaveResult.model_validate(outcome.value)
    if not allow_conflict_resolution or outcome.kind is not ErrorKind.CONFLICT:
        raise outcome.error

    # Carrera típica: el mismo emisor pide dos veces la escritura, o el
    # procesamiento del documento tarda y otro escritor se adelanta.
    wait_ms = context.random_source.jitter_ms(context.conflict_jitter_ms)
    logger.info("CouchDB: conflict saving %s, retrying in %d ms", doc_id, wait_ms)
    await context.sleep(wait_ms / 1000)

    current = await load_document(context, doc_id)
    if current is not None:
        doc["_rev"] = current["_rev"]
    else:
        doc.pop("_rev", None)

    outcome = await _put(context, doc)
    if isinstance(outcome, CallOk):
        return SaveResult.model_validate(outcome.value)

    assert isinstance(outcome, CallFailed)
    logger.error(
        "CouchDB: cross racing occurred on %s (%s, %s)",
        doc_id,
        outcome.error,
        outcome.error.error_body,
    )
    return SaveResult(ok=False, id=doc_id, rev=doc.get("_rev"))
