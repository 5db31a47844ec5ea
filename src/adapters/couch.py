"""Driver CouchDB: catálogo de endpoints sobre el dispatcher.

Responsabilidad:
- `CouchDriver`: operaciones a nivel servidor (bases, info).
- `CouchDatabase`: documentos, attachments, design docs y vistas de una base.

Cada método es un mapeo parámetros -> URL; la lógica de request/response
vive en `adapters.dispatcher` y la de conflictos en `core.services.documents`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, AsyncIterable, Iterable, Mapping

import httpx

from adapters.dispatcher import dispatch, dispatch_outcome
from adapters.files import DEFAULT_CONTENT_TYPE, iter_file, mime_type_from_name
from adapters.http_client import ConnectionContext
from adapters.paths import DESIGN_PREFIX, attachment_path, doc_path, segment
from adapters.query_encoder import encode_view_params
from core.config import CouchSettings
from core.domain.errors import (
    BAD_REQUEST,
    NOT_FOUND,
    PRECONDITION_FAILED,
    InvalidDatabaseNameError,
)
from core.domain.models import Attachment, DesignDoc, DesignDocView, SaveResult, ViewResponse
from core.domain.requests import CallOk, JsonBody, RequestBody, StreamBody
from core.interfaces.random_source import RandomSource, Sleeper
from core.services.documents import load_document, save_document


class CouchDriver:
    """Conexión a un servidor CouchDB.

    La credencial Basic se calcula una sola vez y el contexto es inmutable,
    así que un mismo driver puede usarse desde muchas tareas concurrentes.
    """

    def __init__(self, context: ConnectionContext) -> None:
        self.context = context

    @classmethod
    def connect(
        cls,
        url: str,
        login: str,
        password: str,
        *,
        timeout_seconds: float = 30.0,
        debug: bool = False,
        random_source: RandomSource | None = None,
        sleep: Sleeper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CouchDriver":
        settings = CouchSettings(
            url=url,
            login=login,
            password=password,
            http_timeout_seconds=timeout_seconds,
            debug=debug,
        )
        return cls.from_settings(
            settings,
            random_source=random_source,
            sleep=sleep,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: CouchSettings | None = None,
        *,
        random_source: RandomSource | None = None,
        sleep: Sleeper | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CouchDriver":
        context = ConnectionContext.from_settings(
            settings,
            random_source=random_source,
            sleep=sleep,
            transport=transport,
        )
        return cls(context)

    @property
    def url(self) -> str:
        return self.context.url

    @property
    def credentials(self) -> str:
        return self.context.credentials

    def get_db(self, db_name: str) -> "CouchDatabase":
        return CouchDatabase(self, db_name)

    async def list_all_dbs(
        self,
        *,
        limit: int | None = None,
        skip: int | None = None,
        descending: bool | None = None,
    ) -> list[str]:
        """`GET /_all_dbs`."""

        params = {"limit": limit, "skip": skip, "descending": descending}
        return await dispatch(self.context, "GET", "/_all_dbs", params=params)

    async def create_db(self, db_name: str) -> "CouchDatabase":
        """Crea la base; no hace nada si ya existe."""

        outcome = await dispatch_outcome(self.context, "PUT", f"/{segment(db_name)}")
        if not isinstance(outcome, CallOk):
            if outcome.error.status == BAD_REQUEST:
                raise InvalidDatabaseNameError(db_name)
            if outcome.error.status != PRECONDITION_FAILED:
                raise outcome.error
        return self.get_db(db_name)

    async def delete_db(self, db_name: str) -> bool:
        """True si la base existía y se borró."""

        outcome = await dispatch_outcome(self.context, "DELETE", f"/{segment(db_name)}")
        return isinstance(outcome, CallOk)

    async def has_db(self, db_name: str) -> bool:
        outcome = await dispatch_outcome(self.context, "GET", f"/{segment(db_name)}")
        return isinstance(outcome, CallOk)

    async def infos(self) -> dict[str, Any]:
        """`GET /`: versión y metadata del servidor."""

        return await dispatch(self.context, "GET", "/")


class CouchDatabase:
    """Operaciones sobre una base concreta (`/{db}/...`)."""

    def __init__(self, driver: CouchDriver, db_name: str) -> None:
        self.driver = driver
        self.db_name = db_name
        self.context = driver.context.scoped(segment(db_name))

    @property
    def url(self) -> str:
        return self.context.url

    async def do_call(
        self,
        method: str,
        url_path: str = "",
        *,
        params: Mapping[str, Any] | None = None,
        body: RequestBody | None = None,
        headers: Mapping[str, str] | None = None,
        debug: bool = False,
    ) -> Any:
        return await dispatch(
            self.context,
            method,
            url_path,
            params=params,
            body=body,
            headers=headers,
            debug=debug,
        )

    async def compact(self) -> dict[str, Any]:
        """Fuerza la compactación (CouchDB la hace sola, pero a veces conviene)."""

        return await dispatch(self.context, "POST", "/_compact", body=JsonBody({}))

    async def all_docs(
        self,
        *,
        limit: int | None = None,
        skip: int | None = None,
        descending: bool | None = None,
        include_docs: bool | None = None,
    ) -> ViewResponse:
        params = {
            "limit": limit,
            "skip": skip,
            "descending": descending,
            "include_docs": include_docs,
        }
        data = await dispatch(self.context, "GET", "/_all_docs", params=params)
        return ViewResponse.model_validate(data)

    async def load_doc(
        self,
        doc_id: str,
        *,
        attachments: bool | None = None,
        att_encoding_info: bool | None = None,
        rev: str | None = None,
    ) -> dict[str, Any] | None:
        """Devuelve el documento, o `None` si no existe."""

        params = {
            "attachments": attachments,
            "att_encoding_info": att_encoding_info,
            "rev": rev,
        }
        return await load_document(self.context, doc_id, params=params)

    async def save_doc(self, doc: dict[str, Any], replace_on_conflict: bool = True) -> SaveResult:
        """Crea o actualiza un documento (ver `core.services.documents.save_document`)."""

        return await save_document(
            self.context,
            doc,
            allow_conflict_resolution=replace_on_conflict,
        )

    async def bulk_delete_docs(self, to_delete: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
        """Borra un grupo de documentos (`_id` + `_rev`) en una sola llamada."""

        docs = [{"_id": e["_id"], "_rev": e["_rev"], "_deleted": True} for e in to_delete]
        return await dispatch(self.context, "POST", "/_bulk_docs", body=JsonBody({"docs": docs}))

    async def delete_doc(self, doc_id: str, rev: str) -> SaveResult:
        data = await dispatch(self.context, "DELETE", doc_path(doc_id), params={"rev": rev})
        return SaveResult.model_validate(data)

    async def add_attachment_from_file(
        self,
        doc_id: str,
        rev: str,
        attachment_name: str,
        file_path: str | Path,
        *,
        content_type: str | None = None,
    ) -> SaveResult:
        path = Path(file_path)
        return await self.add_attachment_from_stream(
            doc_id,
            rev,
            attachment_name,
            iter_file(path),
            content_type=content_type or mime_type_from_name(path),
        )

    async def add_attachment_from_stream(
        self,
        doc_id: str,
        rev: str,
        attachment_name: str,
        stream: bytes | AsyncIterable[bytes],
        *,
        content_type: str | None = None,
    ) -> SaveResult:
        data = await dispatch(
            self.context,
            "PUT",
            attachment_path(doc_id, attachment_name),
            params={"rev": rev},
            body=StreamBody(stream),
            headers={"Content-Type": content_type or DEFAULT_CONTENT_TYPE},
        )
        return SaveResult.model_validate(data)

    async def load_attachment(self, doc_id: str, attachment_name: str) -> Attachment | None:
        """Descarga un attachment; `None` si el documento o el attachment no existen."""

        outcome = await dispatch_outcome(
            self.context,
            "GET",
            attachment_path(doc_id, attachment_name),
            accept="*/*",
            decode=False,
        )
        if not isinstance(outcome, CallOk):
            if outcome.error.status == NOT_FOUND:
                return None
            raise outcome.error
        response: httpx.Response = outcome.value
        return Attachment(
            name=attachment_name,
            content_type=response.headers.get("Content-Type", DEFAULT_CONTENT_TYPE),
            content=response.content,
        )

    async def delete_attachment(self, doc_id: str, rev: str, attachment_name: str) -> SaveResult:
        data = await dispatch(
            self.context,
            "DELETE",
            attachment_path(doc_id, attachment_name),
            params={"rev": rev},
        )
        return SaveResult.model_validate(data)

    async def load_design_doc(self, doc_name: str) -> dict[str, Any]:
        return await dispatch(self.context, "GET", doc_path(f"{DESIGN_PREFIX}{doc_name}"))

    @staticmethod
    def compile_design_doc(
        design_doc_name: str,
        *,
        map_views: Mapping[str, str] | None = None,
        reduce_views: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        """Arma un design doc a partir del código JavaScript de map/reduce.

        El resultado se guarda con `save_doc`.
        """

        views: dict[str, DesignDocView] | None = None
        if map_views or reduce_views:
            views = {}
            for view_name, source in (map_views or {}).items():
                views.setdefault(view_name, DesignDocView()).map = source
            for view_name, source in (reduce_views or {}).items():
                views.setdefault(view_name, DesignDocView()).reduce = source

        design = DesignDoc(id=f"{DESIGN_PREFIX}{design_doc_name}", views=views)
        return design.to_document()

    async def query_view(
        self,
        design_doc_name: str,
        view_name: str,
        **params: Any,
    ) -> ViewResponse:
        """Consulta una vista (`/_design/{ddoc}/_view/{view}`).

        Parámetros habituales: `key`, `keys`, `start_key`, `end_key`, `limit`,
        `skip`, `descending`, `include_docs`, `reduce`, `group`.
        """

        path = f"{doc_path(f'{DESIGN_PREFIX}{design_doc_name}')}/_view/{segment(view_name)}"
        data = await dispatch(self.context, "GET", path, params=encode_view_params(params))
        return ViewResponse.model_validate(data)
