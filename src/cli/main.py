"""CLI principal (Typer + Rich).

Por qué una CLI:
- Permite inspeccionar un servidor CouchDB (bases, documentos, vistas) sin
  escribir código.
- Cada comando es una capa fina sobre `adapters.couch`; no hay lógica aquí.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

import typer
from rich.console import Console
from rich.json import JSON
from rich.markup import escape

from adapters.couch import CouchDriver
from cli import doctor
from cli.ui_components import (
    build_dbs_table,
    build_info_panel,
    build_view_table,
    format_save_result,
    print_banner,
)
from core.config import CouchSettings
from core.domain.errors import CouchDbError, CouchDriverError

app = typer.Typer(no_args_is_help=True, help="CouchDB client: databases, documents and views.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def build_driver() -> CouchDriver:
    return CouchDriver.from_settings(CouchSettings())


def _run(coro: Any) -> Any:
    """Ejecuta una corrutina y traduce errores del driver a un exit code."""

    try:
        return asyncio.run(coro)
    except CouchDbError as exc:
        _console.print(f"[red]{escape(str(exc))}[/red] ({escape(exc.request)})")
        if exc.error_body:
            _console.print(exc.error_body, style="dim", markup=False)
        raise typer.Exit(code=1) from None
    except CouchDriverError as exc:
        _console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from None


def _parse_json_option(value: str | None) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        # Un valor no-JSON se interpreta como string literal.
        return value


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log de cada request (nivel INFO)."),
) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def info(banner: bool = typer.Option(True, "--banner/--no-banner")) -> None:
    """Muestra versión y metadata del servidor."""

    if banner:
        print_banner(_console)
    data = _run(build_driver().infos())
    _console.print(build_info_panel(data))


@app.command()
def dbs(
    limit: Optional[int] = typer.Option(None, min=1),
    skip: Optional[int] = typer.Option(None, min=0),
    descending: bool = typer.Option(False, "--descending"),
) -> None:
    """Lista las bases de datos."""

    names = _run(build_driver().list_all_dbs(limit=limit, skip=skip, descending=descending or None))
    _console.print(build_dbs_table(names))


@app.command(name="create-db")
def create_db(name: str) -> None:
    """Crea una base (no falla si ya existe)."""

    _run(build_driver().create_db(name))
    _console.print(f"[green]database ready:[/green] {name}")


@app.command(name="drop-db")
def drop_db(name: str) -> None:
    """Borra una base."""

    deleted = _run(build_driver().delete_db(name))
    if deleted:
        _console.print(f"[green]database deleted:[/green] {name}")
    else:
        _console.print(f"[yellow]database not deleted (missing?):[/yellow] {name}")
        raise typer.Exit(code=1)


@app.command()
def get(db: str, doc_id: str) -> None:
    """Imprime un documento como JSON."""

    doc = _run(build_driver().get_db(db).load_doc(doc_id))
    if doc is None:
        _console.print(f"[yellow]not found:[/yellow] {doc_id}")
        raise typer.Exit(code=1)
    _console.print(JSON.from_data(doc))


@app.command()
def put(
    db: str,
    document: str = typer.Argument(..., help="Documento JSON (objeto)."),
    strict: bool = typer.Option(False, "--strict", help="Falla ante conflicto en vez de reintentar."),
) -> None:
    """Crea o actualiza un documento."""

    try:
        doc = json.loads(document)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"invalid JSON: {exc}") from None
    if not isinstance(doc, dict):
        raise typer.BadParameter("document must be a JSON object")

    result = _run(build_driver().get_db(db).save_doc(doc, replace_on_conflict=not strict))
    _console.print(format_save_result(result))
    if not result.ok:
        raise typer.Exit(code=1)


@app.command()
def view(
    db: str,
    design: str,
    view_name: str,
    key: Optional[str] = typer.Option(None, help="Clave exacta (JSON o string)."),
    start_key: Optional[str] = typer.Option(None, help="Cota inferior (JSON o string)."),
    end_key: Optional[str] = typer.Option(None, help="Cota superior (JSON o string)."),
    limit: Optional[int] = typer.Option(None, min=1),
    include_docs: bool = typer.Option(False, "--include-docs"),
    reduce: bool = typer.Option(False, "--reduce/--no-reduce"),
    group: bool = typer.Option(False, "--group"),
) -> None:
    """Consulta una vista de un design doc."""

    params: dict[str, Any] = {
        "key": _parse_json_option(key),
        "start_key": _parse_json_option(start_key),
        "end_key": _parse_json_option(end_key),
        "limit": limit,
        "include_docs": include_docs or None,
        "reduce": reduce,
        "group": group or None,
    }
    response = _run(build_driver().get_db(db).query_view(design, view_name, **params))
    _console.print(build_view_table(response))


def run() -> None:
    app()
