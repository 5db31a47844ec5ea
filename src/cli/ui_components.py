"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import SaveResult, ViewResponse


def print_banner(console: Console) -> None:
    title = Text("couch-driver", style="bold cyan")
    subtitle = Text("CouchDB • documentos • vistas", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_info_panel(info: dict[str, Any]) -> Panel:
    """Panel con la respuesta de `GET /`."""

    body = Text()
    for key in ("couchdb", "version", "git_sha", "uuid", "vendor"):
        if key not in info:
            continue
        value = info[key]
        if isinstance(value, dict):
            value = value.get("name") or json.dumps(value)
        body.append(f"{key}: ", style="bold")
        body.append(f"{value}\n")
    features = info.get("features")
    if isinstance(features, list) and features:
        body.append("features: ", style="bold")
        body.append(", ".join(str(f) for f in features))

    return Panel(body, title=Text("Servidor", style="bold yellow"), border_style="yellow")


def build_dbs_table(names: Iterable[str]) -> Table:
    table = Table(title="Databases")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    for index, name in enumerate(names, start=1):
        table.add_row(str(index), name)
    return table


def build_view_table(response: ViewResponse) -> Table:
    """Tabla con las filas de una vista (id, key, value)."""

    title = "View rows"
    if response.total_rows is not None:
        title = f"View rows ({len(response.rows)}/{response.total_rows})"
    table = Table(title=title)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Key", style="white")
    table.add_column("Value", style="magenta")
    table.add_column("Doc", style="dim")
    for row in response.rows:
        table.add_row(
            row.id or "",
            json.dumps(row.key, ensure_ascii=False),
            json.dumps(row.value, ensure_ascii=False),
            "yes" if row.doc is not None else "",
        )
    return table


def format_save_result(result: SaveResult) -> Text:
    if result.ok:
        return Text.assemble(("saved ", "green"), (result.id, "bold"), f" rev={result.rev}")
    return Text.assemble(
        ("conflict not resolved ", "red"),
        (result.id, "bold"),
        f" rev={result.rev}",
    )
