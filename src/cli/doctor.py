"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.couch import CouchDriver
from core.config import CouchSettings, write_user_env_vars
from core.domain.errors import CouchDbError, CouchDriverError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_server(driver: CouchDriver) -> tuple[bool, str]:
    try:
        info = await driver.infos()
    except CouchDbError as exc:
        return False, f"HTTP {exc.status} {exc.status_text}"
    except CouchDriverError as exc:
        return False, str(exc)
    version = info.get("version", "?") if isinstance(info, dict) else "?"
    return True, f"CouchDB {version}"


async def _check_auth(driver: CouchDriver) -> tuple[bool, str]:
    """`_all_dbs` requires admin rights on recent CouchDB releases."""

    try:
        names = await driver.list_all_dbs(limit=1)
    except CouchDbError as exc:
        return False, f"HTTP {exc.status} {exc.status_text}"
    except CouchDriverError as exc:
        return False, str(exc)
    return True, f"{len(names)} database(s) visible"


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = CouchSettings()
    driver = CouchDriver.from_settings(settings)

    table = Table(title="couch-driver Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Server URL", "OK", settings.url)
    if settings.password:
        table.add_row("Credentials", "OK", f"login={settings.login}")
    else:
        table.add_row("Credentials", "WARN", "No password set -> requests may be rejected (401)")

    ok_server, detail_server = asyncio.run(_check_server(driver))
    table.add_row("Server reachable", "OK" if ok_server else "FAIL", detail_server)

    if ok_server:
        ok_auth, detail_auth = asyncio.run(_check_auth(driver))
        table.add_row("Admin access", "OK" if ok_auth else "FAIL", detail_auth)

    _console.print(table)

    if not ok_server:
        _console.print(
            "\n[yellow]Note:[/yellow] run `couch-driver doctor setup` to store the server URL and credentials."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive connection setup (stores config in the user config .env)."""

    current = CouchSettings()
    url = typer.prompt("CouchDB URL", default=current.url, show_default=True).strip()
    login = typer.prompt("Login", default=current.login, show_default=True).strip()
    password = typer.prompt("Password", hide_input=True, confirmation_prompt=False).strip()

    if not url:
        raise typer.BadParameter("url is required")

    env_path = write_user_env_vars(
        {
            "COUCH_DRIVER_URL": url.rstrip("/"),
            "COUCH_DRIVER_LOGIN": login,
            "COUCH_DRIVER_PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved connection config to:[/green] {env_path}")
