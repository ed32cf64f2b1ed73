"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file, read_user_env_vars, write_user_env_vars
from core.session import SessionStore

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/")
        return True, f"HTTP {response.status_code}"
    except httpx.HTTPError as exc:
        return False, str(exc) or exc.__class__.__name__


def _check_export_dir(path: Path) -> tuple[bool, str]:
    """Check the export directory can be created and written to."""

    try:
        path.mkdir(parents=True, exist_ok=True)
        probe = path / ".doctor_probe"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return True, str(path.resolve())
    except OSError as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="modconsole Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base_url", "OK", settings.api_base_url)
    table.add_row("Timeout", "OK", f"{settings.http_timeout_seconds:g}s")

    user_env = get_user_env_file()
    stored = read_user_env_vars(user_env)
    table.add_row("User .env", "OK" if stored else "EMPTY", f"{len(stored)} keys in {user_env}")

    store = SessionStore(settings.session_path)
    session = store.hydrate()
    if session.is_authenticated and session.profile is not None:
        table.add_row("Session", "OK", f"{session.profile.display_name} ({settings.session_path})")
    else:
        table.add_row("Session", "MISSING", "Run `modconsole login`")

    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("API connectivity", "OK" if ok_http else "FAIL", detail_http)

    ok_export, detail_export = _check_export_dir(settings.export_dir)
    table.add_row("Export dir", "OK" if ok_export else "FAIL", detail_export)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Set MODCONSOLE_API_BASE_URL or run `modconsole doctor setup`."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    current = AppSettings()
    base_url = typer.prompt("API base URL", default=current.api_base_url, show_default=True).strip()
    login_path = typer.prompt("Login path", default=current.login_path, show_default=True).strip()
    timeout = typer.prompt(
        "Request timeout (seconds)",
        default=str(current.http_timeout_seconds),
        show_default=True,
    ).strip()

    if not base_url or not login_path:
        raise typer.BadParameter("base_url and login_path are required")
    try:
        if float(timeout) <= 0:
            raise ValueError(timeout)
    except ValueError as exc:
        raise typer.BadParameter("timeout must be a positive number") from exc

    env_path = write_user_env_vars(
        {
            "MODCONSOLE_API_BASE_URL": base_url,
            "MODCONSOLE_LOGIN_PATH": login_path,
            "MODCONSOLE_HTTP_TIMEOUT_SECONDS": timeout,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
