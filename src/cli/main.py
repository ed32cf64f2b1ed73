"""CLI principal (Typer).

Cada comando es una "navegación": antes de tocar la red se evalúa el
RouteGuard con la sesión actual, igual que el router del panel web.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler

from adapters.admin_api import HttpAdminApi
from adapters.csv_exporter import ACCOUNT_COLUMNS, LISTING_COLUMNS, export_csv
from cli import doctor
from cli.ui_components import (
    build_accounts_table,
    build_listings_table,
    build_record_panel,
    build_session_panel,
    build_summary,
    print_banner,
    print_outcome,
)
from core.config import AppSettings
from core.domain.errors import ConsoleError, SessionExpiredError
from core.domain.models import CollectionKey, FilterCriteria, ModerationAction, StatusPredicate
from core.route_guard import RouteDecision
from core.services.console import AdminConsole

T = TypeVar("T")

app = typer.Typer(no_args_is_help=True, help="Moderation console for accounts and listings.")
accounts_app = typer.Typer(no_args_is_help=True, help="Property owners and clients.")
listings_app = typer.Typer(no_args_is_help=True, help="Property listings.")
app.add_typer(accounts_app, name="accounts")
app.add_typer(listings_app, name="listings")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)


class AccountRole(str, Enum):
    OWNER = "owner"
    USER = "user"

    @property
    def collection(self) -> CollectionKey:
        return CollectionKey.OWNERS if self is AccountRole.OWNER else CollectionKey.CLIENTS

    @property
    def route(self) -> str:
        return "/all-owners" if self is AccountRole.OWNER else "/all-clients"


LISTINGS_ROUTE = "/all-properties"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False, rich_tracebacks=False)],
        force=True,
    )


def build_api(settings: AppSettings) -> HttpAdminApi:
    return HttpAdminApi(settings)


@asynccontextmanager
async def open_console(settings: AppSettings) -> AsyncIterator[AdminConsole]:
    async with build_api(settings) as api:
        yield AdminConsole.from_settings(settings, api)


def _run(action: Callable[[AdminConsole], Awaitable[T]]) -> T:
    """Ejecuta una corrutina con una consola nueva y traduce errores a exit codes."""

    settings = AppSettings()

    async def runner() -> T:
        async with open_console(settings) as console:
            return await action(console)

    try:
        return asyncio.run(runner())
    except SessionExpiredError as exc:
        _console.print(f"[red]{exc.message}[/red]")
        _console.print("[dim]Run `modconsole login` to start a new session.[/dim]")
        raise typer.Exit(code=2) from exc
    except ConsoleError as exc:
        _console.print(f"[red]{exc.message}[/red]")
        raise typer.Exit(code=1) from exc


def _require_route(console: AdminConsole, path: str) -> None:
    decision, target = console.navigate(path)
    if decision is RouteDecision.RENDER:
        return
    if decision is RouteDecision.REDIRECT_TO_LOGIN:
        _console.print(f"[yellow]Login required for {path}.[/yellow] Run `modconsole login`.")
    else:
        _console.print(f"[yellow]{path} is not available for agent profiles; redirected to {target}.[/yellow]")
    raise typer.Exit(code=3)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    settings = AppSettings()
    configure_logging("DEBUG" if verbose else settings.log_level)


@app.command()
def login(
    email: str = typer.Option(..., prompt=True, help="Admin email."),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Admin password."),
) -> None:
    """Start a session and persist it for later commands."""

    async def action(console: AdminConsole) -> None:
        session = await console.login(email, password)
        print_banner(_console)
        _console.print(build_session_panel(session))

    _run(action)


@app.command()
def logout() -> None:
    """Forget the persisted session."""

    async def action(console: AdminConsole) -> None:
        console.logout()
        _console.print("[green]Logged out.[/green]")

    _run(action)


@app.command()
def whoami() -> None:
    """Show the current session."""

    async def action(console: AdminConsole) -> None:
        _console.print(build_session_panel(console.session.current()))

    _run(action)


@app.command()
def route(path: str = typer.Argument(..., help="Destination path, e.g. /all-clients.")) -> None:
    """Evaluate the route guard for a destination with the current session."""

    async def action(console: AdminConsole) -> None:
        decision, target = console.navigate(path)
        _console.print(f"{path} -> [bold]{decision.value}[/bold] ({target})")

    _run(action)


def _criteria(search: str, status: StatusPredicate) -> FilterCriteria:
    return FilterCriteria(query_text=search, status_predicate=status)


def _export_target(export: Optional[Path], to_csv: bool, default_name: str) -> Optional[Path]:
    """`--export PATH` gana; `--csv` usa el `export_dir` configurado."""

    if export is not None:
        return export
    if to_csv:
        return AppSettings().export_dir / default_name
    return None


@accounts_app.command("list")
def accounts_list(
    role: AccountRole = typer.Option(AccountRole.USER, "--role", case_sensitive=False),
    search: str = typer.Option("", "--search", "-s", help="Name, email, phone or role."),
    status: StatusPredicate = typer.Option(StatusPredicate.ANY, "--status", case_sensitive=False),
    export: Optional[Path] = typer.Option(None, "--export", help="Write the filtered view to a CSV file."),
    to_csv: bool = typer.Option(False, "--csv", help="Export to the configured export directory."),
) -> None:
    """Synchronize and list owner or client accounts."""

    async def action(console: AdminConsole) -> None:
        _require_route(console, role.route)
        cache = await console.sync.refresh(role.collection)
        visible = console.visible(role.collection, _criteria(search, status))
        noun = "owners" if role is AccountRole.OWNER else "clients"
        _console.print(build_accounts_table(visible, title=f"All {noun.title()}"))
        _console.print(build_summary(len(visible), len(cache), noun))
        target = _export_target(export, to_csv, f"{noun}_export.csv")
        if target is not None:
            path = export_csv(visible, target, ACCOUNT_COLUMNS)
            _console.print(f"[green]Exported {len(visible)} rows to:[/green] {path}")

    _run(action)


@accounts_app.command("show")
def accounts_show(
    record_id: str = typer.Argument(..., metavar="ID"),
    role: AccountRole = typer.Option(AccountRole.USER, "--role", case_sensitive=False),
) -> None:
    """Show every field of one account."""

    async def action(console: AdminConsole) -> None:
        _require_route(console, role.route)
        cache = await console.sync.refresh(role.collection)
        record = cache.get(record_id)
        if record is None:
            _console.print(f"[yellow]No {role.value} with id {record_id}.[/yellow]")
            raise typer.Exit(code=1)
        _console.print(build_record_panel(record))

    _run(action)


def _moderate(
    collection: CollectionKey,
    route_path: str,
    record_id: str,
    action_kind: ModerationAction,
    *,
    confirm_prompt: Optional[str] = None,
) -> None:
    async def action(console: AdminConsole) -> None:
        _require_route(console, route_path)
        if confirm_prompt is not None:
            typer.confirm(confirm_prompt, abort=True)
        await console.sync.refresh(collection)
        outcome = await console.mutations.apply(collection, record_id, action_kind)
        print_outcome(_console, outcome)
        if not outcome.ok:
            raise typer.Exit(code=1)

    _run(action)


@accounts_app.command("block")
def accounts_block(
    record_id: str = typer.Argument(..., metavar="ID"),
    role: AccountRole = typer.Option(AccountRole.USER, "--role", case_sensitive=False),
) -> None:
    """Block an account."""

    _moderate(role.collection, role.route, record_id, ModerationAction.BLOCK)


@accounts_app.command("unblock")
def accounts_unblock(
    record_id: str = typer.Argument(..., metavar="ID"),
    role: AccountRole = typer.Option(AccountRole.USER, "--role", case_sensitive=False),
) -> None:
    """Unblock an account."""

    _moderate(role.collection, role.route, record_id, ModerationAction.UNBLOCK)


@listings_app.command("list")
def listings_list(
    search: str = typer.Option("", "--search", "-s", help="Title, contact or category."),
    status: StatusPredicate = typer.Option(StatusPredicate.ANY, "--status", case_sensitive=False),
    export: Optional[Path] = typer.Option(None, "--export", help="Write the filtered view to a CSV file."),
    to_csv: bool = typer.Option(False, "--csv", help="Export to the configured export directory."),
) -> None:
    """Synchronize and list property listings."""

    async def action(console: AdminConsole) -> None:
        _require_route(console, LISTINGS_ROUTE)
        cache = await console.sync.refresh(CollectionKey.LISTINGS)
        visible = console.visible(CollectionKey.LISTINGS, _criteria(search, status))
        _console.print(build_listings_table(visible, title="All Property Listings"))
        _console.print(build_summary(len(visible), len(cache), "listings"))
        target = _export_target(export, to_csv, "listings_export.csv")
        if target is not None:
            path = export_csv(visible, target, LISTING_COLUMNS)
            _console.print(f"[green]Exported {len(visible)} rows to:[/green] {path}")

    _run(action)


@listings_app.command("approve")
def listings_approve(record_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Publish a listing."""

    _moderate(CollectionKey.LISTINGS, LISTINGS_ROUTE, record_id, ModerationAction.APPROVE)


@listings_app.command("disapprove")
def listings_disapprove(record_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Pull a listing back to pending."""

    _moderate(CollectionKey.LISTINGS, LISTINGS_ROUTE, record_id, ModerationAction.DISAPPROVE)


@listings_app.command("delete")
def listings_delete(
    record_id: str = typer.Argument(..., metavar="ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Permanently delete a listing."""

    prompt = None if yes else "CONFIRM DELETION: permanently delete this project? This cannot be undone."
    _moderate(CollectionKey.LISTINGS, LISTINGS_ROUTE, record_id, ModerationAction.DELETE, confirm_prompt=prompt)


def run() -> None:
    app()
