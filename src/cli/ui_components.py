"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from adapters.csv_exporter import format_joined_date
from core.domain.models import EntityRecord, ModerationStatus, Session
from core.services.mutations import MutationOutcome, OutcomeKind

_STATUS_STYLES: dict[ModerationStatus, str] = {
    ModerationStatus.ACTIVE: "green",
    ModerationStatus.BLOCKED: "red",
    ModerationStatus.PENDING: "magenta",
    ModerationStatus.PUBLISHED: "green",
}

_OUTCOME_STYLES: dict[OutcomeKind, str] = {
    OutcomeKind.APPLIED: "green",
    OutcomeKind.BUSY: "yellow",
    OutcomeKind.REJECTED: "yellow",
    OutcomeKind.STALE: "yellow",
    OutcomeKind.SESSION_EXPIRED: "red",
    OutcomeKind.FAILED: "red",
}


def print_banner(console: Console) -> None:
    title = Text("modconsole", style="bold cyan")
    subtitle = Text("Moderación de cuentas y listings", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def status_text(status: ModerationStatus) -> Text:
    return Text(status.value, style=_STATUS_STYLES.get(status, "white"))


def build_accounts_table(records: Sequence[EntityRecord], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="white")
    table.add_column("Phone", style="white")
    table.add_column("Role", style="magenta")
    table.add_column("Status")
    table.add_column("Joined", style="dim")
    for record in records:
        table.add_row(
            record.id,
            record.display_name,
            record.email or "",
            record.phone or "N/A",
            record.role or "",
            status_text(record.status),
            format_joined_date(record.created_at),
        )
    return table


def build_listings_table(records: Sequence[EntityRecord], *, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("City", style="white")
    table.add_column("Type", style="magenta")
    table.add_column("Price", style="green", justify="right")
    table.add_column("Status")
    table.add_column("Posted", style="dim")
    for record in records:
        city = record.address.city if record.address and record.address.city else "Unknown City"
        table.add_row(
            record.id,
            record.display_name,
            city,
            record.role or "N/A Type",
            str(record.attributes.get("price") or "0"),
            status_text(record.status),
            format_joined_date(record.created_at),
        )
    return table


def build_summary(visible: int, total: int, noun: str) -> Text:
    return Text(f"Showing {visible} of {total} total {noun}.", style="dim")


def build_record_panel(record: EntityRecord) -> Panel:
    """Ficha completa de una cuenta (equivalente al drawer de detalle)."""

    body = Text()
    body.append(f"{record.display_name}\n", style="bold")
    body.append("Status: ")
    body.append_text(status_text(record.status))
    body.append("\n")
    rows = [
        ("Email", record.email),
        ("Phone", record.phone),
        ("Alternate phone", record.attributes.get("alternatePhone")),
        ("Role", record.role),
        ("Gender", record.attributes.get("gender")),
        ("Date of birth", record.attributes.get("dateOfBirth")),
        ("Joined", format_joined_date(record.created_at)),
    ]
    for label, value in rows:
        body.append(f"{label}: ", style="dim")
        body.append(f"{value if value else 'N/A'}\n")
    if record.address is not None:
        parts = [record.address.line1, record.address.city, record.address.state, record.address.pincode]
        body.append("Address: ", style="dim")
        body.append(", ".join(p for p in parts if p) or "N/A")
        body.append("\n")
    bio = record.attributes.get("bio")
    if isinstance(bio, str) and bio.strip():
        body.append(f"\n{bio.strip()}\n", style="italic")

    return Panel(body, title=Text(f"Record {record.id}", style="bold yellow"), border_style="yellow")


def build_session_panel(session: Session) -> Panel:
    if not session.is_authenticated or session.profile is None:
        return Panel(Text("Not logged in.", style="yellow"), title="Session", border_style="yellow")
    profile = session.profile
    body = Text()
    body.append(profile.display_name, style="bold cyan")
    if profile.is_restricted_agent:
        body.append("  [Agent]", style="blue")
    body.append(f"\nRole: {profile.role}", style="dim")
    return Panel(body, title="Session", border_style="cyan")


def print_outcome(console: Console, outcome: MutationOutcome) -> None:
    style = _OUTCOME_STYLES.get(outcome.kind, "white")
    console.print(f"[{style}]{outcome.kind.value.upper()}[/{style}] {escape(outcome.message)}")
    if outcome.kind is OutcomeKind.SESSION_EXPIRED:
        console.print("[dim]Run `modconsole login` to start a new session.[/dim]")
