"""Exportación CSV de la vista filtrada.

Por qué separar serializar y guardar:
- `to_delimited_text` es pura (bytes in-memory), fácil de testear.
- `export_csv` solo se ocupa de escribir el artefacto en disco.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from core.domain.models import EntityRecord


def format_joined_date(value: str | None) -> str:
    if not value:
        return "N/A"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return "Invalid Date"


def _address_field(name: str) -> Callable[[EntityRecord], str]:
    def getter(record: EntityRecord) -> str:
        if record.address is None:
            return ""
        return getattr(record.address, name) or ""

    return getter


@dataclass(frozen=True)
class Column:
    label: str
    value: Callable[[EntityRecord], str]


ACCOUNT_COLUMNS: tuple[Column, ...] = (
    Column("Name", lambda r: r.display_name),
    Column("Email", lambda r: r.email or ""),
    Column("Phone", lambda r: r.phone or "N/A"),
    Column("Role", lambda r: r.role or ""),
    Column("Status", lambda r: r.status.value),
    Column("Joined Date", lambda r: format_joined_date(r.created_at)),
    Column("Address Line 1", _address_field("line1")),
    Column("City", _address_field("city")),
    Column("State", _address_field("state")),
    Column("Pincode", _address_field("pincode")),
)

LISTING_COLUMNS: tuple[Column, ...] = (
    Column("Title", lambda r: r.display_name),
    Column("Category", lambda r: r.role or ""),
    Column("Status", lambda r: r.status.value),
    Column("Price", lambda r: str(r.attributes.get("price") or "0")),
    Column("City", _address_field("city")),
    Column("Posted Date", lambda r: format_joined_date(r.created_at)),
)


def to_delimited_text(
    records: Sequence[EntityRecord],
    columns: Sequence[Column] = ACCOUNT_COLUMNS,
) -> bytes:
    """Serializa la vista actual: cabecera + una fila por registro, todo entrecomillado.

    Las filas se separan con `\\n` y no hay salto de línea final.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([column.label for column in columns])
    for record in records:
        writer.writerow([column.value(record) for column in columns])
    text = buffer.getvalue()
    if text.endswith("\n"):
        text = text[:-1]
    return text.encode("utf-8")


def export_csv(
    records: Sequence[EntityRecord],
    output_path: Path,
    columns: Sequence[Column] = ACCOUNT_COLUMNS,
) -> Path:
    """Escribe el CSV en disco y devuelve la ruta."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(to_delimited_text(records, columns))
    return output_path
