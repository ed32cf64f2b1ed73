"""Vista derivada: filtro de estado + búsqueda de texto.

Función pura y lineal; se recalcula en cada cambio de criterio. Nunca
reordena: el orden es el de la caché (orden del servidor).
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from core.domain.models import EntityRecord, FilterCriteria, ModerationStatus, StatusPredicate


def filter_records(
    records: Iterable[EntityRecord],
    query_text: str = "",
    status_predicate: StatusPredicate = StatusPredicate.ANY,
) -> list[EntityRecord]:
    query = query_text.lower()
    visible: list[EntityRecord] = []
    for record in records:
        if not status_predicate.matches(record.status):
            continue
        if query and query not in record.search_text():
            continue
        visible.append(record)
    return visible


def apply_criteria(records: Iterable[EntityRecord], criteria: FilterCriteria) -> list[EntityRecord]:
    return filter_records(records, criteria.query_text, criteria.status_predicate)


def status_counts(records: Sequence[EntityRecord]) -> dict[ModerationStatus, int]:
    """Conteo por estado para la línea de resumen ("Showing N of M")."""

    return dict(Counter(record.status for record in records))
