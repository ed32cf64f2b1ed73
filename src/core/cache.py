"""Caché local de colecciones remotas.

Por qué un módulo aparte:
- Es la única fuente de verdad que leen la CLI, el filtro y el export.
- Concentra las reglas de consistencia: sin ids duplicados, orden del
  servidor, y un contador `generation` estrictamente creciente.
- Un snapshot pedido antes de una mutación confirmada no la deshace: cada
  refresh en vuelo recuerda las mutaciones confirmadas mientras esperaba.

Nota:
- No hay locks: todo corre en un único event loop y los métodos son
  síncronos, así que nunca se interrumpen a mitad de una actualización.
"""

from __future__ import annotations

import logging
from typing import Iterable

from core.domain.models import CollectionKey, EntityRecord, ModerationStatus

logger = logging.getLogger(__name__)


class EntityCache:
    """Último estado conocido de una colección + contador de generación."""

    def __init__(self, collection_key: CollectionKey) -> None:
        self.collection_key = collection_key
        self._records: dict[str, EntityRecord] = {}
        self._generation = 0
        self._refreshes = 0
        self._next_ticket = 0
        # ticket -> {id: estado confirmado, o None si se borró}
        self._in_flight: dict[int, dict[str, ModerationStatus | None]] = {}

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def refreshes(self) -> int:
        """Número de snapshots completos aplicados."""

        return self._refreshes

    @property
    def records(self) -> list[EntityRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def get(self, record_id: str) -> EntityRecord | None:
        return self._records.get(record_id)

    def begin_refresh(self) -> int:
        """Registra un refresh enviado; devuelve el ticket para `replace`."""

        ticket = self._next_ticket
        self._next_ticket += 1
        self._in_flight[ticket] = {}
        return ticket

    def end_refresh(self, ticket: int) -> None:
        self._in_flight.pop(ticket, None)

    def _remember(self, record_id: str, status: ModerationStatus | None) -> None:
        for confirmed in self._in_flight.values():
            confirmed[record_id] = status

    def replace(self, records: Iterable[EntityRecord], *, ticket: int | None = None) -> int:
        """Sustituye la colección entera (snapshot, no merge).

        Con `ticket`, las mutaciones confirmadas después de enviar ese refresh
        se reaplican encima del snapshot.
        """

        fresh: dict[str, EntityRecord] = {}
        for record in records:
            if record.id in fresh:
                logger.warning(
                    "Duplicate id %s in %s snapshot; keeping first occurrence",
                    record.id,
                    self.collection_key.value,
                )
                continue
            fresh[record.id] = record

        confirmed = self._in_flight.get(ticket, {}) if ticket is not None else {}
        for record_id, status in confirmed.items():
            if status is None:
                fresh.pop(record_id, None)
            elif record_id in fresh:
                fresh[record_id] = fresh[record_id].with_status(status)

        self._records = fresh
        self._refreshes += 1
        self._generation += 1
        logger.debug(
            "%s replaced with %d records (generation %d)",
            self.collection_key.value,
            len(fresh),
            self._generation,
        )
        return self._generation

    def patch_status(self, record_id: str, status: ModerationStatus) -> bool:
        """Sobrescribe solo el estado de moderación del registro *actual*."""

        self._remember(record_id, status)
        current = self._records.get(record_id)
        if current is None:
            return False
        self._records[record_id] = current.with_status(status)
        self._generation += 1
        return True

    def remove(self, record_id: str) -> bool:
        self._remember(record_id, None)
        if record_id not in self._records:
            return False
        del self._records[record_id]
        self._generation += 1
        return True


class CacheRegistry:
    """Una `EntityCache` por colección, creada bajo demanda."""

    def __init__(self) -> None:
        self._caches: dict[CollectionKey, EntityCache] = {}

    def get(self, collection_key: CollectionKey) -> EntityCache:
        cache = self._caches.get(collection_key)
        if cache is None:
            cache = EntityCache(collection_key)
            self._caches[collection_key] = cache
        return cache

    def holds(self, cache: EntityCache) -> bool:
        """True si `cache` sigue siendo la que el registro entrega (no hubo logout)."""

        return self._caches.get(cache.collection_key) is cache

    def clear(self) -> None:
        self._caches.clear()
