"""Contrato del servicio remoto de moderación.

Por qué Protocol:
- El Core (sync, mutaciones) depende de esta abstracción, no de httpx.
- Permite sustituir el servicio real por un fake en memoria en los tests
  de concurrencia sin tocar la red.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import CollectionKey


@runtime_checkable
class AdminApi(Protocol):
    """Operaciones remotas que consume la consola.

    Reglas de diseño:
    - Todas son asíncronas porque hacen I/O (HTTP).
    - Un 401 se traduce a `SessionExpiredError`; cualquier otro fallo a
      `ServiceError`. Nunca devuelven un resultado parcial.
    - `token=None` significa petición anónima (solo válido en endpoints públicos).
    """

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Devuelve el payload crudo de login (`token` + perfil)."""

        ...

    async def list_records(
        self,
        collection: CollectionKey,
        *,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """Snapshot completo de una colección, ya desenvuelto a lista."""

        ...

    async def toggle_block(self, account_id: str, *, token: str) -> dict[str, Any]:
        """Alterna el bloqueo; la respuesta trae `isBlocked` autoritativo."""

        ...

    async def set_listing_approval(self, listing_id: str, approve: bool, *, token: str) -> None:
        ...

    async def delete_listing(self, listing_id: str, *, token: str) -> None:
        ...
