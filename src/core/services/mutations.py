"""Coordinación de acciones de moderación.

Reglas:
- Como mucho una mutación en vuelo por (colección, id). Un doble click
  devuelve `BUSY` sin tocar la red.
- Confirmar y luego aplicar: la caché solo cambia tras la respuesta del
  servidor, y el estado resultante es el que dice el servidor.
- El parche se aplica sobre el registro que exista *ahora* en la caché, no
  sobre una copia vieja, así un refresh intermedio conserva sus campos.
- Si más de un refresh completo aterrizó mientras la petición estaba en
  vuelo, el resultado se descarta (`STALE`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from core.cache import CacheRegistry
from core.domain.errors import ServiceError, SessionExpiredError
from core.domain.models import CollectionKey, EntityRecord, ModerationAction, ModerationStatus
from core.interfaces.admin_api import AdminApi
from core.session import SessionStore

logger = logging.getLogger(__name__)

_MAX_INTERVENING_REFRESHES = 1


class OutcomeKind(str, Enum):
    APPLIED = "applied"
    BUSY = "busy"
    REJECTED = "rejected"
    SESSION_EXPIRED = "session_expired"
    FAILED = "failed"
    STALE = "stale"


@dataclass(frozen=True)
class MutationOutcome:
    """Resultado de `MutationCoordinator.apply`."""

    kind: OutcomeKind
    message: str
    record: EntityRecord | None = None
    status: ModerationStatus | None = None
    cache_updated: bool = False

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.APPLIED


_ACTION_MESSAGES: dict[ModerationAction, str] = {
    ModerationAction.APPROVE: "Property Published Successfully!",
    ModerationAction.DISAPPROVE: "Listing pulled down.",
    ModerationAction.DELETE: "Project Permanently Deleted/Rejected",
}


class MutationCoordinator:
    def __init__(self, *, api: AdminApi, session: SessionStore, caches: CacheRegistry) -> None:
        self._api = api
        self._session = session
        self._caches = caches
        self._pending: set[tuple[CollectionKey, str]] = set()

    def is_pending(self, collection: CollectionKey, record_id: str) -> bool:
        return (collection, record_id) in self._pending

    async def apply(
        self,
        collection: CollectionKey,
        record_id: str,
        action: ModerationAction,
    ) -> MutationOutcome:
        rejection = self._local_guard(collection, record_id, action)
        if rejection is not None:
            return rejection

        # No await may run between the pending check and the add below.
        key = (collection, record_id)
        if key in self._pending:
            logger.info("Mutation already in flight for %s/%s", collection.value, record_id)
            return MutationOutcome(OutcomeKind.BUSY, "Another action on this record is still in progress.")

        token = self._session.current().token
        assert token is not None
        cache = self._caches.get(collection)
        g0 = cache.generation
        r0 = cache.refreshes

        self._pending.add(key)
        try:
            try:
                new_status, message = await self._send(record_id, action, token)
            except SessionExpiredError as exc:
                logger.info("401 during %s on %s/%s; clearing session", action.value, collection.value, record_id)
                self._session.clear()
                return MutationOutcome(OutcomeKind.SESSION_EXPIRED, exc.message)
            except ServiceError as exc:
                logger.warning("%s on %s/%s failed: %s", action.value, collection.value, record_id, exc.message)
                return MutationOutcome(OutcomeKind.FAILED, exc.message)
        finally:
            self._pending.discard(key)

        if not self._caches.holds(cache):
            logger.info("Caches were cleared during %s on %s/%s", action.value, collection.value, record_id)
            return MutationOutcome(OutcomeKind.APPLIED, message, status=new_status)

        if cache.refreshes - r0 > _MAX_INTERVENING_REFRESHES:
            logger.info(
                "Discarding %s result for %s/%s: computed at generation %d, cache now at %d",
                action.value,
                collection.value,
                record_id,
                g0,
                cache.generation,
            )
            return MutationOutcome(OutcomeKind.STALE, message, status=new_status)

        if action is ModerationAction.DELETE:
            updated = cache.remove(record_id)
            return MutationOutcome(OutcomeKind.APPLIED, message, cache_updated=updated)

        assert new_status is not None
        updated = cache.patch_status(record_id, new_status)
        return MutationOutcome(
            OutcomeKind.APPLIED,
            message,
            record=cache.get(record_id),
            status=new_status,
            cache_updated=updated,
        )

    def _local_guard(
        self,
        collection: CollectionKey,
        record_id: str,
        action: ModerationAction,
    ) -> MutationOutcome | None:
        if not record_id:
            return MutationOutcome(OutcomeKind.REJECTED, "Record ID is missing. Cannot perform action.")
        if not self._session.current().is_authenticated:
            return MutationOutcome(OutcomeKind.REJECTED, "Not authenticated for this action.")
        if not action.applies_to(collection):
            return MutationOutcome(
                OutcomeKind.REJECTED,
                f"Action '{action.value}' is not available for {collection.value}.",
            )

        current = self._caches.get(collection).get(record_id)
        if current is not None:
            if action is ModerationAction.BLOCK and current.status is ModerationStatus.BLOCKED:
                return MutationOutcome(OutcomeKind.REJECTED, "Account is already blocked.", record=current)
            if action is ModerationAction.UNBLOCK and current.status is ModerationStatus.ACTIVE:
                return MutationOutcome(OutcomeKind.REJECTED, "Account is already active.", record=current)
        return None

    async def _send(
        self,
        record_id: str,
        action: ModerationAction,
        token: str,
    ) -> tuple[ModerationStatus | None, str]:
        """Run the remote call and return the server-confirmed status."""

        if action in (ModerationAction.BLOCK, ModerationAction.UNBLOCK):
            payload = await self._api.toggle_block(record_id, token=token)
            if not isinstance(payload, dict) or "isBlocked" not in payload:
                raise ServiceError("Service response did not include the resulting block state.")
            status = ModerationStatus.BLOCKED if payload.get("isBlocked") else ModerationStatus.ACTIVE
            message = payload.get("message")
            return status, message if isinstance(message, str) and message else f"Account {status.value.lower()}."

        if action is ModerationAction.DELETE:
            await self._api.delete_listing(record_id, token=token)
            return None, _ACTION_MESSAGES[action]

        approve = action is ModerationAction.APPROVE
        await self._api.set_listing_approval(record_id, approve, token=token)
        status = ModerationStatus.PUBLISHED if approve else ModerationStatus.PENDING
        return status, _ACTION_MESSAGES[action]
