"""Fetch → cache cycle for remote collections.

Each refresh is a full snapshot: the cache is replaced, never merged. Two
overlapping refreshes of the same collection are not deduplicated; whichever
response arrives last is applied last and wins. Mutations confirmed while a
refresh was in flight are laid back on top of its snapshot.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from core.cache import CacheRegistry, EntityCache
from core.domain.errors import NotAuthenticatedError, SessionExpiredError
from core.domain.models import CollectionKey, EntityRecord
from core.interfaces.admin_api import AdminApi
from core.session import SessionStore

logger = logging.getLogger(__name__)


def build_records(collection: CollectionKey, items: list[dict[str, Any]]) -> list[EntityRecord]:
    """Normalize raw payload items, skipping entries the service sent without an id."""

    factory = EntityRecord.from_account if collection.is_accounts else EntityRecord.from_listing
    records: list[EntityRecord] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            records.append(factory(item))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s record: %s", collection.value, exc.errors()[0]["msg"])
    return records


class SyncEngine:
    def __init__(self, *, api: AdminApi, session: SessionStore, caches: CacheRegistry) -> None:
        self._api = api
        self._session = session
        self._caches = caches

    async def refresh(
        self,
        collection: CollectionKey,
        query_params: dict[str, str] | None = None,
    ) -> EntityCache:
        """Replace the cached collection with the server's current snapshot.

        Raises:
            NotAuthenticatedError: account collections without a token (no request is sent).
            SessionExpiredError: the service answered 401; the session is cleared.
            ServiceError: any other failure; the cache is left untouched.
        """

        token = self._session.current().token
        if collection.is_accounts and token is None:
            raise NotAuthenticatedError()

        cache = self._caches.get(collection)
        ticket = cache.begin_refresh()
        try:
            items = await self._api.list_records(collection, token=token, params=query_params)
        except SessionExpiredError:
            logger.info("401 while refreshing %s; clearing session", collection.value)
            self._session.clear()
            raise
        else:
            if self._caches.holds(cache):
                cache.replace(build_records(collection, items), ticket=ticket)
            else:
                logger.info("Dropping %s snapshot: caches were cleared while it was in flight", collection.value)
        finally:
            cache.end_refresh(ticket)
        return self._caches.get(collection)
