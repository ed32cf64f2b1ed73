"""Contexto explícito de la consola.

Por qué un objeto contexto:
- Sesión, cachés, sync y mutaciones son estado mutable de todo el proceso;
  se crean una vez al arrancar y se pasan explícitamente a quien los use.
- Los tests construyen un `AdminConsole` con un `AdminApi` falso.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from core.cache import CacheRegistry
from core.config import AppSettings
from core.domain.errors import ServiceError
from core.domain.models import AdminProfile, CollectionKey, EntityRecord, FilterCriteria, Session
from core.interfaces.admin_api import AdminApi
from core.route_guard import RouteDecision, resolve
from core.services.filter_index import apply_criteria
from core.services.mutations import MutationCoordinator
from core.services.sync_engine import SyncEngine
from core.session import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class AdminConsole:
    """Estado propio de una ejecución de la consola."""

    api: AdminApi
    session: SessionStore
    caches: CacheRegistry = field(default_factory=CacheRegistry)

    def __post_init__(self) -> None:
        self.sync = SyncEngine(api=self.api, session=self.session, caches=self.caches)
        self.mutations = MutationCoordinator(api=self.api, session=self.session, caches=self.caches)

    @classmethod
    def from_settings(cls, settings: AppSettings, api: AdminApi) -> "AdminConsole":
        store = SessionStore(settings.session_path)
        store.hydrate()
        return cls(api=api, session=store)

    def navigate(self, path: str) -> tuple[RouteDecision, str]:
        return resolve(path, self.session.current())

    async def login(self, email: str, password: str) -> Session:
        payload = await self.api.login(email, password)
        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise ServiceError("Login response did not include a token.")

        profile_data: dict = {}
        for key in ("admin", "adminInfo", "user"):
            value = payload.get(key)
            if isinstance(value, dict):
                profile_data = value
                break
        return self.session.establish(token, AdminProfile.from_payload(profile_data))

    def logout(self) -> None:
        self.session.clear()
        self.caches.clear()

    def visible(self, collection: CollectionKey, criteria: FilterCriteria) -> list[EntityRecord]:
        return apply_criteria(self.caches.get(collection).records, criteria)
