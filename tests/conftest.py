from __future__ import annotations

import asyncio
from typing import Any

import pytest

from core.domain.models import AdminProfile, CollectionKey
from core.services.console import AdminConsole
from core.session import SessionStore


def account(record_id: str, name: str, *, blocked: bool = False, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": record_id,
        "name": name,
        "email": f"{name.lower().replace(' ', '.')}@example.com",
        "phone": "98765" + record_id.zfill(5),
        "role": "user",
        "isBlocked": blocked,
        "createdAt": "2024-03-05T10:15:00.000Z",
        "address": {"line1": "12 MG Road", "city": "Pune", "state": "MH", "pincode": 411001},
    }
    payload.update(extra)
    return payload


def listing(record_id: str, title: str, *, approved: bool = False, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "_id": record_id,
        "title": title,
        "isApproved": approved,
        "price": 4500000,
        "propertyType": {"name": "Apartment"},
        "address": {"city": "Nashik"},
        "createdAt": "2024-06-01T08:00:00Z",
    }
    payload.update(extra)
    return payload


class FakeAdminApi:
    """In-memory `AdminApi`; `hold(name)` makes the next call of `name` wait on an Event."""

    def __init__(self) -> None:
        self.collections: dict[CollectionKey, list[dict[str, Any]]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.errors: dict[str, Exception] = {}
        self._gates: dict[str, list[asyncio.Event]] = {}

    def hold(self, name: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates.setdefault(name, []).append(gate)
        return gate

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    async def _enter(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        gates = self._gates.get(name)
        if gates:
            await gates.pop(0).wait()
        error = self.errors.get(name)
        if error is not None:
            raise error

    def _find(self, collection: CollectionKey, record_id: str) -> dict[str, Any]:
        for item in self.collections.get(collection, []):
            if str(item.get("id", item.get("_id"))) == record_id:
                return item
        raise KeyError(record_id)

    async def login(self, email: str, password: str) -> dict[str, Any]:
        await self._enter("login", email)
        return {"token": "tok-login", "admin": {"name": "Root", "role": "admin", "isEnvAgent": False}}

    async def list_records(
        self,
        collection: CollectionKey,
        *,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        snapshot = [dict(item) for item in self.collections.get(collection, [])]
        await self._enter("list_records", collection, token)
        return snapshot

    async def toggle_block(self, account_id: str, *, token: str) -> dict[str, Any]:
        await self._enter("toggle_block", account_id, token)
        for collection in (CollectionKey.CLIENTS, CollectionKey.OWNERS):
            try:
                item = self._find(collection, account_id)
            except KeyError:
                continue
            item["isBlocked"] = not item.get("isBlocked")
            state = "blocked" if item["isBlocked"] else "unblocked"
            return {"message": f"User {state} successfully", "isBlocked": item["isBlocked"]}
        return {"message": "User blocked successfully", "isBlocked": True}

    async def set_listing_approval(self, listing_id: str, approve: bool, *, token: str) -> None:
        await self._enter("set_listing_approval", listing_id, approve, token)
        self._find(CollectionKey.LISTINGS, listing_id)["isApproved"] = approve

    async def delete_listing(self, listing_id: str, *, token: str) -> None:
        await self._enter("delete_listing", listing_id, token)
        items = self.collections.get(CollectionKey.LISTINGS, [])
        self.collections[CollectionKey.LISTINGS] = [i for i in items if i.get("_id") != listing_id]


async def settle() -> None:
    """Let pending tasks run until they block on their next await."""

    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def api() -> FakeAdminApi:
    return FakeAdminApi()


@pytest.fixture
def session_store(tmp_path) -> SessionStore:
    store = SessionStore(tmp_path / "session.json")
    store.establish("tok-123", AdminProfile(display_name="Asha", role="admin"))
    return store


@pytest.fixture
def console(api: FakeAdminApi, session_store: SessionStore) -> AdminConsole:
    return AdminConsole(api=api, session=session_store)
