from __future__ import annotations

import asyncio

import pytest

from conftest import account, listing, settle
from core.domain.errors import NotAuthenticatedError, ServiceError, SessionExpiredError
from core.domain.models import CollectionKey, ModerationStatus
from core.services.console import AdminConsole
from core.session import SessionStore

CLIENTS = CollectionKey.CLIENTS


@pytest.mark.asyncio
async def test_refresh_replaces_cache_and_bumps_generation(console, api):
    api.collections[CLIENTS] = [account("1", "Alice"), account("2", "Bob", blocked=True)]

    cache = await console.sync.refresh(CLIENTS)

    assert [r.id for r in cache.records] == ["1", "2"]
    assert cache.generation == 1
    assert cache.get("2").status is ModerationStatus.BLOCKED

    api.collections[CLIENTS] = [account("3", "Carol")]
    cache = await console.sync.refresh(CLIENTS)

    assert [r.id for r in cache.records] == ["3"]
    assert cache.generation == 2
    assert api.calls_to("list_records")[0] == ("list_records", CLIENTS, "tok-123")


@pytest.mark.asyncio
async def test_refresh_drops_duplicate_ids_and_records_without_id(console, api):
    api.collections[CLIENTS] = [
        account("1", "Alice"),
        account("1", "Alice Again"),
        {"name": "No Id"},
        account("2", "Bob"),
    ]

    cache = await console.sync.refresh(CLIENTS)

    ids = [r.id for r in cache.records]
    assert ids == ["1", "2"]
    assert len(set(ids)) == len(ids)
    assert cache.get("1").display_name == "Alice"


@pytest.mark.asyncio
async def test_refresh_without_token_never_calls_the_service(api, tmp_path):
    console = AdminConsole(api=api, session=SessionStore(tmp_path / "session.json"))

    with pytest.raises(NotAuthenticatedError):
        await console.sync.refresh(CLIENTS)
    assert api.calls == []


@pytest.mark.asyncio
async def test_listings_refresh_is_allowed_without_token(api, tmp_path):
    console = AdminConsole(api=api, session=SessionStore(tmp_path / "session.json"))
    api.collections[CollectionKey.LISTINGS] = [listing("p1", "Sea View", approved=True)]

    cache = await console.sync.refresh(CollectionKey.LISTINGS)

    assert cache.get("p1").status is ModerationStatus.PUBLISHED
    assert api.calls_to("list_records")[0][2] is None


@pytest.mark.asyncio
async def test_401_leaves_cache_untouched_and_clears_session(console, api, session_store):
    api.collections[CLIENTS] = [account("1", "Alice"), account("2", "Bob")]
    cache = await console.sync.refresh(CLIENTS)
    before = [r.model_dump() for r in cache.records]

    api.errors["list_records"] = SessionExpiredError()
    with pytest.raises(SessionExpiredError):
        await console.sync.refresh(CLIENTS)

    assert [r.model_dump() for r in cache.records] == before
    assert cache.generation == 1
    assert session_store.current().token is None
    assert not session_store.path.exists()


@pytest.mark.asyncio
async def test_other_failures_keep_cache_and_session(console, api, session_store):
    api.collections[CLIENTS] = [account("1", "Alice")]
    cache = await console.sync.refresh(CLIENTS)

    api.errors["list_records"] = ServiceError("Database unavailable", status_code=503)
    with pytest.raises(ServiceError, match="Database unavailable"):
        await console.sync.refresh(CLIENTS)

    assert [r.id for r in cache.records] == ["1"]
    assert session_store.current().token == "tok-123"


@pytest.mark.asyncio
async def test_last_response_to_arrive_wins(console, api):
    api.collections[CLIENTS] = [account("1", "Old Alice")]
    first_gate = api.hold("list_records")
    first = asyncio.create_task(console.sync.refresh(CLIENTS))
    await settle()

    api.collections[CLIENTS] = [account("1", "New Alice"), account("2", "Bob")]
    second_gate = api.hold("list_records")
    second = asyncio.create_task(console.sync.refresh(CLIENTS))
    await settle()

    second_gate.set()
    await second
    first_gate.set()
    cache = await first

    assert [r.display_name for r in cache.records] == ["Old Alice"]
    assert cache.generation == 2


@pytest.mark.asyncio
async def test_snapshot_landing_after_logout_is_dropped(console, api):
    api.collections[CollectionKey.CLIENTS] = [account("1", "Alice")]
    gate = api.hold("list_records")

    task = asyncio.create_task(console.sync.refresh(CollectionKey.CLIENTS))
    await settle()
    console.logout()
    gate.set()
    await task

    assert len(console.caches.get(CollectionKey.CLIENTS)) == 0
