from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from core.domain.models import AdminProfile, Session
from core.session import SessionStore


def test_hydrate_without_file_is_empty(tmp_path):
    store = SessionStore(tmp_path / "session.json")

    assert store.hydrate() == Session.empty()
    assert not store.is_authenticated


def test_establish_persists_and_rehydrates(tmp_path):
    path = tmp_path / "nested" / "session.json"
    store = SessionStore(path)
    store.establish("tok-1", AdminProfile(display_name="Asha", role="admin", is_restricted_agent=True))

    reloaded = SessionStore(path)
    session = reloaded.hydrate()

    assert session.token == "tok-1"
    assert session.profile is not None
    assert session.profile.display_name == "Asha"
    assert session.is_restricted_agent


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        json.dumps({"token": "orphan-token", "profile": None}),
        json.dumps({"token": None, "profile": {"display_name": "Ghost"}}),
    ],
)
def test_malformed_session_degrades_to_no_session(tmp_path, content):
    path = tmp_path / "session.json"
    path.write_text(content, encoding="utf-8")

    session = SessionStore(path).hydrate()

    assert session == Session.empty()


def test_clear_is_idempotent(tmp_path):
    path = tmp_path / "session.json"
    store = SessionStore(path)
    store.establish("tok-1", AdminProfile(display_name="Asha"))

    store.clear()
    store.clear()

    assert not path.exists()
    assert store.current().token is None
    assert store.current().profile is None


def test_session_invariant_rejects_token_without_profile():
    with pytest.raises(ValidationError):
        Session(token="abc")


def test_profile_from_login_payload():
    profile = AdminProfile.from_payload({"name": "Ravi", "role": "agent", "isEnvAgent": True})

    assert profile.display_name == "Ravi"
    assert profile.is_restricted_agent
    assert AdminProfile.from_payload({}).display_name == "Admin"
