"""Operator session store.

Owns the authentication token and the admin profile for the whole process.
It is hydrated once at startup from a JSON file and only mutated through
`establish` (login) and `clear` (logout or a 401 from the service).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from core.domain.models import AdminProfile, Session

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(self, path: Path) -> None:
        self._path = path
        self._session = Session.empty()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    def hydrate(self) -> Session:
        """Load the persisted session; any malformed data degrades to no session."""

        self._session = Session.empty()
        if not self._path.exists():
            return self._session

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            self._session = Session.model_validate(raw)
        except (OSError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring persisted session at %s: %s", self._path, exc)
            self._session = Session.empty()
        return self._session

    def establish(self, token: str, profile: AdminProfile) -> Session:
        session = Session(token=token, profile=profile)
        self._persist(session)
        self._session = session
        logger.info("Session established for %s", profile.display_name)
        return session

    def clear(self) -> None:
        self._session = Session.empty()
        try:
            self._path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove persisted session %s: %s", self._path, exc)
        logger.info("Session cleared")

    def current(self) -> Session:
        return self._session

    def _persist(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = session.model_dump(mode="json")
        self._path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
            encoding="utf-8",
        )
