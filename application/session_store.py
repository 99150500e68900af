from __future__ import annotations

import json
import logging
from typing import Optional

from domain.models import Session, UnrecognizedRoleError
from domain.records import session_from_record, session_to_record
from domain.repositories import KeyValueStore


logger = logging.getLogger(__name__)

SESSION_KEY = "bankingSession"


class SessionStore:
    """
    Loads, saves and clears the persisted session record under one key.

    The record is replaced wholesale on every save. A record that cannot be
    decoded is treated as absent and removed; `load()` never raises for it.
    """

    def __init__(self, storage: KeyValueStore, key: str = SESSION_KEY) -> None:
        self._storage = storage
        self.key = key

    def load(self) -> Optional[Session]:
        raw = self._storage.get(self.key)
        if raw is None:
            return None

        try:
            return session_from_record(json.loads(raw))
        except (
            ValueError,
            TypeError,
            KeyError,
            ArithmeticError,
            RecursionError,
            UnrecognizedRoleError,
        ) as exc:
            logger.warning("Discarding unreadable session record %s: %s", self.key, exc)
            self._storage.delete(self.key)
            return None

    def save(self, session: Session) -> None:
        self._storage.set(self.key, json.dumps(session_to_record(session)))

    def clear(self) -> None:
        self._storage.delete(self.key)
