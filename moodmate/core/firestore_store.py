"""Firestore-backed session store.

One document per session in the configured collection, shaped
``{"history": [{"role": ..., "content": ...}, ...]}``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore

from .errors import PersistenceError
from .session_store import ConversationTurn, SessionStore, turns_from_records, turns_to_records

logger = logging.getLogger(__name__)


def init_firestore(firebase_config: Optional[str] = None, key_path: Optional[str] = None) -> Any:
    """Initialize the default Firebase app once and return a Firestore client.

    ``firebase_config`` is a service-account JSON document (as stored in an
    environment variable); ``key_path`` points at a service-account file.
    """
    try:
        firebase_admin.get_app()
    except ValueError:
        if firebase_config:
            cred = credentials.Certificate(json.loads(firebase_config))
        elif key_path:
            cred = credentials.Certificate(key_path)
        else:
            raise RuntimeError("Firestore backend needs FIREBASE_CONFIG or FIREBASE_KEY_PATH")
        firebase_admin.initialize_app(cred)
        logger.info("Firebase initialized")
    return firestore.client()


class FirestoreSessionStore(SessionStore):
    def __init__(self, client: Any, collection: str = "sessions", timeout: float = 10.0) -> None:
        self._collection = client.collection(collection)
        self._timeout = timeout

    def get(self, sid: str) -> Optional[List[ConversationTurn]]:
        try:
            snap = self._collection.document(sid).get(timeout=self._timeout)
        except Exception as exc:
            raise PersistenceError(f"Failed to read session {sid!r}: {exc}") from exc
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        return turns_from_records(data.get("history") or [])

    def set(self, sid: str, history: List[ConversationTurn]) -> None:
        try:
            self._collection.document(sid).set(
                {"history": turns_to_records(history)}, timeout=self._timeout
            )
        except Exception as exc:
            raise PersistenceError(f"Failed to write session {sid!r}: {exc}") from exc


__all__ = ["FirestoreSessionStore", "init_firestore"]
