"""Session persistence: per-user ordered conversation history.

A session groups conversation turns under an opaque session id (the caller's
userId). Stores hand out and accept whole histories; the turn orchestrator
owns the read-modify-write cycle and serializes it per session.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


def turns_to_records(history: Iterable[ConversationTurn]) -> List[Dict[str, str]]:
    return [turn.to_dict() for turn in history]


def turns_from_records(records: Iterable[Any]) -> List[ConversationTurn]:
    """Rebuild turns from stored records, skipping entries that are not turns."""
    turns: List[ConversationTurn] = []
    for rec in records:
        if not isinstance(rec, dict):
            logger.warning("Skipping malformed history entry: %r", rec)
            continue
        try:
            role = Role(str(rec.get("role", "")).lower())
        except ValueError:
            logger.warning("Skipping history entry with unknown role %r", rec.get("role"))
            continue
        turns.append(ConversationTurn(role=role, content=str(rec.get("content") or "")))
    return turns


class SessionStore(ABC):
    """Key-value access to a session's history."""

    @abstractmethod
    def get(self, sid: str) -> Optional[List[ConversationTurn]]:
        """Return the stored history, or None when the session does not exist.

        Raises PersistenceError when the backing store cannot be read.
        """

    @abstractmethod
    def set(self, sid: str, history: List[ConversationTurn]) -> None:
        """Overwrite the session's history.

        Raises PersistenceError when the backing store cannot be written.
        """


class InMemorySessionStore(SessionStore):
    """Process-local store for development and tests."""

    def __init__(self) -> None:
        self._sessions: Dict[str, List[Dict[str, str]]] = {}
        self._lock = Lock()

    def get(self, sid: str) -> Optional[List[ConversationTurn]]:
        with self._lock:
            records = self._sessions.get(sid)
            if records is None:
                return None
            records = list(records)
        return turns_from_records(records)

    def set(self, sid: str, history: List[ConversationTurn]) -> None:
        records = turns_to_records(history)
        with self._lock:
            self._sessions[sid] = records

    def __contains__(self, sid: object) -> bool:
        with self._lock:
            return sid in self._sessions


__all__ = [
    "Role",
    "ConversationTurn",
    "SessionStore",
    "InMemorySessionStore",
    "turns_to_records",
    "turns_from_records",
]
