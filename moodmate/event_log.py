"""Bounded in-memory log of chat turn outcomes, served by ``GET /logs``."""
from __future__ import annotations

from collections import deque
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Deque, Dict, List, Optional

from moodmate.core.config import settings

PREVIEW_CHARS = 120

_MAX_LEN = max(1, settings.event_log_limit)
_events: Deque[Dict[str, Any]] = deque(maxlen=_MAX_LEN)
_lock = Lock()


def _preview(text: Optional[str]) -> str:
    text = text or ""
    return text if len(text) <= PREVIEW_CHARS else text[:PREVIEW_CHARS] + "…"


def add_event(kind: str, payload: Dict[str, Any]) -> None:
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "kind": kind,
        "payload": payload,
    }
    with _lock:
        _events.appendleft(entry)


def record_turn_event(
    kind: str,
    sid: str,
    message: str,
    reply: Optional[str] = None,
    user_mood: Optional[str] = None,
    bot_mood: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    payload: Dict[str, Any] = {
        "sid": sid,
        "message_preview": _preview(message),
        "user_mood": user_mood,
        "bot_mood": bot_mood,
    }
    if reply is not None:
        payload["reply_preview"] = _preview(reply)
    if error is not None:
        payload["error"] = error
    add_event(kind, payload)


def get_events(limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Most recent events first."""
    with _lock:
        items = list(_events)
    if limit is None:
        return items
    return items[: max(0, min(limit, _MAX_LEN))]


def clear_events() -> None:
    with _lock:
        _events.clear()
