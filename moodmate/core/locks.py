"""Per-session mutual exclusion for the history read-modify-write."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, Iterator, Optional


class SessionBusy(RuntimeError):
    """Too many turns are already queued on this session, or the wait timed out."""


@dataclass
class _LockEntry:
    lock: Lock = field(default_factory=Lock)
    users: int = 0  # the holder plus everyone waiting


class SessionLocks:
    """Hands out one lock per session id.

    Entries are reference counted and dropped once no turn holds or waits
    on them. ``max_waiters`` caps how many turns may queue behind the holder
    and ``timeout`` caps how long each waits, so one session can tie up at
    most ``max_waiters + 1`` worker threads. ``None`` means unbounded.
    """

    def __init__(self, max_waiters: Optional[int] = None, timeout: Optional[float] = None) -> None:
        self.max_waiters = max_waiters
        self.timeout = timeout
        self._guard = Lock()
        self._locks: Dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, sid: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.get(sid)
            if entry is None:
                entry = self._locks[sid] = _LockEntry()
            if self.max_waiters is not None and entry.users > self.max_waiters:
                raise SessionBusy(f"Session {sid!r} already has {entry.users} turns in flight")
            entry.users += 1

        acquired = entry.lock.acquire(timeout=-1 if self.timeout is None else self.timeout)
        try:
            if not acquired:
                raise SessionBusy(f"Timed out waiting for session {sid!r}")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[sid]

    def active(self) -> int:
        with self._guard:
            return len(self._locks)


__all__ = ["SessionBusy", "SessionLocks"]
