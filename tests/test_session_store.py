import threading
import time

import pytest

from moodmate.core.errors import PersistenceError
from moodmate.core.firestore_store import FirestoreSessionStore
from moodmate.core.locks import SessionBusy, SessionLocks
from moodmate.core.session_store import ConversationTurn, InMemorySessionStore, Role, turns_from_records

HISTORY = [ConversationTurn(Role.USER, "hi"), ConversationTurn(Role.ASSISTANT, "hello")]


class _Snapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return self._data


class _Document:
    def __init__(self, docs, sid, fail=False):
        self.docs = docs
        self.sid = sid
        self.fail = fail
        self.timeouts = []

    def get(self, timeout=None):
        self.timeouts.append(timeout)
        if self.fail:
            raise ConnectionError("firestore unavailable")
        return _Snapshot(self.docs.get(self.sid))

    def set(self, data, timeout=None):
        self.timeouts.append(timeout)
        if self.fail:
            raise ConnectionError("firestore unavailable")
        self.docs[self.sid] = data


class _Collection:
    def __init__(self, fail=False):
        self.docs = {}
        self.fail = fail

    def document(self, sid):
        return _Document(self.docs, sid, self.fail)


class _Client:
    def __init__(self, fail=False):
        self.collections = {}
        self.fail = fail

    def collection(self, name):
        return self.collections.setdefault(name, _Collection(self.fail))


def test_in_memory_store_round_trip_and_copies():
    store = InMemorySessionStore()
    assert store.get("u1") is None
    store.set("u1", HISTORY)
    loaded = store.get("u1")
    assert loaded == HISTORY
    loaded.append(ConversationTurn(Role.USER, "extra"))
    assert store.get("u1") == HISTORY
    assert "u1" in store and "u2" not in store


def test_records_skip_malformed_entries():
    records = [
        {"role": "user", "content": "hi"},
        "garbage",
        {"role": "system", "content": "nope"},
        {"role": "ASSISTANT", "content": "hello"},
    ]
    assert turns_from_records(records) == HISTORY


def test_firestore_store_layout():
    client = _Client()
    store = FirestoreSessionStore(client, collection="sessions", timeout=4.0)
    assert store.get("u1") is None
    store.set("u1", HISTORY)
    assert client.collections["sessions"].docs["u1"] == {
        "history": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]
    }
    assert store.get("u1") == HISTORY


def test_firestore_store_wraps_failures():
    store = FirestoreSessionStore(_Client(fail=True))
    with pytest.raises(PersistenceError):
        store.get("u1")
    with pytest.raises(PersistenceError):
        store.set("u1", HISTORY)


def test_firestore_document_without_history():
    client = _Client()
    client.collection("sessions").docs["u1"] = {}
    assert FirestoreSessionStore(client).get("u1") == []


def test_session_locks_serialize_same_key_and_clean_up():
    locks = SessionLocks()
    inside = []
    overlap = []
    gate = threading.Lock()

    def work():
        with locks.hold("u1"):
            with gate:
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(True)
            threading.Event().wait(0.01)
            with gate:
                inside.pop()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert overlap == []
    assert locks.active() == 0


def test_session_locks_do_not_block_other_keys():
    locks = SessionLocks()
    with locks.hold("u1"):
        done = threading.Event()

        def other():
            with locks.hold("u2"):
                done.set()

        t = threading.Thread(target=other)
        t.start()
        assert done.wait(1.0)
        t.join()
    assert locks.active() == 0


def test_session_locks_reject_beyond_max_waiters():
    locks = SessionLocks(max_waiters=1)
    queued = threading.Event()
    entered = threading.Event()

    def waiter():
        queued.set()
        with locks.hold("u1"):
            entered.set()

    with locks.hold("u1"):
        t = threading.Thread(target=waiter)
        t.start()
        assert queued.wait(1.0)
        deadline = time.monotonic() + 1.0
        while locks._locks["u1"].users < 2 and time.monotonic() < deadline:
            time.sleep(0.005)
        with pytest.raises(SessionBusy):
            with locks.hold("u1"):
                pass
        # Other sessions are unaffected.
        with locks.hold("u2"):
            pass
    t.join(1.0)
    assert entered.is_set()
    assert locks.active() == 0


def test_session_locks_wait_times_out():
    locks = SessionLocks(timeout=0.05)
    errors = []

    def late():
        try:
            with locks.hold("u1"):
                pass
        except SessionBusy as exc:
            errors.append(exc)

    with locks.hold("u1"):
        t = threading.Thread(target=late)
        t.start()
        t.join(1.0)
    assert len(errors) == 1
    assert locks.active() == 0
