"""Test doubles for the turn pipeline's collaborators."""
from __future__ import annotations

import threading
import time
from typing import Any, Dict, List, Optional

import requests

from moodmate.core.errors import UpstreamCompletionError


class FakeClassifier:
    def __init__(self, label: str = "neutral", by_text: Optional[Dict[str, str]] = None) -> None:
        self.label = label
        self.by_text = by_text or {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def classify(self, text: str) -> str:
        with self._lock:
            self.calls.append(text)
        return self.by_text.get(text, self.label)


class FakeCompletion:
    """Returns a scripted reply; a ``None`` reply raises UpstreamCompletionError."""

    def __init__(self, reply: Any = "Sounds good! [joy]", delay: float = 0.0) -> None:
        self.reply = reply
        self.delay = delay
        self.calls: List[List[Dict[str, str]]] = []
        self._lock = threading.Lock()

    def complete(self, messages, params):
        with self._lock:
            self.calls.append(list(messages))
        if self.delay:
            time.sleep(self.delay)
        reply = self.reply(messages) if callable(self.reply) else self.reply
        if reply is None:
            raise UpstreamCompletionError("upstream down")
        return reply


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, json_error: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._json_error = json_error

    def json(self) -> Any:
        if self._json_error:
            raise ValueError("not json")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)


class FakeHTTP:
    """Stands in for requests.Session.

    Each queued item is a FakeResponse or an exception to raise; the last
    item repeats once the queue is drained.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append({"url": url, **kwargs})
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item
