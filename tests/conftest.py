from __future__ import annotations

from typing import Any, Callable, Dict

import pytest

from fakes import FakeClassifier, FakeCompletion
from moodmate.core.llm import CompletionParams
from moodmate.core.session_store import InMemorySessionStore
from moodmate.event_log import clear_events
from moodmate.services import TurnOrchestrator


@pytest.fixture(autouse=True)
def _clean_event_log():
    clear_events()
    yield
    clear_events()


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier("neutral")


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def make_orchestrator(store, classifier, completion) -> Callable[..., TurnOrchestrator]:
    def _make(**overrides: Any) -> TurnOrchestrator:
        kwargs: Dict[str, Any] = {
            "store": store,
            "completion": completion,
            "classifier": classifier,
            "params": CompletionParams(model="test-model"),
        }
        kwargs.update(overrides)
        return TurnOrchestrator(**kwargs)

    return _make
