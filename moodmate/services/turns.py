"""One chat turn, end to end.

``TurnOrchestrator.handle_turn`` classifies the user's message, then, holding
the session's lock, loads history, appends the user turn, trims and composes
the model request, generates a reply, resolves its affect tag and persists
the history with both new turns. Upstream failures resolve to a fallback
result and never leave an unpaired user turn in the store. A session with
too many turns already queued rejects further turns instead of waiting.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from moodmate.core.errors import PersistenceError, UpstreamCompletionError, ValidationError
from moodmate.core.llm import CompletionClient, CompletionParams, build_system_prompt, compose_messages
from moodmate.core.locks import SessionBusy, SessionLocks
from moodmate.core.session_store import ConversationTurn, Role, SessionStore
from moodmate.event_log import record_turn_event
from moodmate.inference.affect import AffectTagger, Classifier
from moodmate.inference.context_window import DEFAULT_TOKEN_BUDGET, trim_history

logger = logging.getLogger(__name__)

APOLOGY_REPLY = "Sorry, I couldn’t reach my brain right now 😞"


@dataclass(frozen=True)
class TurnResult:
    reply: str
    user_mood: str
    bot_mood: str
    ok: bool = True

    def to_payload(self) -> Dict[str, str]:
        return {"reply": self.reply, "userMood": self.user_mood, "botMood": self.bot_mood}


def failed_turn(bot_mood: str) -> TurnResult:
    """Apology result for a turn that could not complete; user mood is reported as neutral."""
    return TurnResult(reply=APOLOGY_REPLY, user_mood="neutral", bot_mood=bot_mood, ok=False)


class TurnOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        completion: CompletionClient,
        classifier: Classifier,
        params: CompletionParams,
        budget: int = DEFAULT_TOKEN_BUDGET,
        default_region: str = "global",
        locks: Optional[SessionLocks] = None,
        system_prompt: Callable[[Optional[str]], str] = build_system_prompt,
    ) -> None:
        self.store = store
        self.completion = completion
        self.classifier = classifier
        self.tagger = AffectTagger(classifier)
        self.params = params
        self.budget = budget
        self.default_region = default_region
        self.locks = locks or SessionLocks()
        self.system_prompt = system_prompt

    def _load_history(self, sid: str) -> List[ConversationTurn]:
        try:
            history = self.store.get(sid)
        except PersistenceError as exc:
            logger.warning("Could not load history for %s, starting empty: %s", sid, exc)
            return []
        return list(history or [])

    def handle_turn(self, sid: Optional[str], user_message: Optional[str], region: Optional[str] = None) -> TurnResult:
        if not sid or not sid.strip() or not user_message or not user_message.strip():
            raise ValidationError("Missing message or userId")

        user_mood = self.classifier.classify(user_message)
        logger.info("Turn for %s: user mood %s", sid, user_mood)

        try:
            with self.locks.hold(sid):
                return self._locked_turn(sid, user_message, region, user_mood)
        except SessionBusy as exc:
            logger.warning("Rejected turn for %s: %s", sid, exc)
            record_turn_event("chat.session_busy", sid, user_message, user_mood=user_mood,
                              bot_mood="neutral", error=str(exc))
            return failed_turn("neutral")

    def _locked_turn(self, sid: str, user_message: str, region: Optional[str], user_mood: str) -> TurnResult:
        history = self._load_history(sid)
        history.append(ConversationTurn(role=Role.USER, content=user_message))

        trimmed = trim_history(history, self.budget)
        messages = compose_messages(self.system_prompt(region or self.default_region), trimmed, user_message)
        logger.debug("Sending %s of %s turns to the model", len(trimmed), len(history))

        try:
            raw_reply = self.completion.complete(messages, self.params)
        except UpstreamCompletionError as exc:
            logger.warning("Completion failed for %s: %s", sid, exc)
            record_turn_event("chat.upstream_error", sid, user_message, user_mood=user_mood,
                              bot_mood="neutral", error=str(exc))
            return failed_turn("neutral")

        try:
            tagged = self.tagger.resolve(raw_reply)
        except Exception as exc:
            logger.exception("Could not tag reply for %s", sid)
            record_turn_event("chat.tagging_error", sid, user_message, reply=raw_reply,
                              user_mood=user_mood, bot_mood="sadness", error=str(exc))
            return failed_turn("sadness")

        history.append(ConversationTurn(role=Role.ASSISTANT, content=tagged.clean))

        try:
            self.store.set(sid, history)
        except PersistenceError as exc:
            logger.error("Could not persist history for %s: %s", sid, exc)
            record_turn_event("chat.persist_error", sid, user_message, reply=tagged.clean,
                              user_mood=user_mood, bot_mood=tagged.tag, error=str(exc))
            return failed_turn("neutral")

        logger.info("Turn for %s done: bot mood %s, history %s turns", sid, tagged.tag, len(history))
        record_turn_event("chat.success", sid, user_message, reply=tagged.clean,
                          user_mood=user_mood, bot_mood=tagged.tag)
        return TurnResult(reply=tagged.clean, user_mood=user_mood, bot_mood=tagged.tag)
