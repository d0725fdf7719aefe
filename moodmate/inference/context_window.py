"""Bound the history sent to the model by an approximate token budget."""
from __future__ import annotations

from typing import List, Sequence

from moodmate.core.session_store import ConversationTurn

DEFAULT_TOKEN_BUDGET = 15000


def turn_cost(turn: ConversationTurn) -> int:
    """Whitespace-delimited word count, a cheap stand-in for tokens."""
    return len(turn.content.split())


def trim_history(history: Sequence[ConversationTurn], budget: int = DEFAULT_TOKEN_BUDGET) -> List[ConversationTurn]:
    """Keep the longest recent suffix whose total cost stays below ``budget``."""
    used = 0
    start = len(history)
    for i in range(len(history) - 1, -1, -1):
        cost = turn_cost(history[i])
        if used + cost >= budget:
            break
        used += cost
        start = i
    return list(history[start:])
