from moodmate.core.session_store import ConversationTurn, Role
from moodmate.inference.context_window import DEFAULT_TOKEN_BUDGET, trim_history, turn_cost


def _turn(words: int, role: Role = Role.USER) -> ConversationTurn:
    return ConversationTurn(role=role, content=" ".join(f"w{i}" for i in range(words)))


def _total(turns):
    return sum(turn_cost(t) for t in turns)


def test_cost_counts_whitespace_delimited_words():
    assert turn_cost(ConversationTurn(Role.USER, "  hello   there\nfriend ")) == 3
    assert turn_cost(ConversationTurn(Role.USER, "")) == 0


def test_default_budget():
    assert DEFAULT_TOKEN_BUDGET == 15000


def test_keeps_everything_under_budget():
    history = [_turn(3), _turn(4, Role.ASSISTANT), _turn(2)]
    assert trim_history(history, budget=100) == history


def test_exact_budget_is_excluded():
    history = [_turn(5), _turn(5)]
    # 5 + 5 == 10 reaches the budget, so only the newest turn survives.
    assert trim_history(history, budget=10) == history[1:]


def test_stops_at_first_gap_even_if_older_turns_fit():
    small_old = _turn(1)
    big = _turn(50)
    recent = _turn(2)
    assert trim_history([small_old, big, recent], budget=10) == [recent]


def test_single_turn_over_budget_is_dropped():
    assert trim_history([_turn(20)], budget=10) == []


def test_order_preserved_and_cost_below_budget():
    history = [_turn(n, Role.USER if n % 2 else Role.ASSISTANT) for n in (7, 3, 9, 1, 4, 6, 2)]
    trimmed = trim_history(history, budget=15)
    assert _total(trimmed) < 15
    assert trimmed == history[len(history) - len(trimmed):]


def test_idempotent_and_does_not_mutate_input():
    history = [_turn(n) for n in (8, 8, 8, 8)]
    snapshot = list(history)
    once = trim_history(history, budget=20)
    assert trim_history(once, budget=20) == once
    assert history == snapshot


def test_empty_history():
    assert trim_history([], budget=10) == []
