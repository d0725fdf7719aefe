# moodmate/core/llm.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence

from moodmate.core.session_store import ConversationTurn, Role
from moodmate.inference.affect import AFFECT_LABELS

Message = Dict[str, str]


@dataclass(frozen=True)
class CompletionParams:
    model: str
    temperature: float = 0.7
    max_tokens: int = 100


@dataclass
class LLMConfig:
    provider: str = "together"  # "together" | "ollama"
    model: str = "mistralai/Mixtral-8x7B-Instruct-v0.1"
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 100
    timeout: float = 30.0

    @property
    def params(self) -> CompletionParams:
        return CompletionParams(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)


class CompletionClient(Protocol):
    def complete(self, messages: List[Message], params: CompletionParams) -> str:
        """Return the raw reply text or raise UpstreamCompletionError."""
        ...


_TAG_LIST = ", ".join(f"[{label}]" for label in AFFECT_LABELS)

SYSTEM_PROMPT = f"""You are a friendly and concise chatbot that acts as the user's friend. \
Your replies should be brief and to the point. Your crucial task is to ALWAYS end your reply \
with exactly one emotion tag from this list: {_TAG_LIST}. The tag must be the very last thing \
in your reply, on the same line, and nothing may follow it. Do not forget or skip the tag and \
never use more than one. For example: "I understand how you feel. [concern]". The tag should \
tell the overall emotion of your whole message."""

REGION_PROMPT = (
    "When providing helpline or resource information, ensure it is relevant "
    "to the user's specified region: {region}."
)


def build_system_prompt(region: Optional[str] = None) -> str:
    region_text = (region or "").strip() or "global"
    return f"{SYSTEM_PROMPT}\n\n{REGION_PROMPT.format(region=region_text)}"


def compose_messages(
    system_prompt: str, trimmed_history: Sequence[ConversationTurn], user_message: str
) -> List[Message]:
    """Build the message list for the completion call.

    The working history already ends with the current user turn; it is only
    appended here when trimming dropped it, so it is sent exactly once.
    """
    messages: List[Message] = [{"role": "system", "content": system_prompt}]
    messages.extend(turn.to_dict() for turn in trimmed_history)
    current = ConversationTurn(role=Role.USER, content=user_message)
    if not trimmed_history or trimmed_history[-1] != current:
        messages.append(current.to_dict())
    return messages


def build_completion_client(cfg: LLMConfig) -> CompletionClient:
    provider = (cfg.provider or "").lower()
    if provider in {"together", "cloud", "openai"}:
        from .llm_cloud import CloudCompletionClient

        return CloudCompletionClient(cfg)
    if provider == "ollama":
        from .llm_ollama import OllamaCompletionClient

        return OllamaCompletionClient(cfg)
    raise ValueError(f"Unsupported LLM provider '{cfg.provider}'.")
