# moodmate/core/llm_cloud.py
from __future__ import annotations

import logging
from typing import List, Optional

import requests

from .errors import UpstreamCompletionError
from .llm import CompletionParams, LLMConfig, Message

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.together.xyz/v1/chat/completions"


class CloudCompletionClient:
    """OpenAI-compatible chat completions (Together by default)."""

    def __init__(self, cfg: LLMConfig, session: Optional[requests.Session] = None) -> None:
        self.endpoint = cfg.endpoint or DEFAULT_ENDPOINT
        self.api_key = cfg.api_key
        self.timeout = cfg.timeout
        self._http = session or requests.Session()

    def complete(self, messages: List[Message], params: CompletionParams) -> str:
        if not self.api_key:
            raise UpstreamCompletionError("No API key configured for the completion service")
        body = {
            "model": params.model,
            "messages": messages,
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            r = self._http.post(self.endpoint, json=body, headers=headers, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except requests.RequestException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            logger.warning("Completion request failed (status=%s): %s", status, exc)
            raise UpstreamCompletionError(str(exc)) from exc
        except ValueError as exc:
            raise UpstreamCompletionError("Completion response was not JSON") from exc

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamCompletionError("Malformed completion payload") from exc
        if not isinstance(content, str) or not content.strip():
            raise UpstreamCompletionError("Empty completion content")
        return content
