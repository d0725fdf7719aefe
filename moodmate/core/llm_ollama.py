# moodmate/core/llm_ollama.py
import logging
import os
from typing import List, Optional

import requests

from .errors import UpstreamCompletionError
from .llm import CompletionParams, LLMConfig, Message

logger = logging.getLogger(__name__)


class OllamaCompletionClient:
    def __init__(self, cfg: LLMConfig, session: Optional[requests.Session] = None) -> None:
        self.url = cfg.endpoint or os.getenv("OLLAMA_URL", "http://localhost:11434/api/chat")
        self.timeout = cfg.timeout
        self._http = session or requests.Session()

    def complete(self, messages: List[Message], params: CompletionParams) -> str:
        body = {
            "model": params.model,
            "messages": messages,
            "options": {"temperature": params.temperature, "num_predict": params.max_tokens},
            "stream": False,
        }
        try:
            r = self._http.post(self.url, json=body, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Ollama request failed: %s", exc)
            raise UpstreamCompletionError(str(exc)) from exc
        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise UpstreamCompletionError("Empty reply from Ollama")
        return content
