"""Emotion classification through a hosted text-classification model.

The inference API answers with a label/score distribution, sometimes wrapped
in an extra list. Failures are retried under a small bounded policy and the
client falls back to ``neutral``; it never raises to its caller.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests

from .affect import normalize_label

logger = logging.getLogger(__name__)

FALLBACK_LABEL = "neutral"


class ClassifierFailure(Exception):
    """One classification attempt failed; absorbed inside the client."""


@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 2
    delay: float = 0.5
    sleep: Callable[[float], None] = time.sleep


def _flatten(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        if payload.get("error"):
            raise ClassifierFailure(str(payload["error"]))
        raise ClassifierFailure("Unexpected classifier payload")
    if not isinstance(payload, list) or not payload:
        raise ClassifierFailure("Empty classifier payload")
    if isinstance(payload[0], list):
        payload = payload[0]
    preds = [
        p
        for p in payload
        if isinstance(p, dict)
        and "label" in p
        and isinstance(p.get("score"), (int, float))
        and not isinstance(p["score"], bool)
    ]
    if not preds:
        raise ClassifierFailure("No label/score pairs in classifier payload")
    return preds


def top_label(payload: Any) -> str:
    """Highest-scoring label; ties keep the first occurrence."""
    preds = _flatten(payload)
    best = preds[0]
    for pred in preds[1:]:
        if float(pred["score"]) > float(best["score"]):
            best = pred
    return normalize_label(str(best["label"]))


class EmotionClassifierClient:
    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        retry: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.retry = retry or RetryPolicy()
        self._http = session or requests.Session()

    def _attempt(self, text: str) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            r = self._http.post(self.url, json={"inputs": text}, headers=headers, timeout=self.timeout)
            data = r.json()
        except requests.RequestException as exc:
            raise ClassifierFailure(str(exc)) from exc
        except ValueError as exc:
            raise ClassifierFailure(f"Non-JSON classifier response (HTTP {r.status_code})") from exc
        if r.status_code >= 400:
            # Covers the "model is currently loading" 503 as well.
            detail = data.get("error") if isinstance(data, dict) else data
            raise ClassifierFailure(f"HTTP {r.status_code}: {detail}")
        return top_label(data)

    def classify(self, text: str) -> str:
        attempts = max(1, self.retry.attempts)
        for attempt in range(1, attempts + 1):
            try:
                return self._attempt(text)
            except ClassifierFailure as exc:
                logger.warning("Emotion detection failed (try %s/%s): %s", attempt, attempts, exc)
                if attempt < attempts:
                    self.retry.sleep(self.retry.delay)
        return FALLBACK_LABEL


__all__ = ["EmotionClassifierClient", "RetryPolicy", "ClassifierFailure", "top_label", "FALLBACK_LABEL"]
