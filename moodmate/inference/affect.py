"""Affect tags: the closed label set, label normalization and tag parsing.

The model is asked to finish every reply with one bracketed tag such as
``[joy]``. ``extract_tag`` pulls that tag off the end of the reply; when it
is missing, ``AffectTagger.resolve`` asks the emotion classifier instead.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

AFFECT_LABELS = ("joy", "sadness", "anger", "fear", "surprise", "disgust", "neutral", "concern")

# Raw labels seen from classifiers or models, mapped onto the closed set.
LABEL_ALIASES: Dict[str, str] = {
    **{label: label for label in AFFECT_LABELS},
    "happy": "joy",
    "happiness": "joy",
    "love": "joy",
    "optimism": "joy",
    "sad": "sadness",
    "angry": "anger",
    "annoyance": "anger",
    "scared": "fear",
    "nervousness": "fear",
    "surprised": "surprise",
    "disgusted": "disgust",
    "worry": "concern",
    "worried": "concern",
    "caring": "concern",
}

_TAG_RE = re.compile(r"\[(\w+)\]\s*$")


def normalize_label(raw: str) -> str:
    """Map a raw label into the affect set; unknown labels pass through lower-cased."""
    label = (raw or "").strip().lower()
    return LABEL_ALIASES.get(label, label)


@dataclass(frozen=True)
class TagExtraction:
    clean: str
    tag: Optional[str] = None


def extract_tag(raw_reply: str) -> TagExtraction:
    match = _TAG_RE.search(raw_reply)
    if not match:
        return TagExtraction(clean=raw_reply.strip())
    return TagExtraction(clean=raw_reply[: match.start()].strip(), tag=match.group(1).lower())


class Classifier(Protocol):
    def classify(self, text: str) -> str:
        ...


class AffectTagger:
    def __init__(self, classifier: Classifier) -> None:
        self.classifier = classifier

    def resolve(self, raw_reply: str) -> TagExtraction:
        """Return the cleaned reply and its affect label, classifying when untagged."""
        found = extract_tag(raw_reply)
        if found.tag is not None:
            return TagExtraction(clean=found.clean, tag=normalize_label(found.tag))
        logger.info("Reply carried no affect tag; classifying reply text")
        return TagExtraction(clean=found.clean, tag=self.classifier.classify(raw_reply))


__all__ = [
    "AFFECT_LABELS",
    "LABEL_ALIASES",
    "AffectTagger",
    "TagExtraction",
    "extract_tag",
    "normalize_label",
]
