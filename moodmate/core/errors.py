"""Error taxonomy shared by the turn pipeline and the HTTP layer."""
from __future__ import annotations


class ValidationError(ValueError):
    """A required request field is missing or empty."""


class UpstreamCompletionError(RuntimeError):
    """The chat-completion service could not produce a reply."""


class PersistenceError(RuntimeError):
    """The session store could not be read or written."""


__all__ = ["ValidationError", "UpstreamCompletionError", "PersistenceError"]
