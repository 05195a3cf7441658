"""Producer-side exceptions: repository validation, timeouts, transport."""

from typing import Optional

from .base import RepoRankError


class ProducerError(RepoRankError):
    """Base class for errors raised while obtaining a category from a producer."""

    kind = "producer-error"

    def __init__(self, message: str, category: Optional[str] = None, reason: str = ""):
        details = {}
        if category:
            details["category"] = category
        if reason:
            details["reason"] = reason
        super().__init__(message, details=details)
        self.category = category
        self.reason = reason


class ValidationError(ProducerError):
    """The repository cannot be analysed (missing, unreadable, no applicable source).

    Never retried: the whole request fails.
    """

    kind = "validation-error"


class ProducerTimeout(ProducerError):
    """A category did not produce a result within the wait bound."""

    kind = "timeout"

    def __init__(self, category: str, timeout: float):
        super().__init__(
            f"The analysis timed out after {timeout:g}s", category=category, reason="timeout"
        )
        self.timeout = timeout


class ProducerTransportError(ProducerError):
    """A category fetch failed for infrastructure reasons."""

    kind = "transport-error"
