"""Base exception for repo-rank."""

from typing import Dict, Optional


class RepoRankError(Exception):
    """Base exception for all repo-rank errors.

    ``kind`` is the short machine-readable marker reported to callers when
    the error is attached to a category of a partial result.
    """

    kind = "error"

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_marker(self) -> Dict[str, str]:
        """Explicit per-field failure marker for output maps."""
        return {"error": self.kind, "message": self.message}
