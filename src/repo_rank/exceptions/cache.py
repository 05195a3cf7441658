"""Cache exceptions: store access and stored-value decoding."""

from typing import Optional

from .base import RepoRankError


class CacheError(RepoRankError):
    """Base class for cache-related errors."""

    kind = "cache-error"


class StoreError(CacheError):
    """Raised when a read or write against the key-value store fails."""

    kind = "store-error"

    def __init__(self, operation: str, key: Optional[bytes], reason: str):
        details = {"operation": operation, "reason": reason}
        if key is not None:
            details["key"] = key.decode("utf-8", errors="replace")
        super().__init__(f"Store {operation} failed", details=details)
        self.operation = operation
        self.key = key
        self.reason = reason


class DeserializationError(CacheError):
    """Raised when cached bytes cannot be decoded into a category value."""

    kind = "deserialization-error"

    def __init__(self, category: str, reason: str):
        super().__init__(
            f"Cannot decode cached {category}",
            details={"category": category, "reason": reason},
        )
        self.category = category
        self.reason = reason
