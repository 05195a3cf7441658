"""Key-value storage for cached repository categories."""

from .base import KeyedStore
from .disk import DiskStore
from .keys import cache_key, key_prefix, parse_key, required_keys
from .memory import MemoryStore

__all__ = [
    "KeyedStore",
    "DiskStore",
    "MemoryStore",
    "cache_key",
    "key_prefix",
    "parse_key",
    "required_keys",
    "open_store",
]


def open_store(settings) -> KeyedStore:
    """Open the durable store described by *settings* (a RankSettings)."""
    return DiskStore(settings.store_path, ttl_seconds=settings.cache_ttl_seconds)
