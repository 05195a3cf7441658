"""
Durable store on top of diskcache.

diskcache keeps entries in SQLite; keys are stored as raw BLOBs so the
database's key order is byte order.
"""

from __future__ import annotations

import sqlite3
from typing import Optional

from diskcache import Cache, Timeout

from ..exceptions import StoreError
from ..logging_config import get_logger
from .base import KeyedStore

logger = get_logger(__name__)

_ENGINE_ERRORS = (sqlite3.Error, OSError, Timeout)


class DiskStore(KeyedStore):
    """
    diskcache-backed KeyedStore.

    Features:
    - Optional TTL applied to every write
    - Prefix deletes run inside a single transaction
    - Safe for concurrent use from threads and processes
    """

    def __init__(self, directory: str, ttl_seconds: Optional[int] = None):
        """
        Open (or create) the store.

        Args:
            directory: Directory for the cache database
            ttl_seconds: Expiry applied to written values (None = never)
        """
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        try:
            self._cache = Cache(directory)
        except _ENGINE_ERRORS as e:
            raise StoreError("open", None, str(e))
        logger.debug("Store opened at %s (ttl=%s)", directory, ttl_seconds)

    def get(self, key: bytes) -> Optional[bytes]:
        try:
            return self._cache.get(key, default=None, retry=True)
        except _ENGINE_ERRORS as e:
            raise StoreError("get", key, str(e))

    def put(self, key: bytes, value: bytes) -> None:
        try:
            self._cache.set(key, value, expire=self.ttl_seconds, retry=True)
        except _ENGINE_ERRORS as e:
            raise StoreError("put", key, str(e))

    def delete(self, key: bytes) -> None:
        try:
            self._cache.delete(key, retry=True)
        except _ENGINE_ERRORS as e:
            raise StoreError("delete", key, str(e))

    def delete_all_with_prefix(self, prefix: bytes) -> None:
        try:
            with self._cache.transact(retry=True):
                for key in self._keys_with_prefix(prefix):
                    self._cache.delete(key)
        except _ENGINE_ERRORS as e:
            raise StoreError("delete_prefix", prefix, str(e))

    def find_all_with_prefix(self, prefix: bytes) -> list[bytes]:
        try:
            values = []
            for key in self._keys_with_prefix(prefix):
                value = self._cache.get(key, default=None, retry=True)
                if value is not None:
                    values.append(value)
            return values
        except _ENGINE_ERRORS as e:
            raise StoreError("find_prefix", prefix, str(e))

    def stats(self) -> dict:
        """Entry count, size on disk and location."""
        try:
            return {
                "directory": self._cache.directory,
                "size": len(self._cache),
                "volume": self._cache.volume(),
            }
        except _ENGINE_ERRORS as e:
            raise StoreError("stats", None, str(e))

    def close(self) -> None:
        self._cache.close()

    def _keys_with_prefix(self, prefix: bytes) -> list[bytes]:
        # diskcache has no range query: this walks every key, O(store size).
        keys = [
            key
            for key in self._cache.iterkeys()
            if isinstance(key, bytes) and key.startswith(prefix)
        ]
        return sorted(keys)
