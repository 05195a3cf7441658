"""In-process ordered store (tests, single-process deployments)."""

from __future__ import annotations

import threading
from bisect import bisect_left, insort
from typing import Optional

from .base import KeyedStore


class MemoryStore(KeyedStore):
    """Dict-backed store with a sorted key index for prefix scans."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[bytes, bytes] = {}
        self._keys: list[bytes] = []

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: bytes, value: bytes) -> None:
        with self._lock:
            if key not in self._data:
                insort(self._keys, key)
            self._data[key] = bytes(value)

    def delete(self, key: bytes) -> None:
        with self._lock:
            if self._data.pop(key, None) is not None:
                self._keys.pop(bisect_left(self._keys, key))

    def delete_all_with_prefix(self, prefix: bytes) -> None:
        with self._lock:
            start, end = self._prefix_range(prefix)
            for key in self._keys[start:end]:
                del self._data[key]
            del self._keys[start:end]

    def find_all_with_prefix(self, prefix: bytes) -> list[bytes]:
        with self._lock:
            start, end = self._prefix_range(prefix)
            return [self._data[key] for key in self._keys[start:end]]

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _prefix_range(self, prefix: bytes) -> tuple[int, int]:
        start = bisect_left(self._keys, prefix)
        end = start
        while end < len(self._keys) and self._keys[end].startswith(prefix):
            end += 1
        return start, end
