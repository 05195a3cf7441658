"""Abstract byte-ordered key-value store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class KeyedStore(ABC):
    """Ordered byte-key store with point operations and prefix scans.

    Absence is reported as ``None`` by :meth:`get`; every failure of the
    underlying engine raises :class:`~repo_rank.exceptions.StoreError`.
    Single-key writes are atomic; no other transaction guarantee is made.
    """

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Return the value stored under *key*, or ``None`` if absent."""

    @abstractmethod
    def put(self, key: bytes, value: bytes) -> None: ...

    @abstractmethod
    def delete(self, key: bytes) -> None:
        """Remove *key*; deleting an absent key is not an error."""

    @abstractmethod
    def delete_all_with_prefix(self, prefix: bytes) -> None: ...

    @abstractmethod
    def find_all_with_prefix(self, prefix: bytes) -> list[bytes]:
        """Values of every key starting with *prefix*, in key order."""

    def contains(self, key: bytes) -> bool:
        return self.get(key) is not None

    def close(self) -> None:
        pass

    def __enter__(self) -> "KeyedStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
