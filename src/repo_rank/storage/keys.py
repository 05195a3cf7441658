"""Cache key scheme: ``name-branch-category`` per repository identifier.

``%`` and ``-`` inside the name and branch are percent-escaped so that the
three components can always be told apart, which keeps keys injective and
the per-identifier prefix unambiguous. Identifiers without hyphens map to
the plain scheme, e.g. ``github.com/org/project-master-imports``.
"""

from __future__ import annotations

from typing import Iterable

from ..models import ALL_CATEGORIES, Category, RepositoryIdentifier


def _escape(component: str) -> str:
    return component.replace("%", "%25").replace("-", "%2D")


def _unescape(component: str) -> str:
    return component.replace("%2D", "-").replace("%25", "%")


def key_prefix(identifier: RepositoryIdentifier) -> bytes:
    """Prefix shared by every key of *identifier* and by no other identifier."""
    return f"{_escape(identifier.name)}-{_escape(identifier.branch)}-".encode()


def cache_key(identifier: RepositoryIdentifier, category: Category | str) -> bytes:
    suffix = category.value if isinstance(category, Category) else category
    return key_prefix(identifier) + suffix.encode()


def required_keys(
    identifier: RepositoryIdentifier, categories: Iterable[Category] = ALL_CATEGORIES
) -> dict[Category, bytes]:
    """Explicit key set whose presence makes a record fully cached."""
    return {category: cache_key(identifier, category) for category in categories}


def parse_key(key: bytes) -> tuple[RepositoryIdentifier, Category]:
    """Inverse of :func:`cache_key`.

    Raises:
        ValueError: If *key* was not produced by :func:`cache_key`
    """
    parts = key.decode().split("-")
    if len(parts) != 3:
        raise ValueError(f"not a cache key: {key!r}")
    name, branch, suffix = parts
    return RepositoryIdentifier(_unescape(name), _unescape(branch)), Category(suffix)
