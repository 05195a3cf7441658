"""Uniform interface to the external analysis producers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from ..models import PRIMARY_CATEGORIES, Category, RepositoryIdentifier


class ProducerGateway(ABC):
    """Fetch one primary category for a repository.

    Calls are stateless and idempotent; the gateway never retries. Errors
    are raised as :class:`~repo_rank.exceptions.ProducerError` subclasses:
    ``ValidationError`` when the repository has no applicable source (not
    retryable), ``ProducerTimeout`` and ``ProducerTransportError`` otherwise.
    """

    @abstractmethod
    def fetch(
        self,
        identifier: RepositoryIdentifier,
        category: Category,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Return the raw category value (before normalization).

        ``params["linters"]`` is the active linter allow-list for
        ``Category.LINT_MESSAGES``.
        """

    @staticmethod
    def check_category(category: Category) -> None:
        if category not in PRIMARY_CATEGORIES:
            raise ValueError(f"{category.value} is not produced by an analysis producer")
