"""Aggregator: concurrent refresh of a repository's primary categories.

One refresh runs through::

    DISPATCHED -> COLLECTING -> MERGED -> SCORED -> PERSISTED | PARTIAL_FAILURE

Cached categories are read from the store; every missing primary category
is fetched by its own worker thread. A single deadline bounds collection:
categories still running when it elapses fail with ``ProducerTimeout`` while
everything already collected is kept.
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from .config import DEFAULT_LINTERS
from .exceptions import (
    MissingDataError,
    ProducerTimeout,
    ProducerTransportError,
    RepoRankError,
    StoreError,
    ValidationError,
)
from .logging_config import get_logger
from .models import (
    PRIMARY_CATEGORIES,
    Category,
    CategoryResult,
    Failure,
    RepositoryIdentifier,
    Success,
)
from .normalize import dedupe_imports, filter_lint_messages
from .producers.gateway import ProducerGateway
from .rank.engine import RankEngine
from .record import Repository
from .storage import KeyedStore

logger = get_logger(__name__)

# Global wait bound for one aggregation (5 minutes)
DEFAULT_WAIT_BOUND_SECONDS = 300.0


class RefreshState(str, Enum):
    DISPATCHED = "dispatched"
    COLLECTING = "collecting"
    MERGED = "merged"
    SCORED = "scored"
    PERSISTED = "persisted"
    PARTIAL_FAILURE = "partial_failure"


@dataclass
class Aggregation:
    """Outcome of one aggregation: the record plus per-category errors."""

    record: Repository
    errors: dict[Category, RepoRankError] = field(default_factory=dict)
    state: RefreshState = RefreshState.DISPATCHED
    fetched: list[Category] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.errors

    def as_map(self) -> dict[str, Any]:
        """Category map where failed categories carry an explicit error marker."""
        output = self.record.as_map()
        for category, error in self.errors.items():
            output[category.value] = error.to_marker()
        return output


class Aggregator:
    """Fan out to the producers, merge, score and persist.

    Concurrent aggregations of the same identifier are not deduplicated;
    they may both call the producers and the last write wins.
    """

    def __init__(
        self,
        store: KeyedStore,
        gateway: ProducerGateway,
        provider: Any = None,
        engine: Optional[RankEngine] = None,
        wait_bound: float = DEFAULT_WAIT_BOUND_SECONDS,
        linters: Iterable[str] = DEFAULT_LINTERS,
    ):
        self.store = store
        self.gateway = gateway
        self.provider = provider
        self.engine = engine or RankEngine()
        self.wait_bound = wait_bound
        self.linters = tuple(linters)

    def repository(self, identifier: RepositoryIdentifier) -> Repository:
        """A record wired to this aggregator's collaborators."""
        return Repository(
            identifier,
            self.store,
            gateway=self.gateway,
            provider=self.provider,
            engine=self.engine,
            linters=self.linters,
        )

    def aggregate(self, identifier: RepositoryIdentifier, refresh: bool = False) -> Aggregation:
        """Build the full record for *identifier*.

        Args:
            identifier: Repository and branch
            refresh: Clear the cached categories first

        Raises:
            ValidationError: If the hosting provider or a producer rejects the
                repository; nothing is merged or persisted then
        """
        record = self.repository(identifier)
        result = Aggregation(record=record)

        check = None
        if self.provider is not None:
            check = self.provider.validate(identifier)

        if refresh:
            record.clear_cache()

        # DISPATCHED
        missing = self._read_cached(record, result)

        # COLLECTING
        result.state = RefreshState.COLLECTING
        outcomes = self._collect(identifier, missing)
        _raise_rejection(outcomes)

        # MERGED
        for outcome in outcomes:
            self._merge(record, result, outcome)
        result.state = RefreshState.MERGED

        if check is not None:
            record.metadata = check.metadata
        else:
            self._fill(record, result, Category.METADATA, record.get_metadata)

        # SCORED
        self._score(record, result)

        if result.fetched:
            record.mark_refreshed()
        else:
            self._fill(record, result, Category.LAST_UPDATE, record.get_last_update)
            self._fill(record, result, Category.EXECUTION_TIME, record.get_execution_time)

        # PERSISTED
        for category in (
            *result.fetched,
            Category.SCORE,
            Category.METADATA,
            Category.LAST_UPDATE,
            Category.EXECUTION_TIME,
        ):
            if category not in result.errors:
                record.persist(category)

        result.state = RefreshState.PERSISTED if result.complete else RefreshState.PARTIAL_FAILURE
        if result.errors:
            logger.warning(
                "Partial result for %s: %s",
                identifier,
                ", ".join(f"{c.value}={e.kind}" for c, e in result.errors.items()),
            )
        return result

    # ── stages ────────────────────────────────────────────────────

    def _read_cached(self, record: Repository, result: Aggregation) -> list[Category]:
        missing = []
        for category in PRIMARY_CATEGORIES:
            try:
                cached = record.read_cached(category)
            except StoreError as e:
                result.errors[category] = e
                continue
            if cached is None:
                missing.append(category)
            else:
                record.set(category, cached)
        return missing

    def _collect(
        self, identifier: RepositoryIdentifier, categories: list[Category]
    ) -> list[CategoryResult]:
        if not categories:
            return []

        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(categories), thread_name_prefix="repo-rank-producer"
        )
        try:
            futures = {
                executor.submit(self._fetch_one, identifier, category): category
                for category in categories
            }
            done, not_done = concurrent.futures.wait(futures, timeout=self.wait_bound)

            outcomes: list[CategoryResult] = [future.result() for future in done]
            for future in not_done:
                future.cancel()
                category = futures[future]
                logger.warning(
                    "Producer %s for %s exceeded %ss, abandoning it",
                    category.value,
                    identifier,
                    self.wait_bound,
                )
                outcomes.append(Failure(category, ProducerTimeout(category.value, self.wait_bound)))
        finally:
            # Running producers cannot be interrupted; their results are discarded.
            executor.shutdown(wait=False, cancel_futures=True)
        return outcomes

    def _fetch_one(self, identifier: RepositoryIdentifier, category: Category) -> CategoryResult:
        params = {"linters": self.linters} if category == Category.LINT_MESSAGES else None
        try:
            value = self.gateway.fetch(identifier, category, params)
        except RepoRankError as e:
            return Failure(category, e)
        except Exception as e:
            logger.exception("Producer %s crashed for %s", category.value, identifier)
            return Failure(
                category,
                ProducerTransportError("Producer call failed", category.value, str(e)),
            )
        logger.debug("Received %s for %s", category.value, identifier)
        return Success(category, value)

    def _merge(self, record: Repository, result: Aggregation, outcome: CategoryResult) -> None:
        if isinstance(outcome, Failure):
            result.errors[outcome.category] = outcome.error
            return

        value = outcome.value
        if outcome.category == Category.IMPORTS:
            value = dedupe_imports(value)
        elif outcome.category == Category.LINT_MESSAGES:
            value = filter_lint_messages(value, self.linters)
        record.set(outcome.category, value)
        result.fetched.append(outcome.category)

    def _score(self, record: Repository, result: Aggregation) -> None:
        failed = [c.value for c in PRIMARY_CATEGORIES if c in result.errors]
        if failed:
            result.errors[Category.SCORE] = MissingDataError(failed)
            return

        try:
            if result.fetched:
                record.score = self.engine.compute(
                    record.code_stats, record.imports, record.test_results, record.lint_messages
                )
            else:
                record.get_score()
        except (MissingDataError, StoreError) as e:
            result.errors[Category.SCORE] = e
            return
        result.state = RefreshState.SCORED

    @staticmethod
    def _fill(record: Repository, result: Aggregation, category: Category, getter) -> None:
        try:
            getter()
        except RepoRankError as e:
            result.errors[category] = e


def _raise_rejection(outcomes: list[CategoryResult]) -> None:
    """A repository rejected by any producer fails the whole aggregation."""
    for outcome in outcomes:
        if isinstance(outcome, Failure) and isinstance(outcome.error, ValidationError):
            logger.info(
                "Producer %s rejected the repository: %s", outcome.category.value, outcome.error
            )
            raise outcome.error
