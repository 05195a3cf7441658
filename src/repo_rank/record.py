"""Repository record: the in-memory aggregate for one (repository, branch).

Every ``get_*`` method fills exactly one category: the in-memory value if
already present, then the store, then the category's source (producer
gateway, hosting provider, rank engine or refresh clock). Freshly obtained
values are written back to the store; write failures are logged and the
fresh value is still returned.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from . import codec
from .config import DEFAULT_LINTERS
from .exceptions import DeserializationError, MissingDataError, StoreError
from .logging_config import get_logger
from .models import (
    ALL_CATEGORIES,
    PRIMARY_CATEGORIES,
    Category,
    CodeStats,
    Imports,
    LintMessages,
    Metadata,
    RepositoryIdentifier,
    Score,
    TestResults,
)
from .normalize import dedupe_imports, filter_lint_messages
from .producers.gateway import ProducerGateway
from .rank.engine import RankEngine
from .storage import KeyedStore, cache_key, key_prefix, required_keys

logger = get_logger(__name__)

# Record attribute holding each category
_FIELDS = {
    Category.IMPORTS: "imports",
    Category.CODE_STATS: "code_stats",
    Category.TEST_RESULTS: "test_results",
    Category.LINT_MESSAGES: "lint_messages",
    Category.SCORE: "score",
    Category.METADATA: "metadata",
    Category.LAST_UPDATE: "last_update",
    Category.EXECUTION_TIME: "execution_time",
}


class Repository:
    """Cached analysis data of one repository branch.

    Usage::

        repo = Repository(RepositoryIdentifier("github.com/org/project"), store, gateway)
        if repo.is_cached():
            repo.load()
    """

    def __init__(
        self,
        identifier: RepositoryIdentifier,
        store: KeyedStore,
        gateway: Optional[ProducerGateway] = None,
        provider: Any = None,
        engine: Optional[RankEngine] = None,
        linters: Iterable[str] = DEFAULT_LINTERS,
    ):
        self.identifier = identifier
        self.linters = tuple(linters)
        self._store = store
        self._gateway = gateway
        self._provider = provider
        self._engine = engine or RankEngine()

        self.imports: Optional[Imports] = None
        self.code_stats: Optional[CodeStats] = None
        self.test_results: Optional[TestResults] = None
        self.lint_messages: Optional[LintMessages] = None
        self.metadata: Optional[Metadata] = None
        self.score: Optional[Score] = None
        self.last_update: Optional[datetime] = None
        self.execution_time: Optional[float] = None

        self.started_at = time.monotonic()

    def __repr__(self) -> str:
        return f"Repository({self.identifier!s})"

    # ── predicates ────────────────────────────────────────────────

    def is_cached(self) -> bool:
        """True iff every category key exists in the store."""
        try:
            return all(self._store.contains(key) for key in required_keys(self.identifier).values())
        except StoreError as e:
            logger.warning("Cannot check cache for %s: %s", self.identifier, e)
            return False

    def is_loaded(self) -> bool:
        """True iff the four primary categories are populated in memory."""
        if self.code_stats is None or self.imports is None or self.lint_messages is None:
            return False
        return self.test_results is not None and not self.test_results.is_empty()

    # ── lifecycle ─────────────────────────────────────────────────

    def load(self) -> None:
        """Populate every category in the fixed order, failing on the first error."""
        self.get_imports()
        self.get_code_stats()
        self.get_lint_messages()
        self.get_test_results()
        self.get_score()
        self.get_metadata()
        self.get_last_update()
        self.get_execution_time()

    def clear_cache(self) -> None:
        """Remove every key of this identifier from the store."""
        self._store.delete_all_with_prefix(key_prefix(self.identifier))
        logger.info("Cleared cache for %s", self.identifier)

    def mark_refreshed(self, keep_existing: bool = False) -> None:
        """Stamp the end of a refresh: last update and execution time share one clock."""
        now = datetime.now(timezone.utc)
        elapsed = round(time.monotonic() - self.started_at, 3)
        if not keep_existing or self.last_update is None:
            self.last_update = now
        if not keep_existing or self.execution_time is None:
            self.execution_time = elapsed

    # ── category getters ──────────────────────────────────────────

    def get_imports(self) -> Imports:
        """Third-party imports, one entry per dependency repository."""
        return self._get(
            Category.IMPORTS, lambda: dedupe_imports(self._fetch(Category.IMPORTS))
        )

    def get_code_stats(self) -> CodeStats:
        return self._get(Category.CODE_STATS, lambda: self._fetch(Category.CODE_STATS))

    def get_test_results(self) -> TestResults:
        return self._get(Category.TEST_RESULTS, lambda: self._fetch(Category.TEST_RESULTS))

    def get_lint_messages(self, linters: Optional[Iterable[str]] = None) -> LintMessages:
        """Linter findings restricted to *linters* (defaults to the record's allow-list)."""
        allowed = tuple(linters) if linters is not None else self.linters

        def fetch() -> LintMessages:
            raw = self._fetch(Category.LINT_MESSAGES, {"linters": allowed})
            return filter_lint_messages(raw, allowed)

        return self._get(Category.LINT_MESSAGES, fetch)

    def get_metadata(self) -> Metadata:
        def fetch() -> Metadata:
            if self._provider is None:
                return Metadata()
            return self._provider.get_metadata(self.identifier)

        return self._get(Category.METADATA, fetch)

    def get_score(self) -> Score:
        """Cached score, or the score computed from the in-memory primary categories.

        Raises:
            MissingDataError: If a required category is not in memory
        """
        return self._get(
            Category.SCORE,
            lambda: self._engine.compute(
                self.code_stats, self.imports, self.test_results, self.lint_messages
            ),
        )

    def get_rank(self) -> str:
        """Rank letter from the Score key alone; never calls a producer.

        Raises:
            MissingDataError: If no score has been computed yet
        """
        if self.score is None:
            cached = self.read_cached(Category.SCORE)
            if cached is None:
                raise MissingDataError([Category.SCORE.value])
            self.score = cached
        return self.score.rank

    def get_last_update(self) -> datetime:
        return self._get(Category.LAST_UPDATE, lambda: self._stamp(Category.LAST_UPDATE))

    def get_execution_time(self) -> float:
        """Duration of the last refresh in seconds, used as a refresh ETA."""
        return self._get(Category.EXECUTION_TIME, lambda: self._stamp(Category.EXECUTION_TIME))

    # ── cache primitives ──────────────────────────────────────────

    def value(self, category: Category) -> Any:
        return getattr(self, _FIELDS[category])

    def set(self, category: Category, value: Any) -> None:
        setattr(self, _FIELDS[category], value)

    def read_cached(self, category: Category) -> Any:
        """Decode the stored value of *category*.

        Returns ``None`` when the key is absent or its bytes do not decode
        (so the caller re-fetches). Store failures raise ``StoreError``.
        """
        data = self._store.get(cache_key(self.identifier, category))
        if data is None:
            return None
        try:
            return codec.decode(category, data)
        except DeserializationError as e:
            logger.warning("Discarding cached %s for %s: %s", category.value, self.identifier, e)
            return None

    def persist(self, category: Category) -> bool:
        """Write the in-memory value of *category*; failures are logged, not raised."""
        value = self.value(category)
        if value is None:
            return False
        try:
            self._store.put(cache_key(self.identifier, category), codec.encode(category, value))
        except StoreError as e:
            logger.error("Could not persist %s for %s: %s", category.value, self.identifier, e)
            return False
        return True

    def as_map(self) -> dict[str, Any]:
        """Category name -> JSON document (``None`` for absent categories)."""
        result: dict[str, Any] = {}
        for category in ALL_CATEGORIES:
            value = self.value(category)
            result[category.value] = None if value is None else codec.to_document(category, value)
        return result

    # ── internals ─────────────────────────────────────────────────

    def _get(self, category: Category, produce: Callable[[], Any]) -> Any:
        current = self.value(category)
        if current is not None:
            return current

        cached = self.read_cached(category)
        if cached is not None:
            self.set(category, cached)
            return cached

        value = produce()
        self.set(category, value)
        self.persist(category)
        return value

    def _fetch(self, category: Category, params: Optional[dict] = None) -> Any:
        if category not in PRIMARY_CATEGORIES:
            raise ValueError(f"{category.value} has no producer")
        if self._gateway is None:
            raise RuntimeError(f"{self!r} has no producer gateway to fetch {category.value}")
        logger.debug("Fetching %s for %s", category.value, self.identifier)
        return self._gateway.fetch(self.identifier, category, params)

    def _stamp(self, category: Category) -> Any:
        # Both timestamps come from one mark_refreshed call; a sibling that
        # had to be stamped as well is written back with it.
        sibling = (
            Category.EXECUTION_TIME if category == Category.LAST_UPDATE else Category.LAST_UPDATE
        )
        if self.value(sibling) is None:
            cached = self.read_cached(sibling)
            if cached is not None:
                self.set(sibling, cached)
        stamp_sibling = self.value(sibling) is None
        self.mark_refreshed(keep_existing=True)
        if stamp_sibling:
            self.persist(sibling)
        return self.value(category)
