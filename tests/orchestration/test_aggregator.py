"""Tests for concurrent aggregation: partial failure, wait bound, idempotence."""

import time

import pytest

from repo_rank import codec
from repo_rank.exceptions import (
    ProducerTimeout,
    ProducerTransportError,
    ValidationError,
)
from repo_rank.models import PRIMARY_CATEGORIES, Category, Metadata
from repo_rank.orchestrator import Aggregator, RefreshState
from repo_rank.producers.github import RepositoryCheck
from repo_rank.storage import cache_key


class FakeProvider:
    def __init__(self, error=None):
        self.error = error
        self.validated = []

    def validate(self, identifier):
        self.validated.append(identifier)
        if self.error is not None:
            raise self.error
        return RepositoryCheck(
            exists=True,
            primary_language_matches=True,
            metadata=Metadata(description="cached things", stars=42),
            language="Go",
        )


def _stored(store, identifier, categories):
    return {c: store.get(cache_key(identifier, c)) for c in categories}


class TestAggregate:
    def test_complete_refresh(self, store, gateway, identifier):
        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert result.complete
        assert result.state == RefreshState.PERSISTED
        assert set(result.fetched) == set(PRIMARY_CATEGORIES)
        assert result.record.score is not None
        assert result.record.is_cached()

    def test_lint_params_and_filtering(self, store, gateway, identifier):
        aggregator = Aggregator(store, gateway, wait_bound=5, linters=("vet",))
        result = aggregator.aggregate(identifier)

        (_, _, params), = gateway.calls_for(Category.LINT_MESSAGES)
        assert params == {"linters": ("vet",)}
        assert set(result.record.lint_messages) == {"vet"}

    def test_imports_deduplicated(self, store, gateway, identifier):
        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)
        assert "github.com/sirupsen/logrus/hooks/syslog" not in result.record.imports

    def test_no_double_fetch(self, store, gateway, identifier):
        aggregator = Aggregator(store, gateway, wait_bound=5)
        first = aggregator.aggregate(identifier)
        calls = len(gateway.calls)

        second = aggregator.aggregate(identifier)

        assert len(gateway.calls) == calls
        assert second.fetched == []
        assert second.state == RefreshState.PERSISTED
        assert second.record.score == first.record.score
        assert second.record.last_update == first.record.last_update

    def test_cached_categories_skipped(self, store, gateway, identifier, code_stats):
        store.put(
            cache_key(identifier, Category.CODE_STATS),
            codec.encode(Category.CODE_STATS, code_stats),
        )
        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert gateway.calls_for(Category.CODE_STATS) == []
        assert Category.CODE_STATS not in result.fetched
        assert result.record.code_stats == code_stats
        assert result.complete

    def test_refresh_refetches(self, store, gateway, identifier):
        aggregator = Aggregator(store, gateway, wait_bound=5)
        aggregator.aggregate(identifier)
        aggregator.aggregate(identifier, refresh=True)
        for category in PRIMARY_CATEGORIES:
            assert len(gateway.calls_for(category)) == 2

    def test_refresh_is_idempotent(self, store, gateway, identifier):
        aggregator = Aggregator(store, gateway, wait_bound=5)
        watched = (*PRIMARY_CATEGORIES, Category.SCORE)

        aggregator.aggregate(identifier, refresh=True)
        first = _stored(store, identifier, watched)
        aggregator.aggregate(identifier, refresh=True)
        second = _stored(store, identifier, watched)

        assert all(first.values())
        assert first == second


class TestPartialFailure:
    def test_failed_categories_carry_markers(self, store, identifier, responses, make_gateway):
        responses[Category.TEST_RESULTS] = ProducerTimeout("testresults", 300)
        responses[Category.LINT_MESSAGES] = ProducerTransportError(
            "Producer lintmessages failed", "lintmessages", "HTTP 502"
        )
        gateway = make_gateway(responses)

        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert result.state == RefreshState.PARTIAL_FAILURE
        assert set(result.errors) == {
            Category.TEST_RESULTS,
            Category.LINT_MESSAGES,
            Category.SCORE,
        }
        output = result.as_map()
        assert output["testresults"]["error"] == "timeout"
        assert output["lintmessages"]["error"] == "transport-error"
        assert output["score"]["error"] == "missing-data"
        assert output["codestats"] == responses[Category.CODE_STATS]
        assert len(output["imports"]) == 4

    def test_successes_are_persisted(self, store, identifier, responses, make_gateway):
        responses[Category.TEST_RESULTS] = ProducerTimeout("testresults", 300)
        gateway = make_gateway(responses)

        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert store.get(cache_key(identifier, Category.CODE_STATS)) is not None
        assert store.get(cache_key(identifier, Category.IMPORTS)) is not None
        assert store.get(cache_key(identifier, Category.TEST_RESULTS)) is None
        assert store.get(cache_key(identifier, Category.SCORE)) is None
        assert not result.record.is_cached()

    def test_lint_failure_skips_scoring(self, store, identifier, responses, make_gateway):
        responses[Category.LINT_MESSAGES] = ProducerTransportError("down", "lintmessages")
        result = Aggregator(store, make_gateway(responses), wait_bound=5).aggregate(identifier)

        assert Category.SCORE in result.errors
        assert result.errors[Category.SCORE].missing == ["lintmessages"]

    def test_unexpected_producer_exception(self, store, identifier, responses, make_gateway):
        responses[Category.IMPORTS] = KeyError("boom")
        result = Aggregator(store, make_gateway(responses), wait_bound=5).aggregate(identifier)
        assert result.errors[Category.IMPORTS].kind == "transport-error"

    def test_store_read_failure_reported(self, identifier, gateway, make_broken_store):
        store = make_broken_store(fail_reads=True)
        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert result.errors[Category.IMPORTS].kind == "store-error"
        assert gateway.calls == []
        assert result.state == RefreshState.PARTIAL_FAILURE


class TestWaitBound:
    def test_straggler_times_out(self, store, identifier, responses, make_gateway):
        delays = {c: 0.01 for c in PRIMARY_CATEGORIES if c != Category.TEST_RESULTS}
        gateway = make_gateway(responses, delays=delays, blocked={Category.TEST_RESULTS})
        aggregator = Aggregator(store, gateway, wait_bound=0.2)

        try:
            started = time.monotonic()
            result = aggregator.aggregate(identifier)
            elapsed = time.monotonic() - started
        finally:
            gateway.release.set()

        assert elapsed < 2.0
        assert result.errors[Category.TEST_RESULTS].kind == "timeout"
        assert result.record.code_stats == responses[Category.CODE_STATS]
        assert result.record.imports is not None
        assert result.record.lint_messages is not None
        assert Category.SCORE in result.errors

    def test_producers_run_concurrently(self, store, identifier, responses, make_gateway):
        delays = {c: 0.3 for c in PRIMARY_CATEGORIES}
        gateway = make_gateway(responses, delays=delays)

        started = time.monotonic()
        result = Aggregator(store, gateway, wait_bound=5).aggregate(identifier)

        assert result.complete
        assert time.monotonic() - started < 1.0


class TestValidation:
    def test_rejected_repository(self, store, gateway, identifier):
        provider = FakeProvider(error=ValidationError("not found", reason="not-found"))
        with pytest.raises(ValidationError):
            Aggregator(store, gateway, provider=provider).aggregate(identifier)
        assert gateway.calls == []

    def test_provider_metadata(self, store, gateway, identifier):
        provider = FakeProvider()
        result = Aggregator(store, gateway, provider=provider, wait_bound=5).aggregate(identifier)

        assert provider.validated == [identifier]
        assert result.record.metadata.stars == 42
        stored = store.get(cache_key(identifier, Category.METADATA))
        assert codec.decode(Category.METADATA, stored).description == "cached things"

    def test_producer_rejection_fails_request(self, store, identifier, responses, make_gateway):
        responses[Category.TEST_RESULTS] = ValidationError(
            "no Go code", "testresults", "language-mismatch"
        )
        aggregator = Aggregator(store, make_gateway(responses), wait_bound=5)

        with pytest.raises(ValidationError) as exc_info:
            aggregator.aggregate(identifier)

        assert exc_info.value.category == "testresults"
        assert len(store) == 0
