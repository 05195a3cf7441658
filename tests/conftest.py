"""Shared test fixtures for repo-rank."""

import threading
import time

import pytest

from repo_rank.exceptions import StoreError
from repo_rank.models import (
    Category,
    Checklist,
    ChecklistItem,
    LintMessage,
    PackageResult,
    RepositoryIdentifier,
    TestResults,
)
from repo_rank.producers.gateway import ProducerGateway
from repo_rank.storage import MemoryStore


class StubGateway(ProducerGateway):
    """Producer gateway answering from a table.

    ``responses`` maps a category to a value or to an exception instance to
    raise; ``delays`` adds a sleep per category; categories in ``blocked``
    wait on ``release`` before answering.
    """

    def __init__(self, responses, delays=None, blocked=()):
        self.responses = dict(responses)
        self.delays = dict(delays or {})
        self.blocked = set(blocked)
        self.release = threading.Event()
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, identifier, category, params=None):
        with self._lock:
            self.calls.append((identifier, category, params))
        if category in self.blocked:
            self.release.wait(timeout=5)
        if category in self.delays:
            time.sleep(self.delays[category])
        response = self.responses[category]
        if isinstance(response, Exception):
            raise response
        return response

    def calls_for(self, category):
        return [c for c in self.calls if c[1] == category]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def identifier():
    return RepositoryIdentifier("github.com/org/project", "master")


@pytest.fixture
def raw_imports():
    return [
        "github.com/pkg/errors",
        "github.com/sirupsen/logrus/hooks/syslog",
        "github.com/sirupsen/logrus",
        "golang.org/x/net/context",
        "gopkg.in/yaml.v2",
    ]


@pytest.fixture
def code_stats():
    return {"LOC": 12000, "NCLOC": 9500, "CLOC": 1500, "Test": 4000}


@pytest.fixture
def test_results():
    return TestResults(
        checklist=Checklist(
            passed=[
                ChecklistItem(category="minimumCriteria", desc="Has a README", name="hasReadme"),
                ChecklistItem(category="minimumCriteria", desc="Is formatted", name="isFormatted"),
            ],
            failed=[
                ChecklistItem(category="goodCitizen", desc="Has a license", name="hasLicense"),
            ],
        ),
        packages=[
            PackageResult(name="github.com/org/project", success=True, coverage=82.5, execution_time=1.2),
            PackageResult(name="github.com/org/project/cmd", success=True, coverage=40.0, execution_time=0.4),
        ],
    )


@pytest.fixture
def lint_messages():
    return {
        "golint": [
            LintMessage(path="main.go", line=10, col=1, message="exported function Run should have comment"),
        ],
        "vet": [
            LintMessage(path="server.go", line=42, col=3, severity="error", message="unreachable code"),
        ],
        "unknownlinter": [
            LintMessage(path="main.go", line=1, message="not on the allow-list"),
        ],
    }


@pytest.fixture
def responses(raw_imports, code_stats, test_results, lint_messages):
    return {
        Category.IMPORTS: raw_imports,
        Category.CODE_STATS: code_stats,
        Category.TEST_RESULTS: test_results,
        Category.LINT_MESSAGES: lint_messages,
    }


@pytest.fixture
def gateway(responses):
    return StubGateway(responses)


class BrokenStore(MemoryStore):
    """Memory store whose reads and/or writes fail."""

    def __init__(self, fail_reads=False, fail_writes=False):
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get(self, key):
        if self.fail_reads:
            raise StoreError("get", key, "disk on fire")
        return super().get(key)

    def put(self, key, value):
        if self.fail_writes:
            raise StoreError("put", key, "read-only filesystem")
        super().put(key, value)


@pytest.fixture
def make_gateway():
    return StubGateway


@pytest.fixture
def make_broken_store():
    return BrokenStore
