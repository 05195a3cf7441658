"""Data models for repository analysis categories.

Every category is independently cacheable; the Repository record owns one
field per category and the store holds one key per category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from .exceptions import RepoRankError


class Category(str, Enum):
    """Cacheable data categories; the value is the cache key suffix."""

    IMPORTS = "imports"
    CODE_STATS = "codestats"
    TEST_RESULTS = "testresults"
    LINT_MESSAGES = "lintmessages"
    SCORE = "score"
    METADATA = "metadata"
    LAST_UPDATE = "date"
    EXECUTION_TIME = "executiontime"


# Categories computed by the analysis producers.
PRIMARY_CATEGORIES: tuple[Category, ...] = (
    Category.IMPORTS,
    Category.CODE_STATS,
    Category.TEST_RESULTS,
    Category.LINT_MESSAGES,
)

# Fixed order used by Repository.load().
ALL_CATEGORIES: tuple[Category, ...] = (
    Category.IMPORTS,
    Category.CODE_STATS,
    Category.LINT_MESSAGES,
    Category.TEST_RESULTS,
    Category.SCORE,
    Category.METADATA,
    Category.LAST_UPDATE,
    Category.EXECUTION_TIME,
)


@dataclass(frozen=True)
class RepositoryIdentifier:
    """A repository on a hosting provider plus a branch ("" = default branch)."""

    name: str
    branch: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("repository name must not be empty")

    def __str__(self) -> str:
        if self.branch:
            return f"{self.name}@{self.branch}"
        return self.name


# ── Category values ─────────────────────────────────────────────────

Imports = list[str]
CodeStats = dict[str, int]


@dataclass
class ChecklistItem:
    """One named pass/fail assertion of the project checklist."""

    category: str
    desc: str
    name: str


@dataclass
class Checklist:
    passed: list[ChecklistItem] = field(default_factory=list)
    failed: list[ChecklistItem] = field(default_factory=list)


@dataclass
class PackageResult:
    """Test outcome of one package."""

    name: str
    success: bool
    coverage: float = 0.0  # percent, 0-100
    execution_time: float = 0.0  # seconds


@dataclass
class TestResults:
    """Checklist and per-package test report."""

    __test__ = False  # not a pytest class

    checklist: Checklist = field(default_factory=Checklist)
    packages: list[PackageResult] = field(default_factory=list)

    def is_empty(self) -> bool:
        """True for the zero value (nothing was reported)."""
        return not (self.checklist.passed or self.checklist.failed or self.packages)


@dataclass
class LintMessage:
    path: str
    line: int
    col: int = 0
    severity: str = "warning"
    message: str = ""


LintMessages = dict[str, list[LintMessage]]


@dataclass
class Metadata:
    """Repository presentation data from the hosting provider."""

    image: str = ""
    description: str = ""
    stars: int = 0
    last_push: datetime | None = None


@dataclass
class ScoreDetail:
    """Contribution of one category to the composite score."""

    category: str
    score: float
    weight: float


@dataclass
class Score:
    value: float
    rank: str
    details: list[ScoreDetail] = field(default_factory=list)


# ── Tagged results ──────────────────────────────────────────────────

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    category: Category
    value: T


@dataclass(frozen=True)
class Failure:
    category: Category
    error: RepoRankError


CategoryResult = Union[Success[Any], Failure]
