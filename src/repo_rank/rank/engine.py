"""Composite score and letter rank from the four primary categories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..exceptions import MissingDataError
from ..models import (
    Category,
    CodeStats,
    Imports,
    LintMessages,
    Score,
    ScoreDetail,
    TestResults,
)

# Lower bounds of each letter, best first.
RANK_TABLE: tuple[tuple[float, str], ...] = (
    (95.0, "A+"),
    (90.0, "A"),
    (85.0, "A-"),
    (80.0, "B+"),
    (75.0, "B"),
    (70.0, "B-"),
    (65.0, "C+"),
    (60.0, "C"),
    (55.0, "C-"),
    (50.0, "D"),
    (40.0, "E"),
)
LOWEST_RANK = "F"


@dataclass(frozen=True)
class Target:
    """Linear target: ``good`` scores 100, ``bad`` scores 0."""

    good: float
    bad: float

    def score(self, value: float) -> float:
        if self.good < self.bad:
            return float(np.interp(value, [self.good, self.bad], [100.0, 0.0]))
        return float(np.interp(value, [self.bad, self.good], [0.0, 100.0]))


@dataclass(frozen=True)
class RankPolicy:
    """Weights and targets of the scoring table.

    Weights must sum to 1.0; the lint weight is redistributed over the
    other categories when lint data is absent.
    """

    code_stats_weight: float = 0.20
    imports_weight: float = 0.15
    test_results_weight: float = 0.35
    lint_messages_weight: float = 0.30

    comment_density: Target = Target(good=0.15, bad=0.0)
    test_ratio: Target = Target(good=0.5, bad=0.0)
    third_party_count: Target = Target(good=3, bad=30)
    lint_per_kloc: Target = Target(good=0, bad=50)

    def __post_init__(self) -> None:
        total = (
            self.code_stats_weight
            + self.imports_weight
            + self.test_results_weight
            + self.lint_messages_weight
        )
        if not 0.99 <= total <= 1.01:
            raise ValueError(f"Rank weights must sum to 1.0, got {total:.3f}")


def letter_for(value: float) -> str:
    for lower_bound, letter in RANK_TABLE:
        if value >= lower_bound:
            return letter
    return LOWEST_RANK


class RankEngine:
    """Deterministic scoring: same inputs, same ``Score``."""

    def __init__(self, policy: Optional[RankPolicy] = None):
        self.policy = policy or RankPolicy()

    def compute(
        self,
        code_stats: Optional[CodeStats],
        imports: Optional[Imports],
        test_results: Optional[TestResults],
        lint_messages: Optional[LintMessages] = None,
    ) -> Score:
        """Compute the composite score.

        Raises:
            MissingDataError: If code stats, imports or test results are absent
        """
        missing = []
        if code_stats is None:
            missing.append(Category.CODE_STATS.value)
        if imports is None:
            missing.append(Category.IMPORTS.value)
        if test_results is None or test_results.is_empty():
            missing.append(Category.TEST_RESULTS.value)
        if missing:
            raise MissingDataError(missing)

        p = self.policy
        parts = [
            (Category.CODE_STATS, self._code_stats_score(code_stats), p.code_stats_weight),
            (Category.IMPORTS, p.third_party_count.score(len(imports)), p.imports_weight),
            (Category.TEST_RESULTS, self._test_score(test_results), p.test_results_weight),
        ]
        if lint_messages is not None:
            parts.append(
                (
                    Category.LINT_MESSAGES,
                    self._lint_score(lint_messages, code_stats),
                    p.lint_messages_weight,
                )
            )

        scores = np.array([s for _, s, _ in parts])
        weights = np.array([w for _, _, w in parts])
        value = round(float(np.average(scores, weights=weights)), 2)

        details = [
            ScoreDetail(category=c.value, score=round(s, 2), weight=w) for c, s, w in parts
        ]
        return Score(value=value, rank=letter_for(value), details=details)

    def _code_stats_score(self, stats: CodeStats) -> float:
        loc = stats.get("LOC", 0)
        ncloc = stats.get("NCLOC", max(loc - stats.get("CLOC", 0), 0))
        if loc <= 0:
            return 0.0
        comments = self.policy.comment_density.score(stats.get("CLOC", 0) / loc)
        tests = self.policy.test_ratio.score(stats.get("Test", 0) / ncloc if ncloc else 0.0)
        return float(np.mean([comments, tests]))

    def _test_score(self, results: TestResults) -> float:
        packages = results.packages
        if packages:
            success = float(np.mean([1.0 if pkg.success else 0.0 for pkg in packages])) * 100
            coverage = float(np.mean([np.clip(pkg.coverage, 0.0, 100.0) for pkg in packages]))
        else:
            success = coverage = 0.0

        checked = len(results.checklist.passed) + len(results.checklist.failed)
        checklist = 100.0 * len(results.checklist.passed) / checked if checked else 0.0

        return 0.4 * success + 0.4 * coverage + 0.2 * checklist

    def _lint_score(self, messages: LintMessages, stats: CodeStats) -> float:
        count = sum(len(found) for found in messages.values())
        ncloc = stats.get("NCLOC", stats.get("LOC", 0))
        if ncloc <= 0:
            return 100.0 if count == 0 else 0.0
        return self.policy.lint_per_kloc.score(count * 1000.0 / ncloc)
