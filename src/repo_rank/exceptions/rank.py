"""Rank computation exceptions."""

from typing import Iterable

from .base import RepoRankError


class RankError(RepoRankError):
    """Base class for rank-related errors."""

    kind = "rank-error"


class MissingDataError(RankError):
    """Raised when the rank is requested without its required categories."""

    kind = "missing-data"

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(
            "Not enough data to calculate the rank",
            details={"missing": ", ".join(self.missing)},
        )
