"""
repo-rank - cached code-quality aggregation and ranking for repositories.

Fans out to analysis producers (imports, code statistics, tests, linters),
caches every data category under a stable key and derives a letter rank
from the cached data.
"""

__version__ = "0.3.0"

from .models import RepositoryIdentifier
from .orchestrator import Aggregation, Aggregator
from .rank import RankEngine
from .record import Repository

__all__ = [
    "Aggregator",
    "Aggregation",
    "RankEngine",
    "Repository",
    "RepositoryIdentifier",
]
