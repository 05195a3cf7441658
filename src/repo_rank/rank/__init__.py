"""Scoring and ranking."""

from .engine import RANK_TABLE, RankEngine, RankPolicy, Target, letter_for
from .remote import RemoteScoreCache

__all__ = [
    "RANK_TABLE",
    "RankEngine",
    "RankPolicy",
    "RemoteScoreCache",
    "Target",
    "letter_for",
]
