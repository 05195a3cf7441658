"""Exception hierarchy for repo-rank."""

from .base import RepoRankError
from .cache import CacheError, DeserializationError, StoreError
from .config import ConfigurationError, InvalidConfigError
from .producer import (
    ProducerError,
    ProducerTimeout,
    ProducerTransportError,
    ValidationError,
)
from .rank import MissingDataError, RankError

__all__ = [
    "RepoRankError",
    "ProducerError",
    "ValidationError",
    "ProducerTimeout",
    "ProducerTransportError",
    "CacheError",
    "StoreError",
    "DeserializationError",
    "RankError",
    "MissingDataError",
    "ConfigurationError",
    "InvalidConfigError",
]
