"""Rank computed from producer outputs held in a remote Redis hash.

Each repository is one hash; fields ``loc``, ``imports`` and ``test`` hold
gzip-compressed JSend documents written by the producers, and ``rank``
holds the last computed letter for badges.
"""

from __future__ import annotations

import logging

import redis

from .. import codec
from ..exceptions import MissingDataError, StoreError
from ..models import Category, Score
from .engine import RankEngine

logger = logging.getLogger(__name__)

FIELD_RANK = "rank"

# Hash field -> category it holds
REQUIRED_FIELDS = {
    "loc": Category.CODE_STATS,
    "imports": Category.IMPORTS,
    "test": Category.TEST_RESULTS,
}


class RemoteScoreCache:
    """Score and rank for one repository stored in Redis."""

    def __init__(self, client: redis.Redis, repository: str, engine: RankEngine | None = None):
        self._redis = client
        self.repository = repository
        self.engine = engine or RankEngine()

    def get_score(self) -> Score:
        """Compute the score from the cached inputs and save the rank.

        Raises:
            MissingDataError: If a required field is absent
            DeserializationError: If a field does not decompress or decode
            StoreError: If Redis cannot be reached
        """
        inputs = self._load_inputs()
        score = self.engine.compute(
            code_stats=inputs[Category.CODE_STATS],
            imports=inputs[Category.IMPORTS],
            test_results=inputs[Category.TEST_RESULTS],
        )
        self.save_rank(score.rank)
        return score

    def get_rank(self) -> str:
        """Last saved rank letter, without recomputing anything."""
        raw = self._hget(FIELD_RANK)
        if raw is None:
            raise MissingDataError([FIELD_RANK])
        return codec.gzip_decode(raw).decode("utf-8")

    def save_rank(self, rank: str) -> None:
        # No TTL: the rank is served to badges until the next computation.
        try:
            self._redis.hset(self.repository, FIELD_RANK, codec.gzip_encode(rank.encode("utf-8")))
        except redis.RedisError as e:
            raise StoreError("hset", self.repository.encode(), str(e))
        logger.debug("Saved rank %s for %s", rank, self.repository)

    def _load_inputs(self) -> dict:
        raw = {name: self._hget(name) for name in REQUIRED_FIELDS}
        missing = [name for name, value in raw.items() if value is None]
        if missing:
            raise MissingDataError(missing)
        return {
            category: codec.decode_remote(category, raw[name])
            for name, category in REQUIRED_FIELDS.items()
        }

    def _hget(self, field: str) -> bytes | None:
        try:
            return self._redis.hget(self.repository, field)
        except redis.RedisError as e:
            raise StoreError("hget", self.repository.encode(), str(e))


def connect(url: str) -> redis.Redis:
    """Redis client for the remote score cache (raw bytes responses)."""
    return redis.Redis.from_url(url, decode_responses=False)
