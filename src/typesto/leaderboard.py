"""Difficulty-tiered leaderboard: score submission, top-N merge, and stores."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Final, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from redis.asyncio import Redis

from .errors import InvalidArgumentError
from .session import Difficulty
from .telemetry import get_telemetry

logger = logging.getLogger(__name__)

DEFAULT_BOARD_SIZE: Final[int] = 5


class LeaderboardEntry(BaseModel):
    """One row of a difficulty bucket."""

    model_config = ConfigDict(frozen=True)

    username: str
    wpm: float


class ScoreSubmission(BaseModel):
    """Score posted after a completed session; every field is required."""

    model_config = ConfigDict(frozen=True)

    difficulty: Difficulty
    username: str = Field(min_length=1)
    wpm: float = Field(ge=0)


def merge_score(
    bucket: Sequence[LeaderboardEntry],
    username: str,
    wpm: float,
    *,
    size: int = DEFAULT_BOARD_SIZE,
) -> list[LeaderboardEntry]:
    """
    Merge a score into a bucket.

    An existing entry for ``username`` keeps the higher of its WPM and the new
    one; otherwise the score is inserted. The result is sorted by WPM,
    highest first, and truncated to ``size`` entries. Equal WPMs are ordered
    by username, descending, the same order Redis gives sorted-set ties.
    """
    entries = list(bucket)
    for i, entry in enumerate(entries):
        if entry.username == username:
            if wpm > entry.wpm:
                entries[i] = LeaderboardEntry(username=username, wpm=wpm)
            break
    else:
        entries.append(LeaderboardEntry(username=username, wpm=wpm))

    entries.sort(key=lambda e: (e.wpm, e.username), reverse=True)
    return entries[:size]


class LeaderboardStore(Protocol):
    """Persistence for difficulty buckets."""

    async def record(
        self, difficulty: Difficulty, username: str, wpm: float
    ) -> list[LeaderboardEntry]: ...

    async def bucket(self, difficulty: Difficulty) -> list[LeaderboardEntry]: ...


class MemoryLeaderboardStore:
    """In-process store, serialized by a lock."""

    def __init__(self, *, size: int = DEFAULT_BOARD_SIZE) -> None:
        self._size = size
        self._buckets: dict[Difficulty, list[LeaderboardEntry]] = {d: [] for d in Difficulty}
        self._lock = asyncio.Lock()

    async def record(
        self, difficulty: Difficulty, username: str, wpm: float
    ) -> list[LeaderboardEntry]:
        async with self._lock:
            merged = merge_score(self._buckets[difficulty], username, wpm, size=self._size)
            self._buckets[difficulty] = merged
            return list(merged)

    async def bucket(self, difficulty: Difficulty) -> list[LeaderboardEntry]:
        async with self._lock:
            return list(self._buckets[difficulty])


class RedisLeaderboardStore:
    """
    Redis-backed store.

    Redis Data Model:
        {prefix}{difficulty} → sorted set, member = username, score = WPM

    ``ZADD GT`` keeps the higher of an existing and a new score and inserts
    unknown members; the bucket is then trimmed to the top ``size`` entries
    inside the same transaction.
    """

    def __init__(
        self,
        redis: Redis,
        *,
        size: int = DEFAULT_BOARD_SIZE,
        key_prefix: str = "leaderboard:",
    ) -> None:
        """
        Initialize Redis store.

        Args:
            redis: Redis client created with ``decode_responses=True``
            size: Entries kept per difficulty
            key_prefix: Prefix for bucket keys
        """
        self._redis = redis
        self._size = size
        self._key_prefix = key_prefix

    def key(self, difficulty: Difficulty) -> str:
        return f"{self._key_prefix}{difficulty.value}"

    async def record(
        self, difficulty: Difficulty, username: str, wpm: float
    ) -> list[LeaderboardEntry]:
        key = self.key(difficulty)
        pipe = self._redis.pipeline()
        pipe.zadd(key, {username: wpm}, gt=True)
        pipe.zremrangebyrank(key, 0, -(self._size + 1))
        pipe.zrevrange(key, 0, self._size - 1, withscores=True)
        results = await pipe.execute()
        return self._entries(results[-1])

    async def bucket(self, difficulty: Difficulty) -> list[LeaderboardEntry]:
        rows = await self._redis.zrevrange(
            self.key(difficulty), 0, self._size - 1, withscores=True
        )
        return self._entries(rows)

    @staticmethod
    def _entries(rows: Iterable[tuple[str, float]]) -> list[LeaderboardEntry]:
        return [LeaderboardEntry(username=member, wpm=float(score)) for member, score in rows]


class LeaderboardService:
    """Validate submissions and serve the board."""

    def __init__(self, store: LeaderboardStore) -> None:
        self._store = store

    async def submit_raw(self, payload: Mapping[str, Any]) -> list[LeaderboardEntry]:
        """
        Validate an untyped submission body and merge it.

        Raises:
            InvalidArgumentError: If difficulty, username or wpm is missing or invalid
        """
        try:
            submission = ScoreSubmission.model_validate(payload)
        except ValidationError as e:
            missing = sorted(
                str(err["loc"][0]) for err in e.errors() if err["type"] == "missing"
            )
            if missing:
                raise InvalidArgumentError(f"missing fields: {', '.join(missing)}") from e
            raise InvalidArgumentError("invalid score submission") from e
        return await self.submit_score(submission)

    async def submit_score(self, submission: ScoreSubmission) -> list[LeaderboardEntry]:
        """Merge a validated submission; return the updated bucket."""
        telemetry = get_telemetry()
        with telemetry.start_span(
            "typesto.leaderboard.submit",
            attributes={"typesto.difficulty": submission.difficulty.value},
        ):
            bucket = await self._store.record(
                submission.difficulty, submission.username, submission.wpm
            )
        logger.info(
            "Score recorded",
            extra={
                "difficulty": submission.difficulty.value,
                "username": submission.username,
                "wpm": submission.wpm,
            },
        )
        return bucket

    async def fetch(self) -> dict[str, list[LeaderboardEntry]]:
        """Return every difficulty's bucket, highest WPM first."""
        return {d.value: await self._store.bucket(d) for d in Difficulty}
