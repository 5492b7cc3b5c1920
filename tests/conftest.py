"""Shared pytest fixtures and fakes for all tests."""

from __future__ import annotations

import random
from typing import Any

import pytest

from typesto.keystrokes import KeyEvent
from typesto.words import GenerateWordsRequest


class FakeClock:
    """Manually stepped clock, in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakePipeline:
    """Buffers commands and replays them against FakeRedis on execute."""

    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def zadd(self, *args: Any, **kwargs: Any) -> "FakePipeline":
        self._ops.append(("zadd", args, kwargs))
        return self

    def zremrangebyrank(self, *args: Any, **kwargs: Any) -> "FakePipeline":
        self._ops.append(("zremrangebyrank", args, kwargs))
        return self

    def zrevrange(self, *args: Any, **kwargs: Any) -> "FakePipeline":
        self._ops.append(("zrevrange", args, kwargs))
        return self

    async def execute(self) -> list[Any]:
        results = []
        for name, args, kwargs in self._ops:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._ops.clear()
        return results


class FakeRedis:
    """In-process stand-in for the sorted-set commands the leaderboard uses."""

    def __init__(self) -> None:
        self.zsets: dict[str, dict[str, float]] = {}
        self.closed = False

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    def _ascending(self, key: str) -> list[tuple[str, float]]:
        members = self.zsets.get(key, {})
        return sorted(members.items(), key=lambda item: (item[1], item[0]))

    @staticmethod
    def _bounds(start: int, stop: int, size: int) -> tuple[int, int]:
        if start < 0:
            start = max(size + start, 0)
        if stop < 0:
            stop = size + stop
        return start, min(stop, size - 1)

    async def zadd(self, key: str, mapping: dict[str, float], gt: bool = False) -> int:
        zset = self.zsets.setdefault(key, {})
        added = 0
        for member, score in mapping.items():
            if member in zset:
                if gt and score <= zset[member]:
                    continue
            else:
                added += 1
            zset[member] = float(score)
        return added

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        ordered = self._ascending(key)
        start, stop = self._bounds(start, stop, len(ordered))
        removed = ordered[start : stop + 1] if start <= stop else []
        for member, _ in removed:
            del self.zsets[key][member]
        return len(removed)

    async def zrevrange(
        self, key: str, start: int, end: int, withscores: bool = False
    ) -> list[Any]:
        ordered = list(reversed(self._ascending(key)))
        start, end = self._bounds(start, end, len(ordered))
        rows = ordered[start : end + 1] if start <= end else []
        if withscores:
            return rows
        return [member for member, _ in rows]

    async def aclose(self) -> None:
        self.closed = True


class ScriptedModel:
    """Adaptive word model that replays canned outputs or errors."""

    def __init__(self, *outputs: str | BaseException) -> None:
        self._outputs = list(outputs)
        self.requests: list[GenerateWordsRequest] = []

    async def __call__(self, request: GenerateWordsRequest) -> str:
        self.requests.append(request)
        output = self._outputs.pop(0) if len(self._outputs) > 1 else self._outputs[0]
        if isinstance(output, BaseException):
            raise output
        return output


class RecordingClient:
    """Word generation client returning a fixed JSON body or raising."""

    def __init__(self, body: str | BaseException) -> None:
        self._body = body
        self.requests: list[GenerateWordsRequest] = []

    async def generate_words(self, request: GenerateWordsRequest) -> str:
        self.requests.append(request)
        if isinstance(self._body, BaseException):
            raise self._body
        return self._body


def type_word(controller_or_interpreter: Any, word: str, *, session: Any = None) -> None:
    """Type ``word`` followed by a space."""
    for key in [*word, " "]:
        if session is None:
            controller_or_interpreter.handle_key(KeyEvent(key))
        else:
            controller_or_interpreter.on_key(KeyEvent(key), session)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
