"""Word supply: static per-difficulty pools and the adaptive remote generator."""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from typing import Final, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import RemoteError
from .session import Difficulty, SessionStats
from .telemetry import get_telemetry

logger = logging.getLogger(__name__)

EASY_WORDS: Final[tuple[str, ...]] = (
    "the", "and", "for", "you", "not", "are", "but", "all", "any", "can",
    "had", "her", "was", "one", "our", "out", "day", "get", "has", "him",
    "his", "how", "man", "new", "now", "old", "see", "two", "way", "who",
    "boy", "did", "its", "let", "put", "say", "she", "too", "use", "sun",
    "cat", "dog", "run", "red", "big", "top", "sit", "hot", "cup", "map",
    "pen", "box", "car", "bed", "sky", "egg", "hat", "fun", "yes", "ask",
)

MEDIUM_WORDS: Final[tuple[str, ...]] = (
    "about", "after", "again", "house", "water", "world", "place", "small",
    "great", "where", "think", "every", "light", "learn", "plant", "story",
    "young", "study", "river", "paper", "music", "money", "table", "night",
    "chair", "garden", "family", "number", "follow", "change", "answer",
    "mother", "father", "school", "animal", "letter", "people", "travel",
    "window", "market", "simple", "bridge", "friend", "summer", "winter",
    "planet", "circle", "forest", "little", "moment", "common", "system",
)

HARD_WORDS: Final[tuple[str, ...]] = (
    "accommodate", "acknowledge", "bureaucracy", "catastrophe", "conscientious",
    "consequence", "dilemma", "entrepreneur", "exaggerate", "extraordinary",
    "fluorescent", "government", "harassment", "hierarchy", "hypothesis",
    "independent", "infrastructure", "jurisdiction", "kaleidoscope",
    "maintenance", "millennium", "miscellaneous", "necessary", "occurrence",
    "parliament", "perseverance", "phenomenon", "questionnaire", "rhythm",
    "sophisticated", "surveillance", "threshold", "unanimous", "vacuum",
    "whimsical", "xylophone", "zealous", "quarantine", "psychology",
)

ALPHANUMERIC_WORDS: Final[tuple[str, ...]] = (
    "a1b2", "x9y8", "r2d2", "c3po", "mp3", "4k60", "b12", "h2o", "co2",
    "route66", "area51", "k9", "emc2", "v20", "ipv6", "utf8", "404",
    "pa55", "z3ro", "l33t", "t1m3", "90s", "24h", "3d", "b4", "m8",
    "f1", "g5", "7up", "w3c", "q4", "x86", "arm64", "s3", "ec2", "p2p",
)

STATIC_POOLS: Final[Mapping[Difficulty, tuple[str, ...]]] = {
    Difficulty.EASY: EASY_WORDS,
    Difficulty.MEDIUM: MEDIUM_WORDS,
    Difficulty.HARD: HARD_WORDS,
    Difficulty.ALPHANUMERIC: ALPHANUMERIC_WORDS,
}


class GenerateWordsRequest(BaseModel):
    """Body of a remote word generation call."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    difficulty: Difficulty
    accuracy: float = Field(ge=0, le=100)
    wpm: float = Field(ge=0)
    errors: int = Field(ge=0)
    word_count: int = Field(alias="wordCount", ge=1)

    @classmethod
    def from_stats(
        cls, difficulty: Difficulty, word_count: int, stats: SessionStats
    ) -> "GenerateWordsRequest":
        return cls(
            difficulty=difficulty,
            accuracy=stats.accuracy,
            wpm=stats.wpm,
            errors=stats.errors,
            word_count=word_count,
        )


class GenerateWordsResponse(BaseModel):
    """Validated body of a successful word generation call."""

    words: list[str] = Field(min_length=1)

    @field_validator("words")
    @classmethod
    def _words_are_single_tokens(cls, words: list[str]) -> list[str]:
        for word in words:
            if not word or any(ch.isspace() for ch in word):
                raise ValueError(f"invalid word {word!r}")
        return words


class WordGenerationClient(Protocol):
    """Transport to the adaptive generator; returns the raw JSON body."""

    async def generate_words(self, request: GenerateWordsRequest) -> str: ...


class WordSupply:
    """
    Produce the target word sequence for a session.

    The first session of a process (blank carry-over stats) always uses the
    static pool. Later sessions ask the remote generator, and any failure
    there, including rate limiting and malformed output, falls back to the
    static pool without raising.
    """

    def __init__(
        self,
        client: WordGenerationClient | None = None,
        *,
        pools: Mapping[Difficulty, Sequence[str]] = STATIC_POOLS,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize word supply.

        Args:
            client: Remote generator transport; None disables adaptive words
            pools: Static word pool per difficulty
            rng: Random source for static draws
        """
        missing = [d.value for d in Difficulty if not pools.get(d)]
        if missing:
            raise ValueError(f"empty word pool for: {', '.join(missing)}")
        self._client = client
        self._pools = pools
        self._rng = rng or random.Random()

    def pool(self, difficulty: Difficulty) -> Sequence[str]:
        return self._pools[difficulty]

    def draw_static(self, difficulty: Difficulty, word_count: int) -> list[str]:
        """Draw ``word_count`` words uniformly, with replacement."""
        if word_count < 1:
            raise ValueError("word_count must be at least 1")
        pool = self._pools[difficulty]
        return [self._rng.choice(pool) for _ in range(word_count)]

    async def request_words(
        self,
        difficulty: Difficulty,
        word_count: int,
        prior_stats: SessionStats | None = None,
    ) -> list[str]:
        """
        Return exactly ``word_count`` target words.

        Args:
            difficulty: Pool tier
            word_count: Number of words in the session
            prior_stats: Carry-over stats of the previous session

        Returns:
            List of words
        """
        if word_count < 1:
            raise ValueError("word_count must be at least 1")

        telemetry = get_telemetry()
        if self._client is None or prior_stats is None or prior_stats.is_blank:
            telemetry.record_word_fetch(source="static")
            return self.draw_static(difficulty, word_count)

        request = GenerateWordsRequest.from_stats(difficulty, word_count, prior_stats)
        with telemetry.start_span(
            "typesto.words.generate",
            attributes={"typesto.difficulty": difficulty.value, "typesto.word_count": word_count},
        ) as span:
            try:
                body = await self._client.generate_words(request)
                response = GenerateWordsResponse.model_validate_json(body)
            except RemoteError as e:
                span.set_attribute("typesto.fallback", e.code)
                logger.warning(
                    "Word generation rejected, using static pool",
                    extra={"status": e.code, "reason": e.message},
                )
            except ValidationError as e:
                span.set_attribute("typesto.fallback", "MALFORMED")
                logger.warning(
                    "Malformed word generation response, using static pool",
                    extra={"error_count": e.error_count()},
                )
            except Exception as e:
                span.record_exception(e)
                logger.error("Word generation failed, using static pool", exc_info=e)
            else:
                telemetry.record_word_fetch(source="remote")
                return self._fit(response.words, difficulty, word_count)

        telemetry.record_word_fetch(source="fallback")
        return self.draw_static(difficulty, word_count)

    def _fit(self, words: list[str], difficulty: Difficulty, word_count: int) -> list[str]:
        """Truncate, or pad from the static pool, to exactly ``word_count``."""
        if len(words) >= word_count:
            return words[:word_count]
        logger.debug(
            "Padding short generated word list",
            extra={"received": len(words), "wanted": word_count},
        )
        return words + self.draw_static(difficulty, word_count - len(words))
