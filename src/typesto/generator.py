"""Server side of adaptive word generation."""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable

from pydantic import ValidationError

from .errors import InvalidArgumentError, RemoteError, ResourceExhaustedError, UnavailableError
from .throttle import MinIntervalThrottle
from .words import GenerateWordsRequest, GenerateWordsResponse

logger = logging.getLogger(__name__)

AdaptiveWordModel = Callable[[GenerateWordsRequest], Awaitable[str]]
"""Opaque generator: request in, free-form comma-separated text out."""

_SEPARATORS = re.compile(r"[,\n]")
_NUMBERING = re.compile(r"^\d+[.)]\s*")
_QUOTES = "\"'`"


def parse_word_text(text: str) -> list[str]:
    """
    Parse generator output into a word list.

    Entries are separated by commas or newlines; list numbering ("1.", "2)")
    and surrounding quotes are stripped. Entries that still contain
    whitespace make the whole output unusable.

    Raises:
        UnavailableError: If the text holds no usable words
    """
    words: list[str] = []
    for token in _SEPARATORS.split(text):
        cleaned = _NUMBERING.sub("", token.strip()).strip().strip(_QUOTES).strip()
        if not cleaned:
            continue
        if any(ch.isspace() for ch in cleaned):
            raise UnavailableError(f"generator returned multi-word entry {cleaned!r}")
        words.append(cleaned)
    if not words:
        raise UnavailableError("generator returned no words")
    return words


class WordGenerationService:
    """
    Adaptive word generation endpoint.

    Every call passes through one process-wide throttle; calls arriving
    before its interval has elapsed are rejected with
    ``ResourceExhaustedError`` without reaching the model.
    """

    def __init__(
        self,
        model: AdaptiveWordModel,
        throttle: MinIntervalThrottle,
        *,
        max_word_count: int = 200,
    ) -> None:
        """
        Initialize generation service.

        Args:
            model: Opaque generator called with the validated request
            throttle: Shared minimum-interval throttle
            max_word_count: Largest word count a request may ask for
        """
        self._model = model
        self._throttle = throttle
        self._max_word_count = max_word_count

    async def handle(self, body: str) -> str:
        """Validate a raw JSON request body and serve it."""
        try:
            request = GenerateWordsRequest.model_validate_json(body)
        except ValidationError as e:
            raise InvalidArgumentError(f"invalid request: {e.error_count()} error(s)") from e
        return await self.generate_words(request)

    async def generate_words(self, request: GenerateWordsRequest) -> str:
        """
        Generate words for a validated request.

        Returns:
            JSON body of a ``GenerateWordsResponse``

        Raises:
            InvalidArgumentError: If the word count is too large
            ResourceExhaustedError: If the throttle rejects the call
            UnavailableError: If the model fails or returns unusable text
        """
        if request.word_count > self._max_word_count:
            raise InvalidArgumentError(
                f"wordCount {request.word_count} exceeds {self._max_word_count}"
            )

        decision = self._throttle.check()
        if not decision.allowed:
            logger.info(
                "Word generation rate limited",
                extra={"retry_after": round(decision.retry_after, 3)},
            )
            raise ResourceExhaustedError("rate_limited")

        try:
            text = await self._model(request)
        except RemoteError:
            raise
        except Exception as e:
            logger.error("Adaptive word model failed", exc_info=e)
            raise UnavailableError("generator_failed") from e

        words = parse_word_text(text)
        logger.debug(
            "Generated words",
            extra={"difficulty": request.difficulty.value, "count": len(words)},
        )
        return GenerateWordsResponse(words=words).model_dump_json()
