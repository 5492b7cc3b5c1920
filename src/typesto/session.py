"""Session state for a single timed typing attempt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from pydantic import BaseModel, ConfigDict, Field


class Difficulty(str, Enum):
    """Word pool tier."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    ALPHANUMERIC = "alphanumeric"

    @property
    def default_word_count(self) -> int:
        """Number of words a round of this tier uses unless overridden."""
        return DEFAULT_WORD_COUNTS[self]


DEFAULT_WORD_COUNTS: Final[dict[Difficulty, int]] = {
    Difficulty.EASY: 75,
    Difficulty.MEDIUM: 45,
    Difficulty.HARD: 28,
    Difficulty.ALPHANUMERIC: 25,
}


class SessionStatus(str, Enum):
    """Lifecycle state of the current session."""

    IDLE = "idle"
    ACTIVE = "active"
    COMPLETED = "completed"


class SessionStats(BaseModel):
    """Carry-over summary of the previous completed session."""

    model_config = ConfigDict(frozen=True)

    wpm: int = Field(default=0, ge=0)
    accuracy: int = Field(default=100, ge=0, le=100)
    errors: int = Field(default=0, ge=0)

    @property
    def is_blank(self) -> bool:
        """True until a session with any speed or errors has completed."""
        return self.wpm == 0 and self.errors == 0


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    """Immutable copy of a session handed to deferred computations."""

    target_words: tuple[str, ...]
    generation: int
    word_index: int
    char_index: int
    started_at: float | None
    correct_chars: int
    errors: int
    status: SessionStatus

    @property
    def typed_chars(self) -> int:
        """Accepted character keystrokes, correct or not."""
        return self.correct_chars + self.errors

    @property
    def is_exhausted(self) -> bool:
        """True once every target word has been passed."""
        return self.word_index >= len(self.target_words)


@dataclass(slots=True)
class Session:
    """Mutable progress through one target word sequence.

    The controller owns the instance; the keystroke interpreter mutates it in
    place and the metrics engine only ever sees snapshots.
    """

    target_words: tuple[str, ...] = ()
    generation: int = 0
    word_index: int = 0
    char_index: int = 0
    started_at: float | None = None
    correct_chars: int = 0
    errors: int = 0
    status: SessionStatus = SessionStatus.IDLE

    def __post_init__(self) -> None:
        self.target_words = tuple(self.target_words)
        if not 0 <= self.word_index <= len(self.target_words):
            raise ValueError(
                f"word_index {self.word_index} outside [0, {len(self.target_words)}]"
            )
        word = self.current_word
        limit = len(word) if word is not None else 0
        if not 0 <= self.char_index <= limit:
            raise ValueError(f"char_index {self.char_index} outside [0, {limit}]")
        if self.correct_chars < 0 or self.errors < 0:
            raise ValueError("counters must be non-negative")

    @property
    def current_word(self) -> str | None:
        """Word under the cursor, or None once the sequence is exhausted."""
        if self.word_index < len(self.target_words):
            return self.target_words[self.word_index]
        return None

    @property
    def is_exhausted(self) -> bool:
        """True once every target word has been passed."""
        return self.word_index >= len(self.target_words)

    def snapshot(self) -> SessionSnapshot:
        """Return a frozen copy of the current progress."""
        return SessionSnapshot(
            target_words=self.target_words,
            generation=self.generation,
            word_index=self.word_index,
            char_index=self.char_index,
            started_at=self.started_at,
            correct_chars=self.correct_chars,
            errors=self.errors,
            status=self.status,
        )
