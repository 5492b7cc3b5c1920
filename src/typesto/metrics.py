"""WPM and accuracy computation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Final

from .session import SessionSnapshot, SessionStats

CHARS_PER_WORD: Final[int] = 5


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def elapsed_minutes(started_at: float | None, now: float) -> float:
    """Minutes between the first keystroke and ``now``; 0 if never started."""
    if started_at is None:
        return 0.0
    return (now - started_at) / 60.0


def net_wpm(correct_chars: int, minutes: float) -> int:
    """Net WPM: correct characters only, floored at 0."""
    if minutes <= 0:
        return 0
    return max(0, round_half_up(correct_chars / CHARS_PER_WORD / minutes))


def gross_wpm(typed_chars: int, minutes: float) -> int:
    """Gross WPM over every accepted character."""
    if minutes <= 0:
        return 0
    return max(0, round_half_up(typed_chars / CHARS_PER_WORD / minutes))


def accuracy(correct_chars: int, errors: int) -> int:
    """Percentage of accepted characters that matched; 100 when none typed."""
    typed = correct_chars + errors
    if typed == 0:
        return 100
    return round_half_up(correct_chars / typed * 100)


def live_wpm(snapshot: SessionSnapshot, now: float) -> int:
    """Net WPM for display while a session is in progress."""
    return net_wpm(snapshot.correct_chars, elapsed_minutes(snapshot.started_at, now))


def live_accuracy(snapshot: SessionSnapshot) -> int:
    """Accuracy for display while a session is in progress."""
    return accuracy(snapshot.correct_chars, snapshot.errors)


@dataclass(frozen=True, slots=True)
class FinalMetrics:
    """Figures computed once when a session completes."""

    net_wpm: int
    accuracy: int
    errors: int
    correct_chars: int
    gross_wpm: int
    elapsed_seconds: float
    generation: int

    def to_stats(self) -> SessionStats:
        """Carry-over stats fed to the next word request."""
        return SessionStats(wpm=self.net_wpm, accuracy=self.accuracy, errors=self.errors)


def final_metrics(snapshot: SessionSnapshot, completed_at: float) -> FinalMetrics:
    """
    Compute the authoritative metrics for a completed session.

    Args:
        snapshot: Session state at the completion instant
        completed_at: Completion timestamp in seconds

    Returns:
        FinalMetrics for reporting and carry-over
    """
    minutes = elapsed_minutes(snapshot.started_at, completed_at)
    return FinalMetrics(
        net_wpm=net_wpm(snapshot.correct_chars, minutes),
        accuracy=accuracy(snapshot.correct_chars, snapshot.errors),
        errors=snapshot.errors,
        correct_chars=snapshot.correct_chars,
        gross_wpm=gross_wpm(snapshot.typed_chars, minutes),
        elapsed_seconds=max(0.0, minutes * 60.0),
        generation=snapshot.generation,
    )


class BestWpm:
    """High-water mark of net WPM for the running process."""

    def __init__(self, initial: int = 0) -> None:
        self._best = initial

    @property
    def value(self) -> int:
        return self._best

    def update(self, wpm: int) -> bool:
        """Record ``wpm``; return True when it set a new best."""
        if wpm > self._best:
            self._best = wpm
            return True
        return False
