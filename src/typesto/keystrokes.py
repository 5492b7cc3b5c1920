"""Keystroke interpretation for the active typing session."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

from .session import Session

SPACE: Final[str] = " "
BACKSPACE: Final[str] = "Backspace"
SHIFT: Final[str] = "Shift"


@dataclass(frozen=True, slots=True)
class KeyEvent:
    """A single keydown, named the way browsers name ``KeyboardEvent.key``."""

    key: str
    ctrl: bool = False
    alt: bool = False
    meta: bool = False

    @property
    def is_modifier(self) -> bool:
        """True for chorded shortcuts and a lone shift press."""
        return self.ctrl or self.alt or self.meta or self.key == SHIFT


@dataclass(frozen=True, slots=True)
class KeyOutcome:
    """What a keystroke did to the session."""

    handled: bool = False
    prevent_default: bool = False
    word_completed: bool = False


IGNORED: Final[KeyOutcome] = KeyOutcome()


class KeystrokeInterpreter:
    """Apply keystrokes to a session, one event per call.

    Correct and error counts are only ever incremented: backspace moves the
    cursor without undoing what was recorded, and characters typed past the
    end of a word are dropped rather than counted.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize interpreter.

        Args:
            clock: Wall clock in seconds, used to stamp the first keystroke
        """
        self._clock = clock

    def on_key(self, event: KeyEvent, session: Session) -> KeyOutcome:
        """
        Apply one keystroke to the session in place.

        Args:
            event: Key event from the surrounding UI
            session: Session to mutate

        Returns:
            KeyOutcome describing the effect
        """
        if event.is_modifier:
            return IGNORED

        if session.started_at is None:
            session.started_at = self._clock()

        prevent_default = event.key == SPACE
        word = session.current_word
        if word is None:
            return KeyOutcome(prevent_default=prevent_default)

        if event.key == SPACE:
            return self._space(session, word)
        if event.key == BACKSPACE:
            return self._backspace(session)
        if len(event.key) == 1:
            return self._character(session, word, event.key)
        return IGNORED

    @staticmethod
    def _space(session: Session, word: str) -> KeyOutcome:
        if session.char_index != len(word):
            return KeyOutcome(prevent_default=True)
        session.word_index += 1
        session.char_index = 0
        return KeyOutcome(handled=True, prevent_default=True, word_completed=True)

    @staticmethod
    def _backspace(session: Session) -> KeyOutcome:
        if session.char_index > 0:
            session.char_index -= 1
            return KeyOutcome(handled=True)
        if session.word_index > 0:
            session.word_index -= 1
            session.char_index = len(session.target_words[session.word_index])
            return KeyOutcome(handled=True)
        return IGNORED

    @staticmethod
    def _character(session: Session, word: str, char: str) -> KeyOutcome:
        if session.char_index >= len(word):
            return IGNORED
        if char == word[session.char_index]:
            session.correct_chars += 1
            session.char_index += 1
        else:
            session.errors += 1
        return KeyOutcome(handled=True)
