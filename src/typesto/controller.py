"""Session lifecycle: idle, active, completed, and the next round."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from .keystrokes import SPACE, KeyEvent, KeyOutcome, KeystrokeInterpreter
from .leaderboard import ScoreSubmission
from .metrics import BestWpm, FinalMetrics, final_metrics, live_accuracy, live_wpm
from .profile import ProfileProvider
from .session import Difficulty, Session, SessionSnapshot, SessionStats, SessionStatus
from .telemetry import get_telemetry
from .words import WordSupply

logger = logging.getLogger(__name__)

CompletionListener = Callable[[FinalMetrics], None]


class ScoreSink(Protocol):
    """Destination for completed-session scores."""

    async def submit_score(self, submission: ScoreSubmission) -> Any: ...


class SessionController:
    """
    Own the active session and drive it through its lifecycle.

    Runs on a single event loop. Keystrokes are applied synchronously and
    never wait on the network; word fetches, profile lookups and score
    submission are awaited or run as background tasks.

    Races are handled with explicit guards:
    - ``_generating``: at most one word fetch in flight. A refresh or
      auto-restart arriving meanwhile is dropped. A difficulty or word count
      change bumps the generation instead, so the in-flight response is
      discarded as stale and re-requested with the new parameters.
    - ``_completing``: completion fires once per session.
    - generation tags: deferred work checks that its session is still current.

    Usage:
        controller = SessionController(WordSupply(), sink=board, profile=profile)
        await controller.start()
        controller.handle_key(KeyEvent("t"))
    """

    def __init__(
        self,
        supply: WordSupply,
        *,
        sink: ScoreSink | None = None,
        profile: ProfileProvider | None = None,
        difficulty: Difficulty = Difficulty.MEDIUM,
        word_count: int | None = None,
        min_word_count: int = 25,
        max_word_count: int = 70,
        restart_delay: float = 1.0,
        clock: Callable[[], float] = time.time,
        on_complete: CompletionListener | None = None,
    ) -> None:
        """
        Initialize controller.

        Args:
            supply: Word supply for each round
            sink: Score submission target; None disables submission
            profile: Username source for submissions
            difficulty: Initial difficulty
            word_count: Initial word count; defaults to the difficulty's count
            min_word_count: Lower bound for word count changes
            max_word_count: Upper bound for word count changes
            restart_delay: Seconds between completion and the next round
            clock: Wall clock in seconds
            on_complete: Called with the final metrics of each session
        """
        if min_word_count < 1 or min_word_count > max_word_count:
            raise ValueError("word count bounds must satisfy 1 <= min <= max")

        self._supply = supply
        self._sink = sink
        self._profile = profile
        self._difficulty = difficulty
        self._min_word_count = min_word_count
        self._max_word_count = max_word_count
        self._word_count = self._clamp(
            word_count if word_count is not None else difficulty.default_word_count
        )
        self._restart_delay = restart_delay
        self._clock = clock
        self._on_complete = on_complete

        self._interpreter = KeystrokeInterpreter(clock)
        self._session = Session()
        self._generation = 0
        self._generating = False
        self._completing = False
        self._stats = SessionStats()
        self._best = BestWpm()
        self._last_metrics: FinalMetrics | None = None

        self._running = False
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def status(self) -> SessionStatus:
        return self._session.status

    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    @property
    def word_count(self) -> int:
        return self._word_count

    @property
    def stats(self) -> SessionStats:
        """Carry-over stats of the last completed session."""
        return self._stats

    @property
    def best_wpm(self) -> int:
        return self._best.value

    @property
    def last_metrics(self) -> FinalMetrics | None:
        return self._last_metrics

    @property
    def is_generating(self) -> bool:
        return self._generating

    def snapshot(self) -> SessionSnapshot:
        """Return a frozen copy of the current session."""
        return self._session.snapshot()

    def live_wpm(self) -> int:
        return live_wpm(self._session.snapshot(), self._clock())

    def live_accuracy(self) -> int:
        return live_accuracy(self._session.snapshot())

    async def start(self) -> None:
        """Load the first round."""
        self._running = True
        logger.info(
            "Session controller starting",
            extra={"difficulty": self._difficulty.value, "word_count": self._word_count},
        )
        await self._regenerate(reason="start")

    async def stop(self) -> None:
        """Cancel pending background work."""
        self._running = False
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("Session controller stopped")

    async def wait_for_background(self) -> None:
        """Wait until scheduled submissions and restarts have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def handle_key(self, event: KeyEvent) -> KeyOutcome:
        """
        Apply one keystroke to the active session.

        Must be called from the event loop thread. Keys are ignored unless the
        session is active.
        """
        if self._session.status is not SessionStatus.ACTIVE:
            return KeyOutcome(prevent_default=event.key == SPACE and not event.is_modifier)

        outcome = self._interpreter.on_key(event, self._session)
        if outcome.word_completed and self._session.is_exhausted:
            self._complete()
        return outcome

    async def refresh(self) -> bool:
        """Start a new round now; returns False if a fetch is already in flight."""
        return await self._regenerate(reason="refresh")

    async def set_difficulty(self, difficulty: Difficulty) -> bool:
        """Switch difficulty and start a new round; returns False if unchanged."""
        if difficulty == self._difficulty:
            return False
        self._difficulty = difficulty
        return await self._reset_for_parameters(reason="difficulty")

    async def set_word_count(self, word_count: int) -> bool:
        """
        Change the word count (clamped to bounds) and start a new round.

        Returns False when the clamped count equals the current one. A change
        made while a fetch is in flight returns True and applies to the
        re-issued request.
        """
        clamped = self._clamp(word_count)
        if clamped == self._word_count:
            return False
        self._word_count = clamped
        return await self._reset_for_parameters(reason="word_count")

    def _clamp(self, word_count: int) -> int:
        return max(self._min_word_count, min(self._max_word_count, word_count))

    async def _reset_for_parameters(self, *, reason: str) -> bool:
        if self._generating:
            # The in-flight fetch sees the bumped generation and re-requests.
            self._generation += 1
            logger.info(
                "Invalidated in-flight word request",
                extra={"reason": reason, "generation": self._generation},
            )
            return True
        return await self._regenerate(reason=reason)

    async def _regenerate(self, *, reason: str) -> bool:
        if self._generating:
            logger.debug("Word request already in flight, dropping", extra={"reason": reason})
            return False

        self._generating = True
        try:
            while True:
                self._generation += 1
                generation = self._generation
                self._session = Session(generation=generation)
                self._completing = False

                words = await self._supply.request_words(
                    self._difficulty, self._word_count, self._stats
                )
                if generation == self._generation:
                    break
                logger.info(
                    "Discarding stale word list",
                    extra={"requested_for": generation, "current": self._generation},
                )

            self._session = Session(
                target_words=tuple(words),
                generation=generation,
                status=SessionStatus.ACTIVE,
            )
        finally:
            self._generating = False

        logger.info(
            "New round ready",
            extra={
                "reason": reason,
                "generation": generation,
                "difficulty": self._difficulty.value,
                "word_count": len(words),
            },
        )
        return True

    def _complete(self) -> None:
        if self._completing or self._session.status is not SessionStatus.ACTIVE:
            return
        self._completing = True

        completed_at = self._clock()
        snapshot = self._session.snapshot()
        self._session.status = SessionStatus.COMPLETED
        difficulty = self._difficulty

        metrics = final_metrics(snapshot, completed_at)
        self._last_metrics = metrics
        self._stats = metrics.to_stats()
        new_best = self._best.update(metrics.net_wpm)

        get_telemetry().record_session_completed(
            difficulty=difficulty.value, wpm=metrics.net_wpm
        )
        logger.info(
            "Session completed",
            extra={
                "generation": snapshot.generation,
                "wpm": metrics.net_wpm,
                "accuracy": metrics.accuracy,
                "errors": metrics.errors,
                "new_best": new_best,
            },
        )

        self._spawn(self._submit(difficulty, metrics), name="typesto.submit")
        self._spawn(
            self._restart_after_delay(snapshot.generation), name="typesto.restart"
        )

        if self._on_complete is not None:
            try:
                self._on_complete(metrics)
            except Exception as e:
                logger.error("Completion listener failed", exc_info=e)

    async def _submit(self, difficulty: Difficulty, metrics: FinalMetrics) -> None:
        if self._sink is None or self._profile is None:
            return

        telemetry = get_telemetry()
        try:
            username = await self._profile.fetch_username()
            await self._sink.submit_score(
                ScoreSubmission(difficulty=difficulty, username=username, wpm=metrics.net_wpm)
            )
        except Exception as e:
            telemetry.record_score_submit(result="failed")
            logger.error(
                "Score submission failed",
                exc_info=e,
                extra={"difficulty": difficulty.value, "wpm": metrics.net_wpm},
            )
            return
        telemetry.record_score_submit(result="ok")

    async def _restart_after_delay(self, generation: int) -> None:
        await asyncio.sleep(self._restart_delay)
        if not self._running or generation != self._generation:
            logger.debug("Skipping auto-restart for superseded session")
            return
        await self._regenerate(reason="auto_restart")

    def _spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task failed", exc_info=exc, extra={"task": task.get_name()}
            )
