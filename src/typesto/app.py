"""Application wiring."""

from __future__ import annotations

import logging
import random
from typing import Optional

from redis.asyncio import Redis

from .config import TypestoSettings
from .controller import CompletionListener, SessionController
from .generator import AdaptiveWordModel, WordGenerationService
from .leaderboard import (
    LeaderboardService,
    LeaderboardStore,
    MemoryLeaderboardStore,
    RedisLeaderboardStore,
)
from .logger import configure_logging
from .profile import ProfileProvider
from .telemetry import TelemetryRuntime, configure_telemetry
from .throttle import MinIntervalThrottle
from .words import WordSupply

logger = logging.getLogger(__name__)


class TypestoApp:
    """
    Build and run the typing engine and its services.

    Usage:
        app = TypestoApp(settings, model=my_model, profile=StaticProfile("ada"))
        await app.start()
        app.controller.handle_key(KeyEvent("a"))
        await app.stop()
    """

    def __init__(
        self,
        settings: TypestoSettings | None = None,
        *,
        model: AdaptiveWordModel | None = None,
        profile: ProfileProvider | None = None,
        on_complete: CompletionListener | None = None,
        rng: random.Random | None = None,
        configure_logs: bool = False,
    ) -> None:
        """
        Initialize app.

        Args:
            settings: Configuration; defaults are loaded from the environment
            model: Adaptive word model; None keeps every round on static pools
            profile: Username source for score submissions
            on_complete: Listener for completed sessions
            rng: Random source for static word draws
            configure_logs: Configure root logging from settings on start
        """
        self.settings = settings or TypestoSettings()
        self._model = model
        self._profile = profile
        self._on_complete = on_complete
        self._rng = rng
        self._configure_logs = configure_logs

        self._redis: Optional[Redis] = None
        self._telemetry: Optional[TelemetryRuntime] = None
        self.throttle: Optional[MinIntervalThrottle] = None
        self.generator: Optional[WordGenerationService] = None
        self.leaderboard: Optional[LeaderboardService] = None
        self._controller: Optional[SessionController] = None

    @property
    def controller(self) -> SessionController:
        if self._controller is None:
            raise RuntimeError("App not started")
        return self._controller

    async def start(self) -> None:
        """Wire services and load the first round."""
        settings = self.settings
        if self._configure_logs:
            configure_logging(settings.logging)
        self._telemetry = configure_telemetry(settings.telemetry.to_config())

        self.leaderboard = LeaderboardService(self._build_store())

        if self._model is not None:
            self.throttle = MinIntervalThrottle(settings.throttle.min_interval_seconds)
            self.generator = WordGenerationService(
                self._model,
                self.throttle,
                max_word_count=settings.words.max_generated_words,
            )

        self._controller = SessionController(
            WordSupply(self.generator, rng=self._rng),
            sink=self.leaderboard,
            profile=self._profile,
            difficulty=settings.words.default_difficulty,
            word_count=settings.words.default_word_count,
            min_word_count=settings.words.min_word_count,
            max_word_count=settings.words.max_word_count,
            restart_delay=settings.session.restart_delay_seconds,
            on_complete=self._on_complete,
        )

        logger.info(
            "Typesto starting",
            extra={
                "leaderboard_backend": settings.leaderboard.backend,
                "adaptive_words": self.generator is not None,
            },
        )
        await self._controller.start()

    async def stop(self) -> None:
        """Stop the controller and release connections."""
        if self._controller is not None:
            await self._controller.stop()

        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

        if self._telemetry is not None and self._telemetry.enabled:
            self._telemetry.shutdown()

        logger.info("Typesto stopped")

    def _build_store(self) -> LeaderboardStore:
        board = self.settings.leaderboard
        if board.backend == "redis":
            redis_settings = self.settings.redis
            self._redis = Redis.from_url(
                redis_settings.url,
                decode_responses=redis_settings.decode_responses,
                socket_timeout=redis_settings.socket_timeout,
            )
            return RedisLeaderboardStore(
                self._redis, size=board.size, key_prefix=board.key_prefix
            )
        return MemoryLeaderboardStore(size=board.size)
