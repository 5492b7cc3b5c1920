"""Minimum-interval throttle shared by every caller in the process."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ThrottleResult(BaseModel):
    """Outcome of a throttle check."""

    allowed: bool
    retry_after: float = 0.0


class MinIntervalThrottle:
    """
    Admit at most one call per ``min_interval`` seconds.

    A single instance is meant to be shared process-wide; rejected calls do
    not move the window. The clock is injectable so tests can step time.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize throttle.

        Args:
            min_interval: Seconds that must pass between admitted calls
            clock: Monotonic clock in seconds
        """
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self._clock = clock
        self._last_admitted: float | None = None

    @property
    def last_admitted(self) -> float | None:
        return self._last_admitted

    def check(self) -> ThrottleResult:
        """Admit the call if the interval has elapsed, recording the admission."""
        now = self._clock()
        if self._last_admitted is not None:
            waited = now - self._last_admitted
            if waited < self.min_interval:
                retry_after = self.min_interval - waited
                logger.debug("Throttle rejected call", extra={"retry_after": retry_after})
                return ThrottleResult(allowed=False, retry_after=retry_after)
        self._last_admitted = now
        return ThrottleResult(allowed=True)

    def reset(self) -> None:
        """Forget the last admission."""
        self._last_admitted = None
