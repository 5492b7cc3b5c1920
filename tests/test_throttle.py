"""Tests for the minimum-interval throttle."""

from __future__ import annotations

import pytest

from conftest import FakeClock
from typesto.throttle import MinIntervalThrottle


class TestMinIntervalThrottle:
    def test_first_call_allowed(self, clock):
        throttle = MinIntervalThrottle(10, clock=clock)
        assert throttle.check().allowed
        assert throttle.last_admitted == clock.now

    def test_rejects_within_interval(self, clock):
        throttle = MinIntervalThrottle(10, clock=clock)
        throttle.check()
        clock.advance(4)

        result = throttle.check()
        assert not result.allowed
        assert result.retry_after == pytest.approx(6)

    def test_allows_once_interval_elapsed(self, clock):
        throttle = MinIntervalThrottle(10, clock=clock)
        throttle.check()
        clock.advance(10)
        assert throttle.check().allowed

    def test_rejections_do_not_extend_window(self, clock):
        throttle = MinIntervalThrottle(10, clock=clock)
        throttle.check()
        for _ in range(3):
            clock.advance(3)
            assert not throttle.check().allowed
        clock.advance(1)
        assert throttle.check().allowed

    def test_zero_interval_never_rejects(self):
        throttle = MinIntervalThrottle(0, clock=FakeClock())
        assert all(throttle.check().allowed for _ in range(5))

    def test_reset_forgets_last_admission(self, clock):
        throttle = MinIntervalThrottle(10, clock=clock)
        throttle.check()
        throttle.reset()
        assert throttle.check().allowed

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            MinIntervalThrottle(-1)
