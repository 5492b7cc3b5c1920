"""Tests for WPM and accuracy computation."""

from __future__ import annotations

import pytest

from typesto.metrics import (
    BestWpm,
    accuracy,
    final_metrics,
    live_accuracy,
    live_wpm,
    net_wpm,
    round_half_up,
)
from typesto.session import SessionSnapshot, SessionStats, SessionStatus


def _snapshot(
    *, correct: int = 0, errors: int = 0, started_at: float | None = 0.0, generation: int = 1
) -> SessionSnapshot:
    return SessionSnapshot(
        target_words=("cat",),
        generation=generation,
        word_index=1,
        char_index=0,
        started_at=started_at,
        correct_chars=correct,
        errors=errors,
        status=SessionStatus.ACTIVE,
    )


class TestRounding:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.0, 0), (0.49, 0), (0.5, 1), (2.5, 3), (3.5, 4), (10.4999, 10)],
    )
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestFinalMetrics:
    def test_fifty_correct_chars_in_one_minute(self):
        metrics = final_metrics(_snapshot(correct=50), completed_at=60.0)
        assert metrics.net_wpm == 10
        assert metrics.accuracy == 100
        assert metrics.elapsed_seconds == pytest.approx(60.0)

    def test_nothing_typed(self):
        metrics = final_metrics(_snapshot(started_at=None), completed_at=60.0)
        assert metrics.accuracy == 100
        assert metrics.net_wpm == 0

    def test_errors_excluded_from_numerator(self):
        metrics = final_metrics(_snapshot(correct=50, errors=25), completed_at=60.0)
        assert metrics.net_wpm == 10
        assert metrics.gross_wpm == 15
        assert metrics.accuracy == 67
        assert metrics.errors == 25

    def test_zero_elapsed_is_zero_wpm(self):
        metrics = final_metrics(_snapshot(correct=10, started_at=60.0), completed_at=60.0)
        assert metrics.net_wpm == 0

    def test_to_stats_carries_wpm_accuracy_errors(self):
        metrics = final_metrics(_snapshot(correct=45, errors=5), completed_at=30.0)
        stats = metrics.to_stats()
        assert stats == SessionStats(wpm=18, accuracy=90, errors=5)

    def test_generation_is_kept(self):
        metrics = final_metrics(_snapshot(generation=7), completed_at=1.0)
        assert metrics.generation == 7


class TestLiveMetrics:
    def test_zero_before_first_keystroke(self):
        assert live_wpm(_snapshot(correct=0, started_at=None), now=100.0) == 0

    def test_counts_correct_characters_only(self):
        snapshot = _snapshot(correct=25, errors=100, started_at=0.0)
        assert live_wpm(snapshot, now=30.0) == 10

    def test_clock_behind_start_is_zero(self):
        assert live_wpm(_snapshot(correct=25, started_at=50.0), now=40.0) == 0

    def test_live_accuracy(self):
        assert live_accuracy(_snapshot(correct=3, errors=1)) == 75
        assert live_accuracy(_snapshot()) == 100


class TestHelpers:
    def test_accuracy_rounds(self):
        assert accuracy(2, 1) == 67
        assert accuracy(1, 2) == 33

    def test_net_wpm_never_negative(self):
        assert net_wpm(0, 1.0) == 0
        assert net_wpm(10, -1.0) == 0


class TestBestWpm:
    def test_tracks_high_water_mark(self):
        best = BestWpm()
        assert best.update(40)
        assert not best.update(30)
        assert not best.update(40)
        assert best.update(41)
        assert best.value == 41
