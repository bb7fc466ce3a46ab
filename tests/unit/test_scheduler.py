"""
Unit tests for the SM-2 scheduler.
"""

import pytest

from langdrill.core.models import SrsState
from langdrill.core.scheduler import DAY_MS, SM2Config, SM2Scheduler

NOW = 1_700_000_000_000


@pytest.fixture
def scheduler():
    return SM2Scheduler()


class TestInitState:
    """Tests for newly introduced items."""

    def test_due_immediately(self, scheduler):
        state = scheduler.init_state(NOW)

        assert state.due_at == NOW
        assert state.interval_days == 0
        assert state.ease == 2.5
        assert state.reps == 0
        assert state.lapses == 0
        assert scheduler.is_due(state, NOW)


class TestAdvance:
    """Tests for SM-2 transitions."""

    def test_first_success_schedules_one_day(self, scheduler):
        state = scheduler.advance(scheduler.init_state(NOW), 5, NOW)

        assert state.reps == 1
        assert state.interval_days == 1
        assert state.due_at == NOW + DAY_MS
        assert state.ease == pytest.approx(2.6)
        assert state.last_quality == 5
        assert state.last_reviewed_at == NOW

    def test_second_success_schedules_six_days(self, scheduler):
        state = scheduler.advance(scheduler.init_state(NOW), 5, NOW)
        state = scheduler.advance(state, 5, NOW + DAY_MS)

        assert state.reps == 2
        assert state.interval_days == 6
        assert state.due_at == NOW + DAY_MS + 6 * DAY_MS

    def test_third_success_uses_ease_before_update(self, scheduler):
        state = SrsState(due_at=NOW, interval_days=6, ease=2.5, reps=2)

        state = scheduler.advance(state, 4, NOW)

        # round(6 * 2.5) = 15; quality 4 leaves ease unchanged
        assert state.interval_days == 15
        assert state.reps == 3
        assert state.ease == pytest.approx(2.5)

    def test_interval_rounds_half_up(self, scheduler):
        state = SrsState(interval_days=5, ease=2.5, reps=2)

        state = scheduler.advance(state, 4, NOW)

        assert state.interval_days == 13  # 12.5 rounds up

    def test_quality_three_lowers_ease(self, scheduler):
        state = scheduler.advance(scheduler.init_state(NOW), 3, NOW)

        assert state.reps == 1
        assert state.ease == pytest.approx(2.36)

    def test_failure_resets_reps_and_counts_lapse(self, scheduler):
        state = SrsState(interval_days=15, ease=2.5, reps=3, lapses=1)

        state = scheduler.advance(state, 2, NOW)

        assert state.reps == 0
        assert state.interval_days == 1
        assert state.lapses == 2
        assert state.ease == pytest.approx(2.3)
        assert state.due_at == NOW + DAY_MS

    def test_ease_never_below_floor(self, scheduler):
        state = SrsState(ease=1.35)

        state = scheduler.advance(state, 0, NOW)
        assert state.ease == pytest.approx(1.3)

        state = scheduler.advance(state, 3, NOW)
        assert state.ease == pytest.approx(1.3)

    def test_original_state_untouched(self, scheduler):
        original = scheduler.init_state(NOW)

        scheduler.advance(original, 5, NOW)

        assert original.reps == 0
        assert original.interval_days == 0

    def test_custom_config(self):
        scheduler = SM2Scheduler(SM2Config(first_interval=2, second_interval=4))
        state = scheduler.advance(scheduler.init_state(NOW), 5, NOW)
        assert state.interval_days == 2
        state = scheduler.advance(state, 5, NOW)
        assert state.interval_days == 4


class TestIsDue:
    """Tests for due checks."""

    def test_due_at_boundary(self, scheduler):
        state = SrsState(due_at=NOW)
        assert scheduler.is_due(state, NOW)
        assert not scheduler.is_due(state, NOW - 1)
