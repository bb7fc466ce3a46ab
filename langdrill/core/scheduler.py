"""
SM-2 Spaced Repetition Scheduler.

Pure state transitions over SrsState: no I/O, no wall clock. Callers pass
`now` as epoch milliseconds.

SM-2 Grade Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but upon seeing answer remembered
2 - Incorrect, but answer seemed easy to recall
3 - Correct, but with significant difficulty
4 - Correct, with some hesitation
5 - Correct, with perfect recall
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .models import DEFAULT_EASE, MIN_EASE, SrsState

DAY_MS = 24 * 60 * 60 * 1000

# =============================================================================
# SM-2 Algorithm
# =============================================================================


@dataclass(frozen=True)
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = DEFAULT_EASE
    minimum_easiness: float = MIN_EASE
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    lapse_penalty: float = 0.2  # Ease lost on a failed review
    pass_threshold: int = 3


class SM2Scheduler:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each item has:
    - Ease: how easy the item is (2.5 default, min 1.3)
    - Interval: days until next review
    - Reps: consecutive correct recalls, reset on failure
    - Lapses: cumulative failures
    """

    def __init__(self, config: SM2Config | None = None):
        self.config = config or SM2Config()

    def init_state(self, now: int) -> SrsState:
        """State for a newly introduced item: due immediately."""
        return SrsState(
            due_at=now,
            interval_days=0,
            ease=self.config.initial_easiness,
            reps=0,
            lapses=0,
        )

    def advance(self, state: SrsState, quality: int, now: int) -> SrsState:
        """
        Calculate the next review after a graded answer.

        Args:
            state: Current SrsState for the item
            quality: Answer quality (0-5)
            now: Review time in epoch milliseconds

        Returns:
            New SrsState; `state` is left untouched
        """
        if quality < self.config.pass_threshold:
            interval = self.config.first_interval
            return state.model_copy(
                update={
                    "reps": 0,
                    "interval_days": interval,
                    "ease": max(self.config.minimum_easiness, state.ease - self.config.lapse_penalty),
                    "lapses": state.lapses + 1,
                    "last_reviewed_at": now,
                    "last_quality": quality,
                    "due_at": now + interval * DAY_MS,
                }
            )

        reps = state.reps + 1
        if reps == 1:
            interval = self.config.first_interval
        elif reps == 2:
            interval = self.config.second_interval
        else:
            # Interval grows with the ease from before this review
            interval = _round_half_up(state.interval_days * state.ease)

        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        ease = max(self.config.minimum_easiness, state.ease + ef_delta)

        return state.model_copy(
            update={
                "reps": reps,
                "interval_days": interval,
                "ease": ease,
                "last_reviewed_at": now,
                "last_quality": quality,
                "due_at": now + interval * DAY_MS,
            }
        )

    @staticmethod
    def is_due(state: SrsState, now: int) -> bool:
        """Check if this item is due for review."""
        return state.due_at <= now


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
