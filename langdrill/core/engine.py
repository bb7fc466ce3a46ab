"""
Learning Engine: one learner, one language, one turn at a time.

Per turn:
1. next_question() picks an item (due > new > known > first) and asks
   the generator for an exercise.
2. submit_answer() grades (remote judge first, local grader as fallback),
   then advances SM-2, the ability estimate and the stats together, logs
   the attempt and schedules a save.

Callers must not overlap turns; the judge call is the only await point.
"""

from __future__ import annotations

import asyncio
import math
import random
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Protocol

from loguru import logger

from .ability import AbilityEstimator
from .errors import EmptyDeckError
from .grader import FAST_MS, grade_answer
from .hints import hint as build_hint
from .hints import learning_note
from .judge import GradingJudge, clamp_quality
from .models import (
    AttemptLogEvent,
    EngineStatus,
    GradeResult,
    Item,
    Profile,
    ProfileStats,
    Question,
)
from .question_generator import QuestionGenerator
from .scheduler import SM2Scheduler

RECENT_LIMIT = 5
LATENCY_SMOOTHING = 0.2


class ProfileSink(Protocol):
    """What the engine needs from a profile store."""

    profile: Profile

    def save_soon(self) -> None: ...

    def append_attempt(self, event: AttemptLogEvent) -> None: ...


def wall_clock_ms() -> int:
    return int(datetime.now().timestamp() * 1000)


def _local_date(ts_ms: int):
    return datetime.fromtimestamp(ts_ms / 1000).date()


def update_latency(previous: float | None, latest: float) -> float:
    """Blend the new latency into the running average (no prior: take it)."""
    if not previous:
        return float(latest)
    return previous * (1 - LATENCY_SMOOTHING) + latest * LATENCY_SMOOTHING


def update_streak(current: int, last_active_at: int, now: int) -> int:
    """
    Consecutive active calendar days, in local time.

    Same day keeps the streak (at least 1), the next day extends it,
    anything else restarts at 1.
    """
    if not last_active_at:
        return 1
    gap = (_local_date(now) - _local_date(last_active_at)).days
    if gap == 0:
        return max(1, current)
    if gap == 1:
        return current + 1
    return 1


class LearningEngine:
    """Selects items, grades answers, and keeps the profile current."""

    def __init__(
        self,
        store: ProfileSink,
        deck: Sequence[Item],
        generator: QuestionGenerator | None = None,
        judge: GradingJudge | None = None,
        clock: Callable[[], int] | None = None,
        rng: random.Random | None = None,
        recent_limit: int = RECENT_LIMIT,
        judge_timeout: float = 8.0,
        fast_ms: int = FAST_MS,
    ):
        """
        Initialize the engine.

        Args:
            store: Profile holder that can schedule saves and log attempts
            deck: Items available for study
            generator: Question generator (defaults to one sharing `rng`)
            judge: Optional remote grader consulted before local grading
            clock: Epoch-milliseconds source (defaults to the wall clock)
            rng: Random source for item selection
            recent_limit: Size of the recently-shown buffer
            judge_timeout: Seconds to wait for the judge
            fast_ms: Latency at or below which exact answers earn quality 5
        """
        self.store = store
        self.rng = rng or random.Random()
        self.generator = generator or QuestionGenerator(rng=self.rng)
        self.judge = judge
        self.clock = clock or wall_clock_ms
        self.recent_limit = recent_limit
        self.judge_timeout = judge_timeout
        self.fast_ms = fast_ms
        self.scheduler = SM2Scheduler()
        self.estimator = AbilityEstimator()

        self._recent: list[str] = []
        self._new_today = 0
        self._new_today_date = None
        self.set_deck(deck)

    @property
    def profile(self) -> Profile:
        return self.store.profile

    @property
    def deck(self) -> list[Item]:
        return self._deck

    @property
    def recent_item_ids(self) -> list[str]:
        """Most recent first."""
        return list(self._recent)

    def set_deck(self, deck: Sequence[Item]) -> None:
        """Swap the deck. SRS entries for items no longer present are kept."""
        self._deck = list(deck)
        self._index = {item.id: item for item in self._deck}

    # =========================================================================
    # Selection
    # =========================================================================

    def next_question(self) -> Question:
        """
        Pick the next item and generate an exercise for it.

        Raises:
            EmptyDeckError: If the deck has no items
        """
        item = self._pick_item()
        return self.generator.generate(item, self.profile, self._deck)

    def _pick_item(self) -> Item:
        deck_state = self.profile.deck
        now = self.clock()
        suspended = set(deck_state.suspended_card_ids)

        due = sorted(
            (
                (item_id, state)
                for item_id, state in deck_state.srs.items()
                if item_id not in suspended
                and item_id in self._index
                and self.scheduler.is_due(state, now)
            ),
            key=lambda entry: entry[1].due_at,
        )
        if due:
            item_id = next((i for i, _ in due if i not in self._recent), due[0][0])
            return self._select(self._index[item_id])

        known = set(deck_state.known_card_ids)
        unseen = [item for item in self._deck if item.id not in known and item.id not in suspended]
        if unseen:
            item = self.rng.choice(unseen)
            self._introduce(item.id, now)
            return self._select(item)

        candidates = [
            self._index[item_id]
            for item_id in deck_state.known_card_ids
            if item_id not in suspended and item_id in self._index
        ]
        if candidates:
            fresh = [item for item in candidates if item.id not in self._recent]
            return self._select(self.rng.choice(fresh or candidates))

        if not self._deck:
            raise EmptyDeckError(self.profile.lang)
        first = self._deck[0]
        if first.id not in known:
            self._introduce(first.id, now)
        return self._select(first)

    def _select(self, item: Item) -> Item:
        self._recent = [item.id] + [i for i in self._recent if i != item.id]
        del self._recent[self.recent_limit:]
        return item

    def _introduce(self, item_id: str, now: int) -> None:
        deck_state = self.profile.deck
        if item_id not in deck_state.known_card_ids:
            deck_state.known_card_ids.append(item_id)
        if item_id not in deck_state.srs:
            deck_state.srs[item_id] = self.scheduler.init_state(now)
        today = _local_date(now)
        if self._new_today_date != today:
            self._new_today_date = today
            self._new_today = 0
        self._new_today += 1
        self._save_soon()

    # =========================================================================
    # Answering
    # =========================================================================

    async def submit_answer(
        self,
        question: Question,
        raw_answer: str,
        latency_ms: float,
        hint_used: bool = False,
    ) -> GradeResult:
        """
        Grade an answer and fold it into the learner's state.

        Args:
            question: The question that was shown
            raw_answer: The learner's raw input
            latency_ms: Time from display to submission
            hint_used: Whether a hint was requested for this question

        Returns:
            The final GradeResult (after hint cap and learning note)
        """
        if not math.isfinite(latency_ms):
            latency_ms = 0.0
        now = self.clock()
        grade = await self._judge_grade(question, raw_answer)
        if grade is None:
            grade = grade_answer(question, raw_answer, latency_ms, self.fast_ms)

        if hint_used and grade.quality > 3:
            grade = replace(grade, quality=3, explanation=f"{grade.explanation} (Hint used)")

        if not grade.correct:
            note = learning_note(question)
            if note:
                grade = replace(grade, explanation=f"{grade.explanation} {note}".strip())

        profile = self.profile
        state = profile.deck.srs.get(question.item_id) or self.scheduler.init_state(now)
        next_state = self.scheduler.advance(state, grade.quality, now)
        next_ability = self.estimator.update(profile.ability, question, grade.correct, latency_ms, now)
        next_stats = self._next_stats(profile.stats, grade.correct, latency_ms, now)

        profile.deck.srs[question.item_id] = next_state
        profile.ability = next_ability
        profile.stats = next_stats

        self._log_attempt(question, raw_answer, grade, latency_ms, now)
        self._save_soon()
        return grade

    async def _judge_grade(self, question: Question, raw_answer: str) -> GradeResult | None:
        if self.judge is None:
            return None
        try:
            result = await asyncio.wait_for(
                self.judge.try_grade(question, raw_answer),
                timeout=self.judge_timeout,
            )
        except Exception as e:
            logger.warning(f"Judge failed, grading locally: {e!r}")
            return None
        if not isinstance(result, GradeResult) or not isinstance(result.correct, bool):
            return None
        return replace(result, quality=clamp_quality(result.quality))

    def hint(self, question: Question) -> str:
        return build_hint(question)

    @staticmethod
    def _next_stats(stats: ProfileStats, correct: bool, latency_ms: float, now: int) -> ProfileStats:
        return stats.model_copy(
            update={
                "total_attempts": stats.total_attempts + 1,
                "correct_attempts": stats.correct_attempts + (1 if correct else 0),
                "last_active_at": now,
                "avg_latency_ms_7d": update_latency(stats.avg_latency_ms_7d, latency_ms),
                "streak_days": update_streak(stats.streak_days, stats.last_active_at, now),
            }
        )

    def _log_attempt(
        self,
        question: Question,
        raw_answer: str,
        grade: GradeResult,
        latency_ms: float,
        now: int,
    ) -> None:
        event = AttemptLogEvent(
            ts=now,
            lang=self.profile.lang,
            item_id=question.item_id,
            question_type=question.type.value,
            prompt=question.prompt,
            user_answer=raw_answer,
            correct=grade.correct,
            latency_ms=int(latency_ms),
            quality=grade.quality,
            tags=list(question.meta.tags),
        )
        try:
            self.store.append_attempt(event)
        except OSError as e:
            logger.error(f"Failed to log attempt: {e}")

    def _save_soon(self) -> None:
        try:
            self.store.save_soon()
        except OSError as e:
            logger.error(f"Failed to save profile: {e}")

    # =========================================================================
    # Status and suspension
    # =========================================================================

    def get_status(self) -> EngineStatus:
        profile = self.profile
        now = self.clock()
        suspended = set(profile.deck.suspended_card_ids)
        known = set(profile.deck.known_card_ids)
        due_count = sum(
            1
            for item_id, state in profile.deck.srs.items()
            if item_id in self._index and item_id not in suspended and self.scheduler.is_due(state, now)
        )
        new_count = sum(1 for item in self._deck if item.id not in known and item.id not in suspended)
        new_today = self._new_today if self._new_today_date == _local_date(now) else 0
        return EngineStatus(
            lang=profile.lang,
            ability=profile.ability,
            due_count=due_count,
            new_count=new_count,
            streak_days=profile.stats.streak_days,
            enabled=profile.enabled,
            daily_new_cards_target=profile.settings.daily_new_cards_target,
            new_today=new_today,
        )

    def suspend(self, item_id: str) -> bool:
        """Exclude an item from selection. Returns False if already suspended."""
        suspended = self.profile.deck.suspended_card_ids
        if item_id in suspended:
            return False
        suspended.append(item_id)
        self._save_soon()
        return True

    def unsuspend(self, item_id: str) -> bool:
        suspended = self.profile.deck.suspended_card_ids
        if item_id not in suspended:
            return False
        suspended.remove(item_id)
        self._save_soon()
        return True
