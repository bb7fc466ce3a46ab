"""
Ability Estimator: per-skill proficiency via exponential smoothing.

Each graded answer moves one skill's smoothed score toward an outcome in
[0, 1]; the aggregate score is the mean over skills and maps onto a
seven-band CEFR-style scale.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .models import (
    Ability,
    ClozeQuestion,
    MultipleChoiceQuestion,
    Question,
    SkillScore,
    TypeAnswerQuestion,
    clamp01,
)

# Upper bounds (exclusive) of each band, lowest first; C2 above the last
CEFR_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.15, "A0"),
    (0.35, "A1"),
    (0.55, "A2"),
    (0.75, "B1"),
    (0.85, "B2"),
    (0.93, "C1"),
)


@dataclass(frozen=True)
class AbilityConfig:
    """Configuration for ability smoothing."""

    smoothing: float = 0.2
    prior_score: float = 0.5
    empty_score: float = 0.3  # Aggregate when no skill has data
    fast_ms: int = 5000
    slow_ms: int = 8000
    medium_outcome: float = 0.92
    slow_outcome: float = 0.85
    full_confidence_samples: int = 60


class AbilityEstimator:
    """Track learner proficiency per skill."""

    def __init__(self, config: AbilityConfig | None = None):
        self.config = config or AbilityConfig()

    def update(
        self,
        ability: Ability,
        question: Question,
        correct: bool,
        latency_ms: float,
        now: int,
    ) -> Ability:
        """
        Fold one graded answer into the ability estimate.

        Args:
            ability: Current estimate (not modified)
            question: The question that was answered
            correct: Whether the answer was graded correct
            latency_ms: Time taken to answer
            now: Update time in epoch milliseconds

        Returns:
            A new Ability for the caller to install
        """
        skill = question.meta.skill or infer_skill(question)
        current = ability.subskills.get(skill) or SkillScore(score=self.config.prior_score, samples=0)
        outcome = self.outcome(correct, latency_ms)
        alpha = self.config.smoothing
        smoothed = clamp01(alpha * outcome + (1 - alpha) * current.score)

        subskills = dict(ability.subskills)
        subskills[skill] = SkillScore(score=smoothed, samples=current.samples + 1)

        if subskills:
            score = sum(s.score for s in subskills.values()) / len(subskills)
        else:
            score = self.config.empty_score
        score = clamp01(score)
        total_samples = sum(s.samples for s in subskills.values())
        confidence = clamp01(total_samples / self.config.full_confidence_samples)

        return Ability(
            estimate=score_to_cefr(score),
            score=score,
            confidence=confidence,
            subskills=subskills,
            updated_at=now,
        )

    def outcome(self, correct: bool, latency_ms: float) -> float:
        """Map a graded answer to a learning signal in [0, 1]."""
        if not correct:
            return 0.0
        if latency_ms is None or math.isnan(latency_ms):
            latency_ms = 0.0
        if latency_ms <= self.config.fast_ms:
            return 1.0
        if latency_ms <= self.config.slow_ms:
            return self.config.medium_outcome
        return self.config.slow_outcome


def infer_skill(question: Question) -> str:
    """Default skill label when the question carries none."""
    if isinstance(question, MultipleChoiceQuestion):
        return "sentence_comprehension"
    if isinstance(question, ClozeQuestion):
        return "grammar_fill"
    if isinstance(question, TypeAnswerQuestion):
        return "sentence_production"
    return "general"


def score_to_cefr(score: float) -> str:
    for upper, label in CEFR_THRESHOLDS:
        if score < upper:
            return label
    return "C2"
