"""
Unit tests for the ability estimator.
"""

import math

import pytest

from langdrill.core.ability import AbilityEstimator, infer_skill, score_to_cefr
from langdrill.core.models import (
    Ability,
    ClozeQuestion,
    MultipleChoiceQuestion,
    QuestionMeta,
    ReorderQuestion,
    SkillScore,
    TypeAnswerQuestion,
)


@pytest.fixture
def estimator():
    return AbilityEstimator()


@pytest.fixture
def cloze():
    return ClozeQuestion(item_id="s-1", prompt="Fill in: Ik ___ koffie.", answers=("drink",))


class TestOutcome:
    """Tests for mapping answers to learning signals."""

    def test_wrong_is_zero(self, estimator):
        assert estimator.outcome(False, 100) == 0.0

    @pytest.mark.parametrize("latency,expected", [
        (0, 1.0),
        (5000, 1.0),
        (5001, 0.92),
        (8000, 0.92),
        (8001, 0.85),
    ])
    def test_latency_bands(self, estimator, latency, expected):
        assert estimator.outcome(True, latency) == expected

    def test_nan_latency_counts_as_fast(self, estimator):
        assert estimator.outcome(True, math.nan) == 1.0


class TestUpdate:
    """Tests for folding answers into the estimate."""

    def test_first_answer_from_prior(self, estimator, cloze):
        ability = estimator.update(Ability(), cloze, True, 1000, now=42)

        skill = ability.subskills["grammar_fill"]
        assert skill.score == pytest.approx(0.6)  # 0.2 * 1 + 0.8 * 0.5
        assert skill.samples == 1
        assert ability.score == pytest.approx(0.6)
        assert ability.estimate == "B1"
        assert ability.updated_at == 42

    def test_input_not_mutated(self, estimator, cloze):
        before = Ability()
        estimator.update(before, cloze, True, 1000, now=1)
        assert before.subskills == {}

    def test_score_is_mean_over_skills(self, estimator):
        ability = Ability(subskills={
            "grammar_fill": SkillScore(score=0.9, samples=5),
            "word_order": SkillScore(score=0.3, samples=5),
        })
        question = ReorderQuestion(
            item_id="s-1",
            tokens=("koffie", "Ik", "drink"),
            correct_sentence="Ik drink koffie",
            meta=QuestionMeta(skill="word_order"),
        )

        ability = estimator.update(ability, question, False, 1000, now=1)

        # word_order: 0.8 * 0.3 = 0.24
        assert ability.subskills["word_order"].score == pytest.approx(0.24)
        assert ability.score == pytest.approx((0.9 + 0.24) / 2)

    def test_confidence_saturates(self, estimator, cloze):
        ability = Ability(subskills={"grammar_fill": SkillScore(score=0.5, samples=59)})

        ability = estimator.update(ability, cloze, True, 1000, now=1)
        assert ability.confidence == pytest.approx(1.0)

        ability = estimator.update(ability, cloze, True, 1000, now=2)
        assert ability.confidence == 1.0

    def test_scores_stay_in_unit_interval(self, estimator, cloze):
        ability = Ability()
        for _ in range(200):
            ability = estimator.update(ability, cloze, True, 0, now=1)
        assert 0.0 <= ability.score <= 1.0
        assert ability.estimate == "C2"

    def test_repeated_misses_fall_toward_zero(self, estimator, cloze):
        ability = Ability()
        previous = None
        for step in range(60):
            ability = estimator.update(ability, cloze, False, 1000, now=step)
            score = ability.subskills["grammar_fill"].score
            if previous is not None:
                assert score < previous
            assert score >= 0.0
            previous = score
        assert previous < 0.001
        assert ability.estimate == "A0"

    def test_repeated_fast_hits_rise_every_step(self, estimator, cloze):
        ability = Ability()
        previous = None
        for step in range(30):
            ability = estimator.update(ability, cloze, True, 1000, now=step)
            score = ability.subskills["grammar_fill"].score
            if previous is not None:
                assert score > previous
            assert score <= 1.0
            previous = score


class TestSkillsAndBands:
    """Tests for skill inference and CEFR mapping."""

    def test_infer_skill_by_variant(self):
        mc = MultipleChoiceQuestion(item_id="x", prompt="p", options=("a", "b"), correct_index=0)
        typed = TypeAnswerQuestion(item_id="x", prompt="p", answers=("a",))

        assert infer_skill(mc) == "sentence_comprehension"
        assert infer_skill(typed) == "sentence_production"

    @pytest.mark.parametrize("score,band", [
        (0.0, "A0"),
        (0.149, "A0"),
        (0.15, "A1"),
        (0.35, "A2"),
        (0.55, "B1"),
        (0.75, "B2"),
        (0.85, "C1"),
        (0.93, "C2"),
        (1.0, "C2"),
    ])
    def test_cefr_bands(self, score, band):
        assert score_to_cefr(score) == band
