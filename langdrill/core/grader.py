"""
Fuzzy answer grading.

Free-text answers are compared after normalization (case, diacritics,
punctuation, whitespace) using Levenshtein distance, and mapped onto
SM-2 quality tiers:

    d == 0               correct    5 (fast) / 4 (slow)
    d <= 1 and L >= 3    correct    4  "minor typo"
    d <= 2 and L >= 3    incorrect  2  "close"
    otherwise            incorrect  1

Reorder answers accept d <= 2 as a typo. Article choices are exact.
Multiple choice takes a letter, a 1-based number, or the option text.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from .models import (
    ArticleQuestion,
    GradeResult,
    MultipleChoiceQuestion,
    Question,
    ReorderQuestion,
)

FAST_MS = 5000
MIN_TYPO_LENGTH = 3

_NON_ALNUM = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lowercase, strip diacritics and punctuation, collapse whitespace."""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = _NON_ALNUM.sub("", stripped)
    return _WHITESPACE.sub(" ", stripped).strip()


def levenshtein_distance(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


@dataclass(frozen=True)
class _Match:
    distance: int
    expected: str
    normalized_user: str


def _best_match(user_answer: str, accepted: tuple[str, ...]) -> _Match:
    """Closest accepted answer; an exact match ends the search."""
    normalized_user = normalize_text(user_answer)
    best_distance: int | None = None
    best_answer = accepted[0] if accepted else ""
    for candidate in accepted:
        normalized = normalize_text(candidate)
        if normalized == normalized_user:
            return _Match(0, candidate, normalized_user)
        distance = levenshtein_distance(normalized_user, normalized)
        if best_distance is None or distance < best_distance:
            best_distance = distance
            best_answer = candidate
    if best_distance is None:
        best_distance = len(normalized_user)
    return _Match(best_distance, best_answer, normalized_user)


def _exact_quality(latency_ms: float, fast_ms: int) -> int:
    return 5 if latency_ms <= fast_ms else 4


def grade_answer(
    question: Question,
    raw_answer: str,
    latency_ms: float,
    fast_ms: int = FAST_MS,
) -> GradeResult:
    """
    Grade a raw answer against a question.

    Args:
        question: The question that was shown
        raw_answer: Text exactly as the learner entered it
        latency_ms: Time taken to answer
        fast_ms: Latency at or below which an exact answer earns quality 5

    Returns:
        GradeResult with quality on the SM-2 scale
    """
    user_answer = (raw_answer or "").strip()

    if isinstance(question, MultipleChoiceQuestion):
        return _grade_multiple_choice(question, user_answer, latency_ms, fast_ms)
    if isinstance(question, ArticleQuestion):
        return _grade_text(
            (question.correct,), user_answer, latency_ms, fast_ms, allow_typos=False,
        )
    if isinstance(question, ReorderQuestion):
        return _grade_reorder(question, user_answer, latency_ms, fast_ms)
    return _grade_text(question.answers, user_answer, latency_ms, fast_ms, allow_typos=True)


def _grade_text(
    accepted: tuple[str, ...],
    user_answer: str,
    latency_ms: float,
    fast_ms: int,
    allow_typos: bool,
) -> GradeResult:
    match = _best_match(user_answer, accepted)
    long_enough = len(match.normalized_user) >= MIN_TYPO_LENGTH

    if match.distance == 0:
        return GradeResult(
            correct=True,
            quality=_exact_quality(latency_ms, fast_ms),
            explanation="Correct.",
            expected_answer=match.expected,
            normalized_user_answer=match.normalized_user,
        )
    if allow_typos and long_enough and match.distance <= 1:
        return GradeResult(
            correct=True,
            quality=4,
            explanation=f"Minor typo accepted. Correct: {match.expected}",
            expected_answer=match.expected,
            normalized_user_answer=match.normalized_user,
        )
    if allow_typos and long_enough and match.distance <= 2:
        return GradeResult(
            correct=False,
            quality=2,
            explanation=f"Close. Correct: {match.expected}",
            expected_answer=match.expected,
            normalized_user_answer=match.normalized_user,
        )
    return GradeResult(
        correct=False,
        quality=1,
        explanation=f"Incorrect. Correct: {match.expected}",
        expected_answer=match.expected,
        normalized_user_answer=match.normalized_user,
    )


def _grade_reorder(
    question: ReorderQuestion,
    user_answer: str,
    latency_ms: float,
    fast_ms: int,
) -> GradeResult:
    match = _best_match(user_answer, (question.correct_sentence,))
    if match.distance == 0:
        return GradeResult(
            correct=True,
            quality=_exact_quality(latency_ms, fast_ms),
            explanation="Correct.",
            expected_answer=question.correct_sentence,
            normalized_user_answer=match.normalized_user,
        )
    if match.distance <= 2 and len(match.normalized_user) >= MIN_TYPO_LENGTH:
        return GradeResult(
            correct=True,
            quality=4,
            explanation=f"Minor typo accepted. Correct: {question.correct_sentence}",
            expected_answer=question.correct_sentence,
            normalized_user_answer=match.normalized_user,
        )
    return GradeResult(
        correct=False,
        quality=1,
        explanation=f"Incorrect. Correct: {question.correct_sentence}",
        expected_answer=question.correct_sentence,
        normalized_user_answer=match.normalized_user,
    )


def _grade_multiple_choice(
    question: MultipleChoiceQuestion,
    user_answer: str,
    latency_ms: float,
    fast_ms: int,
) -> GradeResult:
    expected = question.expected_answer
    normalized_user = normalize_text(user_answer)
    selected = parse_choice_index(user_answer, question.options)

    if selected is None:
        last_letter = chr(ord("A") + max(0, len(question.options) - 1))
        return GradeResult(
            correct=False,
            quality=1,
            explanation=f"Enter A-{last_letter} or 1-{len(question.options)}, then press Enter.",
            expected_answer=expected,
            normalized_user_answer=normalized_user,
        )

    if selected == question.correct_index:
        return GradeResult(
            correct=True,
            quality=_exact_quality(latency_ms, fast_ms),
            explanation="Correct.",
            expected_answer=expected,
            normalized_user_answer=normalized_user,
        )
    return GradeResult(
        correct=False,
        quality=1,
        explanation=f"Correct answer: {expected}",
        expected_answer=expected,
        normalized_user_answer=normalized_user,
    )


def parse_choice_index(user_answer: str, options: tuple[str, ...]) -> int | None:
    """
    Resolve a multiple-choice answer to an option index.

    Accepts a single letter (a-d), a 1-based number, or the text of one of
    the options. Returns None for anything unparseable or out of range.
    """
    text = user_answer.strip().lower()
    if not text:
        return None

    if len(text) == 1 and "a" <= text <= "z":
        index = ord(text) - ord("a")
        return index if index < len(options) else None

    if text.isascii() and text.isdigit():
        index = int(text) - 1
        return index if 0 <= index < len(options) else None

    normalized = normalize_text(text)
    for index, option in enumerate(options):
        if normalized and normalize_text(option) == normalized:
            return index
    return None
