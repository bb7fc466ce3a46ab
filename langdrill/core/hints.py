"""
Hints and post-answer learning notes.

Hints give structural clues (counts, first/last word, masked letters)
rather than the answer itself. Learning notes are appended to the
explanation of a wrong answer and restate the correct form.
"""

from __future__ import annotations

import re

from .grader import normalize_text
from .models import (
    ArticleQuestion,
    ClozeQuestion,
    MultipleChoiceQuestion,
    Question,
    ReorderQuestion,
    TypeAnswerQuestion,
)

_LETTERS = re.compile(r"[^\W\d_]+")
_MASKABLE_TOKEN = re.compile(r"^([\"'(\[]?)([^\W\d_]+)(\W*)$")
_DIMINUTIVE = re.compile(r"(tje|pje|kje|etje|je)$")
_SENTENCE_END = re.compile(r"[.!?]$")

MULTIPLE_CHOICE_FALLBACK = "Pick A-D or 1-4."


def hint(question: Question) -> str:
    """Clue for the current question; empty when nothing useful can be said."""
    if isinstance(question, MultipleChoiceQuestion):
        return _multiple_choice_hint(question)
    if isinstance(question, ArticleQuestion):
        return _article_hint(question)
    if isinstance(question, ReorderQuestion):
        return _reorder_hint(question)
    return _text_answer_hint(question)


def learning_note(question: Question) -> str | None:
    """
    "Learn: ..." note restating the correct form.

    Returns:
        The note, or None when the question carries nothing to teach
    """
    source_prompt = question.meta.source_prompt
    translation = question.meta.source_translation
    parts: list[str] = []

    if isinstance(question, ArticleQuestion):
        parts.append(_learning_part("Article", f"{question.correct} {question.noun}"))
    elif isinstance(question, ReorderQuestion):
        parts.append(_learning_part("Sentence", question.correct_sentence))
    elif isinstance(question, MultipleChoiceQuestion):
        if source_prompt:
            parts.append(_learning_part("Sentence", source_prompt))
    elif source_prompt:
        parts.append(_learning_part("Sentence", source_prompt))
    elif question.expected_answer:
        parts.append(_learning_part("Answer", question.expected_answer))

    if translation:
        parts.append(_learning_part("Meaning", translation))

    filtered = [part for part in parts if part]
    if not filtered:
        return None
    return f"Learn: {' '.join(filtered)}"


# =============================================================================
# Per-variant hints
# =============================================================================


def _multiple_choice_hint(question: MultipleChoiceQuestion) -> str:
    answer = question.expected_answer
    if not answer:
        return MULTIPLE_CHOICE_FALLBACK
    text = _describe_answer(answer, include_pattern=True)
    # Never hand over the option itself
    if not text or normalize_text(answer) in _quoted_fragments(text):
        return MULTIPLE_CHOICE_FALLBACK
    return text


def _article_hint(question: ArticleQuestion) -> str:
    clean = re.sub(r"[^a-z]", "", question.noun.strip().lower())
    parts = []
    if _DIMINUTIVE.search(clean):
        parts.append("Diminutive (-je/-tje) usually takes 'het'.")
    else:
        parts.append("Most nouns take 'de'; use 'de' if unsure.")
    if question.meta.source_translation:
        parts.append(f"Meaning: {question.meta.source_translation}.")
    return " ".join(parts)


def _reorder_hint(question: ReorderQuestion) -> str:
    words = question.correct_sentence.split()
    parts = []
    if words:
        parts.append(f"{len(words)} words")
        first, last = words[0], words[-1]
        parts.append(f'Starts with "{first}"')
        if last != first:
            parts.append(f'Ends with "{last}"')
    if question.meta.source_translation:
        parts.append(f"Meaning: {question.meta.source_translation}")
    return ". ".join(parts)


def _text_answer_hint(question: TypeAnswerQuestion | ClozeQuestion) -> str:
    answer = question.expected_answer
    if not answer:
        return ""
    parts = [_describe_answer(answer, include_pattern=True)]
    translation = _translation_for_hint(question)
    if translation:
        parts.append(f"Meaning: {translation}")
    return ". ".join(part for part in parts if part)


def _translation_for_hint(question: TypeAnswerQuestion | ClozeQuestion) -> str | None:
    """The source translation, unless the prompt or answers already show it."""
    translation = question.meta.source_translation
    if not translation:
        return None
    if translation in question.prompt:
        return None
    target = normalize_text(translation)
    if any(normalize_text(answer) == target for answer in question.answers):
        return None
    return translation


# =============================================================================
# Formatting helpers
# =============================================================================


def _describe_answer(answer: str, include_pattern: bool = False) -> str:
    words = answer.split()
    parts = []
    if len(words) <= 1:
        match = _LETTERS.search(answer)
        core = match.group(0) if match else answer
        if core:
            parts.append(f'Starts with "{core[:2]}"')
            parts.append(f"{len(core)} letters")
            if core[0].isupper():
                parts.append("Capitalized")
        if include_pattern:
            masked = mask_token(answer)
            if masked and masked != answer:
                parts.append(f"Pattern: {masked}")
    else:
        parts.append(f"{len(words)} words")
        first, last = words[0], words[-1]
        parts.append(f'Starts with "{first}"')
        if last != first:
            parts.append(f'Ends with "{last}"')
        if include_pattern:
            pattern = " ".join(mask_token(token) for token in answer.split(" "))
            if pattern and pattern != answer:
                parts.append(f"Pattern: {pattern}")
    return ". ".join(parts)


def mask_token(token: str) -> str:
    """Keep the first letter of a word and blank the rest: house -> h____."""
    match = _MASKABLE_TOKEN.match(token)
    if not match:
        return token
    prefix, word, suffix = match.groups()
    if len(word) <= 1:
        return token
    return f"{prefix}{word[0]}{'_' * (len(word) - 1)}{suffix}"


def _quoted_fragments(text: str) -> set[str]:
    return {normalize_text(fragment) for fragment in re.findall(r'"([^"]*)"', text)}


def _learning_part(label: str, value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        return ""
    ending = "" if _SENTENCE_END.search(trimmed) else "."
    return f"{label}: {trimmed}{ending}"
