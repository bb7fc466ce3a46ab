"""
Question Generator: turn one Item into one exercise.

Variant choice depends on the item (type, tags, length) and on the
learner's ability score. Randomness comes from an injectable
``random.Random`` so sessions can be replayed in tests.

Decision order (first applicable branch wins):
1. article choice      - item tagged with a grammatical-gender marker (p=0.45)
2. reorder             - sentence of 3-8 words (p=0.35 able / 0.15 otherwise)
3. cloze               - sentence of 3+ words (p=0.5 able / 0.2 otherwise)
4. production          - able learner and a translation exists
5. multiple choice     - a translation exists and 2+ distinct options
6. comprehension       - type the translation of the prompt
"""

from __future__ import annotations

import random
import re
from collections.abc import Sequence
from dataclasses import dataclass

from langdrill.content.languages import get_articles, get_language_label

from .models import (
    ArticleQuestion,
    ClozeQuestion,
    Item,
    ItemKind,
    MultipleChoiceQuestion,
    Profile,
    Question,
    QuestionMeta,
    ReorderQuestion,
    TypeAnswerQuestion,
)

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]")
# Optional opening quote/bracket, a run of letters, trailing punctuation
_CLOZE_TOKEN = re.compile(r"^([\"'(\[]?)([^\W\d_]+)(\W*)$")

CLOZE_BLANK = "___"


@dataclass(frozen=True)
class GeneratorConfig:
    """Probabilities and thresholds for variant selection."""

    production_threshold: float = 0.45
    article_probability: float = 0.45
    reorder_probability_high: float = 0.35
    reorder_probability_low: float = 0.15
    cloze_probability_high: float = 0.5
    cloze_probability_low: float = 0.2
    reorder_min_words: int = 3
    reorder_max_words: int = 8
    cloze_min_words: int = 3
    cloze_min_letters: int = 3
    max_options: int = 4
    default_ability: float = 0.2


class QuestionGenerator:
    """Builds exercises from items."""

    def __init__(
        self,
        rng: random.Random | None = None,
        reference_language: str = "English",
        config: GeneratorConfig | None = None,
    ):
        self.rng = rng or random.Random()
        self.reference_language = reference_language
        self.config = config or GeneratorConfig()

    def generate(self, item: Item, profile: Profile, deck: Sequence[Item]) -> Question:
        """
        Produce one question for an item.

        Args:
            item: The selected item
            profile: Learner profile (ability drives variant choice)
            deck: Full deck, used as the distractor pool

        Returns:
            One of the five question variants
        """
        cfg = self.config
        ability = profile.ability.score if profile.ability.score is not None else cfg.default_ability
        able = ability >= cfg.production_threshold
        words = item.word_count
        is_sentence = item.kind == ItemKind.SENTENCE

        article = self._article_for(item, profile.lang)
        if article and self.rng.random() < cfg.article_probability:
            return ArticleQuestion(
                item_id=item.id,
                noun=item.prompt,
                correct=article,
                choices=get_articles(profile.lang),
                meta=self._meta(item, "articles"),
            )

        allow_reorder = is_sentence and cfg.reorder_min_words <= words <= cfg.reorder_max_words
        reorder_p = cfg.reorder_probability_high if able else cfg.reorder_probability_low
        if allow_reorder and self.rng.random() < reorder_p:
            reorder = self._make_reorder(item)
            if reorder:
                return reorder

        allow_cloze = is_sentence and words >= cfg.cloze_min_words
        cloze_p = cfg.cloze_probability_high if able else cfg.cloze_probability_low
        if allow_cloze and self.rng.random() < cloze_p:
            cloze = self._make_cloze(item)
            if cloze:
                return cloze

        if able and item.translation:
            target = get_language_label(profile.lang)
            return TypeAnswerQuestion(
                item_id=item.id,
                prompt=f'Translate to {target}: "{item.translation}"',
                answers=(item.prompt,),
                meta=self._meta(item, "sentence_production"),
            )

        if item.translation:
            multi = self._make_multiple_choice(item, deck)
            if multi:
                return multi

        answers = _unique(([item.translation] if item.translation else []) + list(item.answers))
        return TypeAnswerQuestion(
            item_id=item.id,
            prompt=f'Translate to {self.reference_language}: "{item.prompt}"',
            answers=tuple(answers) or (item.prompt,),
            meta=self._meta(item, "sentence_comprehension"),
        )

    # =========================================================================
    # Variant builders
    # =========================================================================

    def _make_multiple_choice(self, item: Item, deck: Sequence[Item]) -> MultipleChoiceQuestion | None:
        correct = item.translation
        if not correct:
            return None
        options = [correct]
        pool = [other for other in deck if other.id != item.id and other.translation]
        self.rng.shuffle(pool)
        for candidate in pool:
            if len(options) >= self.config.max_options:
                break
            if candidate.translation not in options:
                options.append(candidate.translation)
        if len(options) < 2:
            return None
        self.rng.shuffle(options)
        return MultipleChoiceQuestion(
            item_id=item.id,
            prompt=f'Translate: "{item.prompt}"',
            options=tuple(options),
            correct_index=options.index(correct),
            meta=self._meta(item, "sentence_comprehension"),
        )

    def _make_cloze(self, item: Item) -> ClozeQuestion | None:
        tokens = item.prompt.split(" ")
        candidates = []
        for index, token in enumerate(tokens):
            match = _CLOZE_TOKEN.match(token)
            if not match:
                continue
            word = match.group(2)
            if len(word) < self.config.cloze_min_letters or word != word.lower():
                continue
            candidates.append((index, match))
        if not candidates:
            return None

        index, match = self.rng.choice(candidates)
        prefix, word, suffix = match.group(1), match.group(2), match.group(3)
        blanked = list(tokens)
        blanked[index] = f"{prefix}{CLOZE_BLANK}{suffix}"
        return ClozeQuestion(
            item_id=item.id,
            prompt=f"Fill in: {' '.join(blanked)}",
            answers=(word,),
            meta=self._meta(item, "grammar_fill"),
        )

    def _make_reorder(self, item: Item) -> ReorderQuestion | None:
        tokens = _TERMINAL_PUNCTUATION.sub("", item.prompt).split()
        if len(tokens) < self.config.reorder_min_words:
            return None
        shuffled = self._shuffled(tokens)
        if shuffled == tokens:
            shuffled = self._shuffled(tokens)
        if shuffled == tokens:
            # Still canonical after a reshuffle: rotate so the order differs
            shuffled = tokens[1:] + tokens[:1]
        return ReorderQuestion(
            item_id=item.id,
            tokens=tuple(shuffled),
            correct_sentence=" ".join(tokens),
            meta=self._meta(item, "word_order"),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _shuffled(self, tokens: list[str]) -> list[str]:
        copy = list(tokens)
        self.rng.shuffle(copy)
        return copy

    @staticmethod
    def _article_for(item: Item, lang: str) -> str | None:
        articles = get_articles(lang or item.lang)
        return next((article for article in articles if article in item.tags), None)

    @staticmethod
    def _meta(item: Item, skill: str) -> QuestionMeta:
        return QuestionMeta(
            tags=item.tags,
            skill=skill,
            source_prompt=item.prompt,
            source_translation=item.translation,
        )


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result
