"""
Unit tests for hints and learning notes.
"""

from langdrill.core.hints import hint, learning_note, mask_token
from langdrill.core.models import (
    ArticleQuestion,
    ClozeQuestion,
    MultipleChoiceQuestion,
    QuestionMeta,
    ReorderQuestion,
    TypeAnswerQuestion,
)


class TestMaskToken:
    """Tests for masked-letter patterns."""

    def test_masks_after_first_letter(self):
        assert mask_token("house") == "h____"

    def test_keeps_surrounding_punctuation(self):
        assert mask_token('"koffie."') == '"k_____."'

    def test_single_letter_unchanged(self):
        assert mask_token("I") == "I"


class TestHints:
    """Tests for per-variant hints."""

    def test_multiple_choice_does_not_reveal_option(self):
        question = MultipleChoiceQuestion(
            item_id="v-huis",
            prompt='Translate: "huis"',
            options=("bread", "house", "city", "water"),
            correct_index=1,
        )

        text = hint(question)

        assert "house" not in text
        assert 'Starts with "ho"' in text
        assert "5 letters" in text
        assert "Pattern: h____" in text

    def test_multiple_choice_short_option_falls_back(self):
        question = MultipleChoiceQuestion(
            item_id="x", prompt="p", options=("to", "at"), correct_index=0,
        )

        assert hint(question) == "Pick A-D or 1-4."

    def test_article_diminutive(self):
        question = ArticleQuestion(
            item_id="v-meisje", noun="meisje", correct="het", choices=("de", "het"),
            meta=QuestionMeta(source_translation="girl"),
        )

        text = hint(question)

        assert "Diminutive" in text
        assert "Meaning: girl." in text

    def test_article_default_rule(self):
        question = ArticleQuestion(item_id="v-tafel", noun="tafel", correct="de", choices=("de", "het"))

        assert "Most nouns take 'de'" in hint(question)

    def test_reorder(self):
        question = ReorderQuestion(
            item_id="s", tokens=("groot", "Het", "is", "huis"),
            correct_sentence="Het huis is groot",
            meta=QuestionMeta(source_translation="The house is big."),
        )

        text = hint(question)

        assert text.startswith("4 words")
        assert 'Starts with "Het"' in text
        assert 'Ends with "groot"' in text
        assert "Meaning: The house is big." in text

    def test_sentence_answer(self):
        question = TypeAnswerQuestion(
            item_id="s", prompt='Translate to English: "Ik drink koffie."',
            answers=("I drink coffee.",),
            meta=QuestionMeta(source_translation="I drink coffee."),
        )

        text = hint(question)

        assert "3 words" in text
        assert "Pattern: I d____ c_____." in text
        # Meaning equals the answer, so it is not offered
        assert "Meaning" not in text

    def test_cloze_offers_meaning(self):
        question = ClozeQuestion(
            item_id="s", prompt="Fill in: Ik ___ koffie.", answers=("drink",),
            meta=QuestionMeta(source_translation="I drink coffee."),
        )

        text = hint(question)

        assert 'Starts with "dr"' in text
        assert "Meaning: I drink coffee." in text


class TestLearningNote:
    """Tests for post-answer notes."""

    def test_article_note(self):
        question = ArticleQuestion(
            item_id="v-huis", noun="huis", correct="het", choices=("de", "het"),
            meta=QuestionMeta(source_translation="house"),
        )

        assert learning_note(question) == "Learn: Article: het huis. Meaning: house."

    def test_reorder_note(self):
        question = ReorderQuestion(
            item_id="s", tokens=("koffie", "Ik", "drink"), correct_sentence="Ik drink koffie",
        )

        assert learning_note(question) == "Learn: Sentence: Ik drink koffie."

    def test_text_note_prefers_source_prompt(self):
        question = ClozeQuestion(
            item_id="s", prompt="Fill in: Ik ___ koffie.", answers=("drink",),
            meta=QuestionMeta(source_prompt="Ik drink koffie.", source_translation="I drink coffee."),
        )

        assert learning_note(question) == "Learn: Sentence: Ik drink koffie. Meaning: I drink coffee."

    def test_text_note_falls_back_to_answer(self):
        question = TypeAnswerQuestion(item_id="x", prompt="p", answers=("dag",))

        assert learning_note(question) == "Learn: Answer: dag."

    def test_nothing_to_teach(self):
        question = MultipleChoiceQuestion(item_id="x", prompt="p", options=("a", "b"), correct_index=0)

        assert learning_note(question) is None
