"""
Shared data classes for the drill engine.

Persisted state (Profile and everything under it) uses pydantic models so the
JSON file round-trips losslessly and tolerates missing or malformed fields.
Content items and per-turn values (Question, GradeResult) are plain frozen
dataclasses: they are never persisted.

JSON layout of a profile (camelCase keys):

    {
      "version": 1, "lang": "nl", "enabled": true,
      "stats": {"totalAttempts": 3, "correctAttempts": 2, "streakDays": 1,
                "lastActiveAt": 1700000000000, "avgLatencyMs7d": 2400.0},
      "ability": {"estimate": "A1", "score": 0.31, "confidence": 0.05,
                  "subskills": {"grammar_fill": {"score": 0.6, "samples": 3}},
                  "updatedAt": 1700000000000},
      "deck": {"knownCardIds": [...], "srs": {"<id>": {...}},
               "suspendedCardIds": []},
      "settings": {"mode": "strict-free", "dailyNewCardsTarget": 8,
                   "overlayAutoHideOnIdle": true,
                   "maxOverlaySecondsAfterIdle": 10}
    }
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

PROFILE_VERSION = 1
MIN_EASE = 1.3
DEFAULT_EASE = 2.5

CefrEstimate = Literal["A0", "A1", "A2", "B1", "B2", "C1", "C2", "unknown"]
LearningMode = Literal["strict-free", "shared-llm", "local-llm"]

CEFR_LEVELS: tuple[str, ...] = ("A0", "A1", "A2", "B1", "B2", "C1", "C2", "unknown")
LEARNING_MODES: tuple[str, ...] = ("strict-free", "shared-llm", "local-llm")


# =============================================================================
# Coercion helpers
# =============================================================================


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _as_int(value: Any, default: int) -> int:
    return int(value) if _is_number(value) else default


def _as_float(value: Any, default: float) -> float:
    return float(value) if _is_number(value) else default


def clamp01(value: float) -> float:
    """Clamp to [0, 1]; NaN becomes 0."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return 0.0
    return min(1.0, max(0.0, float(value)))


def _clamp_int(value: Any, default: int, low: int, high: int) -> int:
    if not _is_number(value):
        return default
    return min(high, max(low, int(value)))


class _CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Spaced Repetition State
# =============================================================================


class SrsState(_CamelModel):
    """SM-2 scheduling state for a single item. Immutable; see scheduler."""

    model_config = ConfigDict(frozen=True)

    due_at: int = 0
    interval_days: int = 0
    ease: float = DEFAULT_EASE
    reps: int = 0
    lapses: int = 0
    last_reviewed_at: int | None = None
    last_quality: int | None = None

    @field_validator("due_at", mode="before")
    @classmethod
    def _due_at(cls, value: Any) -> int:
        return _as_int(value, 0)

    @field_validator("interval_days", "reps", "lapses", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return max(0, _as_int(value, 0))

    @field_validator("ease", mode="before")
    @classmethod
    def _ease(cls, value: Any) -> float:
        return max(MIN_EASE, _as_float(value, DEFAULT_EASE))

    @field_validator("last_reviewed_at", "last_quality", mode="before")
    @classmethod
    def _optional_int(cls, value: Any) -> int | None:
        return int(value) if _is_number(value) else None


# =============================================================================
# Profile
# =============================================================================


class ProfileStats(_CamelModel):
    total_attempts: int = 0
    correct_attempts: int = 0
    streak_days: int = 0
    last_active_at: int = 0
    avg_latency_ms_7d: float | None = None

    @field_validator("total_attempts", "correct_attempts", "streak_days", "last_active_at", mode="before")
    @classmethod
    def _counter(cls, value: Any) -> int:
        return max(0, _as_int(value, 0))

    @field_validator("avg_latency_ms_7d", mode="before")
    @classmethod
    def _latency(cls, value: Any) -> float | None:
        return float(value) if _is_number(value) else None


class SkillScore(_CamelModel):
    """Smoothed score and sample count for one skill."""

    model_config = ConfigDict(frozen=True)

    score: float = 0.5
    samples: int = 0

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> float:
        return clamp01(_as_float(value, 0.5))

    @field_validator("samples", mode="before")
    @classmethod
    def _samples(cls, value: Any) -> int:
        return max(0, _as_int(value, 0))


class Ability(_CamelModel):
    """Learner proficiency estimate. Replaced wholesale on each update."""

    model_config = ConfigDict(frozen=True)

    estimate: CefrEstimate = "unknown"
    score: float = 0.2
    confidence: float = 0.0
    subskills: dict[str, SkillScore] = Field(default_factory=dict)
    updated_at: int = 0

    @field_validator("estimate", mode="before")
    @classmethod
    def _estimate(cls, value: Any) -> str:
        return value if value in CEFR_LEVELS else "unknown"

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> float:
        return clamp01(_as_float(value, 0.2))

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, value: Any) -> float:
        return clamp01(_as_float(value, 0.0))

    @field_validator("subskills", mode="before")
    @classmethod
    def _subskills(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items() if isinstance(v, (dict, SkillScore))}

    @field_validator("updated_at", mode="before")
    @classmethod
    def _updated_at(cls, value: Any) -> int:
        return _as_int(value, 0)


class DeckState(_CamelModel):
    known_card_ids: list[str] = Field(default_factory=list)
    srs: dict[str, SrsState] = Field(default_factory=dict)
    suspended_card_ids: list[str] = Field(default_factory=list)

    @field_validator("known_card_ids", "suspended_card_ids", mode="before")
    @classmethod
    def _id_list(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(v) for v in value if isinstance(v, str)]

    @field_validator("srs", mode="before")
    @classmethod
    def _srs(cls, value: Any) -> dict:
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items() if isinstance(v, (dict, SrsState))}


class ProfileSettings(_CamelModel):
    """Learner preferences. Only consumed by collaborators outside the engine."""

    mode: LearningMode = "strict-free"
    daily_new_cards_target: int = 8
    overlay_auto_hide_on_idle: bool = True
    max_overlay_seconds_after_idle: int = 10

    @field_validator("mode", mode="before")
    @classmethod
    def _mode(cls, value: Any) -> str:
        return value if value in LEARNING_MODES else "strict-free"

    @field_validator("daily_new_cards_target", mode="before")
    @classmethod
    def _daily_target(cls, value: Any) -> int:
        return _clamp_int(value, 8, 1, 50)

    @field_validator("overlay_auto_hide_on_idle", mode="before")
    @classmethod
    def _auto_hide(cls, value: Any) -> bool:
        return value is not False

    @field_validator("max_overlay_seconds_after_idle", mode="before")
    @classmethod
    def _idle_seconds(cls, value: Any) -> int:
        return _clamp_int(value, 10, 0, 60)


class Profile(_CamelModel):
    """All persisted learner state for one language."""

    version: int = PROFILE_VERSION
    lang: str
    enabled: bool = False
    stats: ProfileStats = Field(default_factory=ProfileStats)
    ability: Ability = Field(default_factory=Ability)
    deck: DeckState = Field(default_factory=DeckState)
    settings: ProfileSettings = Field(default_factory=ProfileSettings)

    @field_validator("version", mode="before")
    @classmethod
    def _version(cls, value: Any) -> int:
        return PROFILE_VERSION

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled(cls, value: Any) -> bool:
        return bool(value) if value is not None else False

    @field_validator("stats", "ability", "deck", "settings", mode="before")
    @classmethod
    def _section(cls, value: Any) -> Any:
        # A section that isn't an object falls back to its defaults
        return value if isinstance(value, (dict, BaseModel)) else {}

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def default_profile(lang: str, now: int = 0) -> Profile:
    """Fresh profile for a learner who has never practised this language."""
    return Profile(lang=lang, ability=Ability(updated_at=now))


# =============================================================================
# Content Items
# =============================================================================


class ItemKind(str, Enum):
    """What an item teaches."""

    SENTENCE = "sentence"
    VOCAB = "vocab"
    GRAMMAR = "grammar"

    @classmethod
    def parse(cls, value: str) -> ItemKind:
        if value == "vocabulary":
            return cls.VOCAB
        return cls(value)


@dataclass(frozen=True)
class Item:
    """
    A unit of study content.

    `prompt` is in the target language; `answer` holds the accepted
    reference-language answers and `translation` the display translation.
    """

    id: str
    lang: str
    kind: ItemKind
    prompt: str
    answer: str | tuple[str, ...]
    translation: str | None = None
    source: str = "builtin"
    tags: tuple[str, ...] = ()
    difficulty: float | None = None
    attribution: str | None = None

    @classmethod
    def from_dict(cls, data: dict, lang: str | None = None) -> Item:
        """
        Create an Item from a deck JSON entry.

        Args:
            data: Dictionary from a deck file
            lang: Language code used when the entry has none

        Returns:
            Item instance
        """
        metadata = data.get("metadata") or {}
        answer = data.get("answer", "")
        if isinstance(answer, list):
            answer = tuple(str(a) for a in answer)
        tags = data.get("tags", metadata.get("tags")) or []
        return cls(
            id=str(data["id"]),
            lang=data.get("lang") or lang or "",
            kind=ItemKind.parse(data.get("type") or data.get("kind") or "sentence"),
            prompt=data["prompt"],
            answer=answer,
            translation=data.get("translation"),
            source=data.get("source", "builtin"),
            tags=tuple(tags),
            difficulty=metadata.get("difficulty"),
            attribution=metadata.get("authorAttribution"),
        )

    @property
    def answers(self) -> tuple[str, ...]:
        if isinstance(self.answer, tuple):
            return self.answer
        return (self.answer,) if self.answer else ()

    @property
    def word_count(self) -> int:
        return len(self.prompt.split())


# =============================================================================
# Questions
# =============================================================================


class QuestionType(str, Enum):
    """Exercise shapes the generator can emit."""

    MULTIPLE_CHOICE = "multiple_choice"
    TYPE_ANSWER = "type_answer"
    CLOZE = "cloze"
    ARTICLE = "article_choice"
    REORDER = "reorder"


@dataclass(frozen=True)
class QuestionMeta:
    tags: tuple[str, ...] = ()
    skill: str | None = None
    source_prompt: str | None = None
    source_translation: str | None = None


@dataclass(frozen=True)
class MultipleChoiceQuestion:
    item_id: str
    prompt: str
    options: tuple[str, ...]
    correct_index: int
    meta: QuestionMeta = field(default_factory=QuestionMeta)
    type: QuestionType = field(default=QuestionType.MULTIPLE_CHOICE, init=False)

    @property
    def expected_answer(self) -> str:
        if 0 <= self.correct_index < len(self.options):
            return self.options[self.correct_index]
        return ""


@dataclass(frozen=True)
class TypeAnswerQuestion:
    item_id: str
    prompt: str
    answers: tuple[str, ...]
    meta: QuestionMeta = field(default_factory=QuestionMeta)
    type: QuestionType = field(default=QuestionType.TYPE_ANSWER, init=False)

    @property
    def expected_answer(self) -> str:
        return self.answers[0] if self.answers else ""


@dataclass(frozen=True)
class ClozeQuestion:
    item_id: str
    prompt: str
    answers: tuple[str, ...]
    meta: QuestionMeta = field(default_factory=QuestionMeta)
    type: QuestionType = field(default=QuestionType.CLOZE, init=False)

    @property
    def expected_answer(self) -> str:
        return self.answers[0] if self.answers else ""


@dataclass(frozen=True)
class ArticleQuestion:
    item_id: str
    noun: str
    correct: str
    choices: tuple[str, ...]
    meta: QuestionMeta = field(default_factory=QuestionMeta)
    type: QuestionType = field(default=QuestionType.ARTICLE, init=False)

    @property
    def prompt(self) -> str:
        return f"{' or '.join(self.choices)}? ___ {self.noun}"

    @property
    def expected_answer(self) -> str:
        return self.correct


@dataclass(frozen=True)
class ReorderQuestion:
    item_id: str
    tokens: tuple[str, ...]
    correct_sentence: str
    meta: QuestionMeta = field(default_factory=QuestionMeta)
    type: QuestionType = field(default=QuestionType.REORDER, init=False)

    @property
    def prompt(self) -> str:
        return f"Put in order: {' / '.join(self.tokens)}"

    @property
    def expected_answer(self) -> str:
        return self.correct_sentence


Question = Union[
    MultipleChoiceQuestion,
    TypeAnswerQuestion,
    ClozeQuestion,
    ArticleQuestion,
    ReorderQuestion,
]

TextAnswerQuestion = Union[TypeAnswerQuestion, ClozeQuestion]


def question_to_dict(question: Question) -> dict[str, Any]:
    """Plain-dict form of a question, for judges and logs."""
    data = asdict(question)
    data["type"] = question.type.value
    data["prompt"] = question.prompt
    return data


# =============================================================================
# Turn Results
# =============================================================================


@dataclass(frozen=True)
class GradeResult:
    """Outcome of grading one answer."""

    correct: bool
    quality: int  # 0-5 SM-2 scale
    explanation: str
    expected_answer: str | None = None
    normalized_user_answer: str | None = None


@dataclass(frozen=True)
class AttemptLogEvent:
    """One line of the attempt log."""

    ts: int
    lang: str
    item_id: str
    question_type: str
    prompt: str
    user_answer: str
    correct: bool
    latency_ms: int
    quality: int
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


@dataclass
class EngineStatus:
    """Snapshot for status lines and the `status` command."""

    lang: str
    ability: Ability
    due_count: int
    new_count: int
    streak_days: int
    enabled: bool
    daily_new_cards_target: int
    new_today: int
