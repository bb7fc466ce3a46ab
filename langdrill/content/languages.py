"""
Supported target languages and their builtin decks.

Builtin decks ship as JSON under ``langdrill/content/data/``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib.resources import files

from loguru import logger

from langdrill.core.models import Item


@dataclass(frozen=True)
class LanguageDefinition:
    """A language the engine can drill."""

    code: str
    name: str
    aliases: tuple[str, ...] = ()
    # Grammatical-gender markers used for article-choice questions
    articles: tuple[str, ...] = ()
    deck_file: str | None = None


DUTCH = LanguageDefinition(
    code="nl",
    name="Dutch",
    aliases=("dutch", "nederlands", "nl"),
    articles=("de", "het"),
    deck_file="nl.json",
)

LANGUAGES: tuple[LanguageDefinition, ...] = (DUTCH,)

DEFAULT_LANGUAGE = DUTCH


def _normalize_key(value: str) -> str:
    return value.strip().lower()


def list_languages() -> list[LanguageDefinition]:
    return list(LANGUAGES)


def get_language(code: str) -> LanguageDefinition | None:
    key = _normalize_key(code)
    return next((lang for lang in LANGUAGES if _normalize_key(lang.code) == key), None)


def resolve_language(value: str | None) -> LanguageDefinition | None:
    """Find a language by code, alias, or display name."""
    if not value:
        return None
    key = _normalize_key(value)
    for lang in LANGUAGES:
        if key == _normalize_key(lang.code) or any(_normalize_key(a) == key for a in lang.aliases):
            return lang
    return next((lang for lang in LANGUAGES if _normalize_key(lang.name) == key), None)


def get_language_label(code: str) -> str:
    language = get_language(code)
    if language:
        return language.name
    return code.upper() if code else "Unknown"


def get_articles(code: str) -> tuple[str, ...]:
    language = get_language(code)
    return language.articles if language else ()


@lru_cache(maxsize=None)
def get_builtin_deck(code: str) -> tuple[Item, ...]:
    """Load the builtin deck for a language (empty for unknown languages)."""
    language = get_language(code)
    if language is None or language.deck_file is None:
        return ()
    resource = files("langdrill.content") / "data" / language.deck_file
    raw = json.loads(resource.read_text(encoding="utf-8"))
    items = tuple(Item.from_dict(entry, lang=language.code) for entry in raw.get("items", []))
    logger.debug(f"Loaded {len(items)} builtin items for {language.code}")
    return items
