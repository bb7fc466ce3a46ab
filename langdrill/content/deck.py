"""
Content Store: the deck the engine draws from.

The deck is the builtin deck for a language merged with any cached deck
files in `<base_dir>/caches/<lang>*.json`. Files are applied in name
order; an item in a later source replaces an earlier one with the same id.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from langdrill.core.models import Item

from .languages import LanguageDefinition, get_builtin_deck


def merge_decks(*sources: Iterable[Item]) -> list[Item]:
    """Merge item sources by id; later sources win, first-seen order is kept."""
    by_id: dict[str, Item] = {}
    for source in sources:
        for item in source:
            by_id[item.id] = item
    return list(by_id.values())


def load_deck_file(path: Path, lang: str) -> list[Item]:
    """
    Parse one cached deck file.

    Accepts either a JSON list of items or an object with an "items" list.

    Raises:
        OSError, ValueError, KeyError: If the file is unreadable or malformed
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    entries = raw.get("items") if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ValueError(f"{path.name} has no item list")
    return [Item.from_dict(entry, lang=lang) for entry in entries]


class ContentStore:
    """Builtin plus cached items for one language."""

    def __init__(self, language: LanguageDefinition, base_dir: Path | str | None = None):
        self.language = language
        self.cache_dir = Path(base_dir).expanduser() / "caches" if base_dir else None
        self._cached: dict[Path, list[Item]] = {}
        self._deck: list[Item] = []
        self.refresh()

    def get_deck(self) -> list[Item]:
        return self._deck

    def __len__(self) -> int:
        return len(self._deck)

    def cache_files(self) -> list[Path]:
        if self.cache_dir is None or not self.cache_dir.is_dir():
            return []
        return sorted(self.cache_dir.glob(f"{self.language.code}*.json"))

    def refresh(self) -> int:
        """
        Reload cached deck files and rebuild the merged deck.

        A file that fails to parse is skipped with a warning; items
        previously loaded from it stay in the deck.

        Returns:
            Number of items added compared to the previous deck
        """
        before = {item.id for item in self._deck}
        loaded: dict[Path, list[Item]] = {}
        for path in self.cache_files():
            try:
                loaded[path] = load_deck_file(path, self.language.code)
            except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping corrupt deck file {path}: {e}")
                if path in self._cached:
                    loaded[path] = self._cached[path]
        self._cached = loaded

        self._deck = merge_decks(get_builtin_deck(self.language.code), *loaded.values())
        added = sum(1 for item in self._deck if item.id not in before)
        logger.debug(f"Deck for {self.language.code}: {len(self._deck)} items ({added} new)")
        return added
