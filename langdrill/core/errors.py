"""
Exception hierarchy for langdrill.

Only configuration problems are raised to callers. Degraded collaborators
(grading judge, cached deck files, log writes) recover locally.
"""

from __future__ import annotations


class LangdrillError(Exception):
    """Base class for all langdrill errors."""


class ConfigurationError(LangdrillError):
    """Fatal setup problem: unusable data directory, unknown language."""


class EmptyDeckError(ConfigurationError):
    """The loaded deck has no items, so no question can be produced."""

    def __init__(self, lang: str | None = None):
        self.lang = lang
        label = f" for language '{lang}'" if lang else ""
        super().__init__(f"No items available{label}; the deck is empty.")
