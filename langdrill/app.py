"""
Learning Controller: wires settings, storage, content and the engine
for the active language.
"""

from __future__ import annotations

import random

from loguru import logger

from langdrill.config import Settings
from langdrill.content.deck import ContentStore
from langdrill.content.languages import DEFAULT_LANGUAGE, LanguageDefinition, resolve_language
from langdrill.core.engine import LearningEngine
from langdrill.core.errors import ConfigurationError
from langdrill.core.judge import HttpGradingJudge
from langdrill.core.question_generator import QuestionGenerator
from langdrill.storage.profile_store import ProfileStore


class LearningController:
    """Owns the store, content and engine for one active language."""

    def __init__(self, settings: Settings, rng: random.Random | None = None):
        self.settings = settings
        self.rng = rng or random.Random()
        self.store: ProfileStore | None = None
        self.content: ContentStore | None = None
        self.engine: LearningEngine | None = None
        self.judge: HttpGradingJudge | None = None
        self._retired_judges: list[HttpGradingJudge] = []

        language = resolve_language(settings.default_language) or DEFAULT_LANGUAGE
        self.language = language
        self._load(language)

    @staticmethod
    def resolve(value: str) -> LanguageDefinition:
        """
        Raises:
            ConfigurationError: If the language is not supported
        """
        language = resolve_language(value)
        if language is None:
            raise ConfigurationError(f"Unsupported language: {value!r}")
        return language

    def _load(self, language: LanguageDefinition) -> None:
        settings = self.settings
        self.language = language
        self.store = ProfileStore(
            settings.data_dir,
            language.code,
            debounce_seconds=settings.save_debounce_seconds,
        )
        self.content = ContentStore(language, settings.data_dir)
        if self.judge is not None:
            self._retired_judges.append(self.judge)
        self.judge = self._build_judge()
        self.engine = LearningEngine(
            self.store,
            self.content.get_deck(),
            generator=QuestionGenerator(self.rng, settings.reference_language),
            judge=self.judge,
            rng=self.rng,
            recent_limit=settings.recent_limit,
            judge_timeout=settings.judge_timeout_seconds,
            fast_ms=settings.fast_answer_ms,
        )

    def _build_judge(self) -> HttpGradingJudge | None:
        mode = self.store.profile.settings.mode
        if mode == "strict-free" or not self.settings.has_judge_configured():
            return None
        logger.info(f"Using grading judge at {self.settings.judge_url} ({mode})")
        return HttpGradingJudge(
            self.settings.judge_url,
            api_key=self.settings.judge_api_key,
            model=self.settings.judge_model,
            timeout_seconds=self.settings.judge_timeout_seconds,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    def switch_language(self, language: LanguageDefinition) -> bool:
        """Flush the current profile and load another language. False if unchanged."""
        if language.code == self.language.code:
            return False
        if self.store:
            self.store.flush()
        self._load(language)
        return True

    def enable(self, language: LanguageDefinition | str) -> bool:
        """
        Enable practice for a language, switching to it first if needed.

        Returns:
            True if the active language changed
        """
        if isinstance(language, str):
            language = self.resolve(language)
        switched = self.switch_language(language)
        self.set_enabled(True)
        if switched:
            self.refresh_content()
        return switched

    def set_enabled(self, enabled: bool) -> bool:
        self.store.profile.enabled = enabled
        self.store.save_soon()
        return enabled

    def toggle_enabled(self) -> bool:
        return self.set_enabled(not self.store.profile.enabled)

    def refresh_content(self) -> int:
        """Reload cached deck files into the engine. Returns items added."""
        added = self.content.refresh()
        self.engine.set_deck(self.content.get_deck())
        return added

    async def close(self) -> None:
        """Flush the profile and release every judge this controller built."""
        if self.store:
            self.store.flush()
        if self.judge:
            self._retired_judges.append(self.judge)
            self.judge = None
        while self._retired_judges:
            await self._retired_judges.pop().aclose()
