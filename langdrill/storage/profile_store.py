"""
File-backed Profile Store.

Directory layout under the base directory (default ~/.langdrill):

    profiles/<lang>.json              learner profile, camelCase JSON
    logs/<lang>-YYYY-MM-DD.jsonl      one attempt per line
    caches/                           downloaded deck files
    attribution/SOURCES.md            data-source notes

Profile writes go through a temp file and os.replace, so a crash never
leaves a half-written profile behind.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from langdrill.core.errors import ConfigurationError
from langdrill.core.models import AttemptLogEvent, Profile, default_profile

from .debounce import DebouncedSaver

SUBDIRECTORIES = ("profiles", "caches", "logs", "attribution")

ATTRIBUTION_TEXT = """# Data Sources

Built-in decks are authored for langdrill. No external datasets are used yet.

When adding external sources (Tatoeba, Wiktionary, wordfreq), record their
license and attribution here.
"""


def _now_ms() -> int:
    return int(datetime.now().timestamp() * 1000)


class ProfileStore:
    """Owns the profile for one language and everything written next to it."""

    def __init__(
        self,
        base_dir: Path | str,
        lang: str,
        debounce_seconds: float = 1.5,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the store and load the profile.

        Args:
            base_dir: Root data directory; created if missing
            lang: Language code of the profile
            debounce_seconds: Delay applied by save_soon()
            clock: Monotonic seconds source for the debouncer

        Raises:
            ConfigurationError: If the directory tree cannot be created
        """
        self.base_dir = Path(base_dir).expanduser()
        self.lang = lang
        self.ensure_dirs()
        self.profile = self.load(lang)
        self._saver = DebouncedSaver(self.save, debounce_seconds, clock)
        self.ensure_attribution()
        logger.info(f"ProfileStore initialized at {self.base_dir} ({lang})")

    # =========================================================================
    # Paths
    # =========================================================================

    @property
    def profiles_dir(self) -> Path:
        return self.base_dir / "profiles"

    @property
    def logs_dir(self) -> Path:
        return self.base_dir / "logs"

    @property
    def caches_dir(self) -> Path:
        return self.base_dir / "caches"

    def profile_path(self, lang: str) -> Path:
        return self.profiles_dir / f"{lang}.json"

    def log_path(self, lang: str, ts: int) -> Path:
        day = datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d")
        return self.logs_dir / f"{lang}-{day}.jsonl"

    def ensure_dirs(self) -> None:
        try:
            for name in SUBDIRECTORIES:
                (self.base_dir / name).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create data directory {self.base_dir}: {e}") from e

    # =========================================================================
    # Profile I/O
    # =========================================================================

    def load(self, lang: str) -> Profile:
        """
        Read a profile from disk.

        A missing file gives a fresh default profile; so does a file that
        is not valid JSON or not a JSON object. Individual bad fields fall
        back to their defaults.
        """
        path = self.profile_path(lang)
        if not path.exists():
            return default_profile(lang, _now_ms())
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("profile is not a JSON object")
            raw["lang"] = lang
            return Profile.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Discarding unreadable profile {path}: {e}")
            return default_profile(lang, _now_ms())

    def save(self) -> None:
        """Write the profile atomically."""
        path = self.profile_path(self.profile.lang)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(
                json.dumps(self.profile.to_json_dict(), indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Saved profile {path}")

    def save_soon(self) -> None:
        self._saver.schedule()

    def poll(self) -> bool:
        """Perform a pending save whose delay has elapsed. Failures stay pending."""
        try:
            return self._saver.poll()
        except OSError as e:
            logger.error(f"Failed to save profile: {e}")
            return False

    def flush(self) -> bool:
        """Save now and clear any pending request. Returns False if the write failed."""
        try:
            self._saver.flush()
        except OSError as e:
            logger.error(f"Failed to save profile: {e}")
            return False
        return True

    @property
    def save_pending(self) -> bool:
        return self._saver.pending

    # =========================================================================
    # Attempt log and attribution
    # =========================================================================

    def append_attempt(self, event: AttemptLogEvent) -> None:
        """Append one attempt to the day's JSONL log."""
        path = self.log_path(event.lang, event.ts)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), ensure_ascii=False) + "\n")

    def ensure_attribution(self) -> None:
        path = self.base_dir / "attribution" / "SOURCES.md"
        if path.exists():
            return
        try:
            path.write_text(ATTRIBUTION_TEXT, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write {path}: {e}")
