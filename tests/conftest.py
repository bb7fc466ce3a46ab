"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from langdrill.core.models import Item, ItemKind, default_profile  # noqa: E402

DAY_MS = 24 * 60 * 60 * 1000


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (engine, storage and content together)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Helpers
# =============================================================================


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, now_ms: int):
        self.now = now_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 0, days: float = 0) -> None:
        self.now += int(ms + days * DAY_MS)


class MemoryStore:
    """In-memory profile holder with the same surface the engine uses."""

    def __init__(self, lang: str = "nl", now: int = 0):
        self.profile = default_profile(lang, now)
        self.save_requests = 0
        self.attempts = []
        self.fail_io = False

    def save_soon(self) -> None:
        if self.fail_io:
            raise OSError("disk full")
        self.save_requests += 1

    def append_attempt(self, event) -> None:
        if self.fail_io:
            raise OSError("disk full")
        self.attempts.append(event)


def make_item(
    item_id: str,
    prompt: str,
    answer="",
    translation=None,
    kind: ItemKind = ItemKind.VOCAB,
    tags=(),
) -> Item:
    return Item(
        id=item_id,
        lang="nl",
        kind=kind,
        prompt=prompt,
        answer=tuple(answer) if isinstance(answer, list) else answer,
        translation=translation,
        tags=tuple(tags),
    )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def start_ms():
    """10:00 local time on a fixed Monday."""
    return int(datetime(2024, 3, 11, 10, 0, 0).timestamp() * 1000)


@pytest.fixture
def clock(start_ms):
    return FakeClock(start_ms)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def memory_store(start_ms):
    return MemoryStore("nl", start_ms)


@pytest.fixture
def sample_deck():
    """A small mixed deck with vocab and sentences."""
    return [
        make_item("v-huis", "huis", ["house", "home"], "house", tags=["het"]),
        make_item("v-man", "man", "man", "man", tags=["de"]),
        make_item("v-koffie", "koffie", "coffee", "coffee", tags=["de"]),
        make_item("v-vandaag", "vandaag", "today", "today"),
        make_item(
            "s-koffie", "Ik drink koffie.", "I drink coffee.", "I drink coffee.",
            kind=ItemKind.SENTENCE,
        ),
        make_item(
            "s-huis", "Het huis is groot.", "The house is big.", "The house is big.",
            kind=ItemKind.SENTENCE,
        ),
    ]


@pytest.fixture
def item_factory():
    """Build Items without going through JSON."""
    return make_item


@pytest.fixture
def store_factory(start_ms):
    """Build extra in-memory profile stores."""
    def factory(lang: str = "nl") -> MemoryStore:
        return MemoryStore(lang, start_ms)
    return factory
