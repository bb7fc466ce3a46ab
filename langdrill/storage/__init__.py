"""Profile persistence."""

from .debounce import DebouncedSaver
from .profile_store import ProfileStore

__all__ = ["DebouncedSaver", "ProfileStore"]
