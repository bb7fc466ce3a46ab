"""
Debounced persistence.

No background timers: callers drive writes with `poll()` (e.g. once per
turn or UI tick) and force them with `flush()`.
"""

from __future__ import annotations

import time
from collections.abc import Callable


class DebouncedSaver:
    """Coalesce bursts of save requests into one write."""

    def __init__(
        self,
        save_fn: Callable[[], None],
        delay_seconds: float = 1.5,
        clock: Callable[[], float] | None = None,
    ):
        """
        Args:
            save_fn: Performs the actual write
            delay_seconds: Quiet period after the first request before writing
            clock: Monotonic seconds source (defaults to time.monotonic)
        """
        self.save_fn = save_fn
        self.delay_seconds = delay_seconds
        self.clock = clock or time.monotonic
        self._scheduled_at: float | None = None

    @property
    def pending(self) -> bool:
        return self._scheduled_at is not None

    def schedule(self) -> None:
        """Mark dirty. A request while one is pending does not extend the delay."""
        if self._scheduled_at is None:
            self._scheduled_at = self.clock()

    def poll(self) -> bool:
        """Write if the delay has elapsed. Returns True when a write happened."""
        if self._scheduled_at is None:
            return False
        if self.clock() - self._scheduled_at < self.delay_seconds:
            return False
        self.flush()
        return True

    def flush(self) -> None:
        """Write now, pending or not. A failed write stays pending."""
        self.save_fn()
        self._scheduled_at = None

    def cancel(self) -> None:
        self._scheduled_at = None
