"""Cancellable timers for the pet's single main-loop timeline.

Every component that needs time (animation ticks, mood auto-revert,
task polling) receives a Scheduler and owns the Timer handles it starts.
Cancelling a handle is always safe, including from inside its own
callback and after a one-shot timer has already fired.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Timer(Protocol):
    @property
    def active(self) -> bool: ...
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer: ...
    def call_every(self, interval: float, callback: Callable[[], None]) -> Timer: ...
    def call_soon(self, callback: Callable[[], None]) -> None: ...


def to_ms(seconds: float) -> int:
    """Convert a delay in seconds to a GLib timeout in whole milliseconds."""
    return max(1, int(round(seconds * 1000)))


class GLibTimer:
    """Handle for a GLib timeout source."""

    def __init__(self, callback: Callable[[], None], repeat: bool) -> None:
        self._callback = callback
        self._repeat = repeat
        self._source_id: int | None = None

    @property
    def active(self) -> bool:
        return self._source_id is not None

    def start(self, interval_ms: int) -> None:
        from gi.repository import GLib

        self._source_id = GLib.timeout_add(interval_ms, self._fire)

    def cancel(self) -> None:
        from gi.repository import GLib

        if self._source_id is not None:
            GLib.source_remove(self._source_id)
            self._source_id = None

    def _fire(self) -> bool:
        """GLib callback.  Returns True to keep a recurring timer alive."""
        if not self._repeat:
            # GLib drops the source once we return False
            self._source_id = None
        try:
            self._callback()
        except Exception:
            logger.exception("Timer callback %r failed", self._callback)
        return self._repeat and self._source_id is not None


class GLibScheduler:
    """Scheduler backed by the GLib main loop used by GTK."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> GLibTimer:
        timer = GLibTimer(callback, repeat=False)
        timer.start(to_ms(delay))
        return timer

    def call_every(self, interval: float, callback: Callable[[], None]) -> GLibTimer:
        timer = GLibTimer(callback, repeat=True)
        timer.start(to_ms(interval))
        return timer

    def call_soon(self, callback: Callable[[], None]) -> None:
        """Run callback on the main loop.  Safe to call from any thread."""
        from gi.repository import GLib

        def run() -> bool:
            callback()
            return False

        GLib.idle_add(run)
