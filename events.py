"""Publish/subscribe plumbing shared by the pet's core components.

The player and the mood machine never know who is listening; the window,
the notifier and the tests subscribe to the signals they care about.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoodChange:
    """Emitted by the mood machine whenever the current mood changes."""
    previous: Any
    mood: Any
    label: str


@dataclass(frozen=True)
class TaskTransition:
    """Emitted when a task's status differs from the last observed one."""
    task: Any
    from_status: Any
    to_status: Any


class Signal:
    """A named list of handlers called synchronously on emit."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[Callable[..., Any]] = []

    def connect(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        self._handlers.append(handler)
        return handler

    def disconnect(self, handler: Callable[..., Any]) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def emit(self, *args: Any) -> None:
        # Copy so handlers may disconnect themselves while being called
        for handler in list(self._handlers):
            try:
                handler(*args)
            except Exception:
                logger.exception("Handler %r for signal '%s' failed", handler, self.name)

    def __len__(self) -> int:
        return len(self._handlers)
