"""Task-status driven mood state machine.

Reduces every poll's task snapshots to one pet mood.  Happy and sad
are transient: five seconds after the poll that set them, the pet goes
back to idle unless something else changed the mood in the meantime.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from events import MoodChange, Signal, TaskTransition
from timers import Scheduler, Timer

logger = logging.getLogger(__name__)

RECENT_WINDOW_S = 10.0
REVERT_DELAY_S = 5.0


class Mood(enum.Enum):
    IDLE = "idle"
    THINKING = "thinking"
    HAPPY = "happy"
    SAD = "sad"
    WORKING = "working"
    CELEBRATING = "celebrating"
    SLEEPING = "sleeping"

    @property
    def label(self) -> str:
        return _MOOD_LABELS[self]


_MOOD_LABELS = {
    Mood.IDLE: "Idle",
    Mood.THINKING: "Thinking...",
    Mood.HAPPY: "Happy!",
    Mood.SAD: "Sad",
    Mood.WORKING: "Working",
    Mood.CELEBRATING: "Celebrating!",
    Mood.SLEEPING: "Sleeping",
}

TRANSIENT_MOODS = frozenset({Mood.HAPPY, Mood.SAD})


class TaskStatus(enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_STATUS_MOODS = {
    TaskStatus.PENDING: Mood.IDLE,
    TaskStatus.RUNNING: Mood.THINKING,
    TaskStatus.COMPLETED: Mood.HAPPY,
    TaskStatus.FAILED: Mood.SAD,
    TaskStatus.CANCELLED: Mood.IDLE,
}


def mood_for_status(status: TaskStatus) -> Mood:
    """The mood a single task in ``status`` would suggest on its own."""
    return _STATUS_MOODS[status]


class MalformedSnapshot(ValueError):
    """A task record is missing its id or has no usable status or timestamp."""


@dataclass(frozen=True)
class TaskSnapshot:
    """One poll's view of a remote task.  ``updated_at`` is epoch seconds."""
    id: str
    status: TaskStatus
    updated_at: float = 0.0
    prompt: str = ""
    error: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TaskSnapshot":
        """Parse an API task record (``updated_at`` in epoch milliseconds)."""
        if not isinstance(data, Mapping):
            raise MalformedSnapshot(f"Task record is not an object: {data!r}")
        task_id = data.get("id")
        if not task_id:
            raise MalformedSnapshot(f"Task record has no id: {data!r}")
        raw_status = data.get("status")
        try:
            status = TaskStatus(str(raw_status).lower())
        except ValueError:
            raise MalformedSnapshot(
                f"Task {task_id} has invalid status {raw_status!r}"
            ) from None
        try:
            updated_at = float(data.get("updated_at") or 0) / 1000.0
        except (TypeError, ValueError):
            updated_at = 0.0
        return cls(
            id=str(task_id),
            status=status,
            updated_at=updated_at,
            prompt=str(data.get("prompt") or ""),
            error=data.get("error"),
        )


def coerce_snapshot(item: Any) -> TaskSnapshot:
    if isinstance(item, TaskSnapshot):
        if not item.id or not isinstance(item.status, TaskStatus):
            raise MalformedSnapshot(f"Incomplete task snapshot: {item!r}")
        if isinstance(item.updated_at, bool) or not isinstance(item.updated_at, (int, float)):
            raise MalformedSnapshot(f"Task {item.id} has invalid updated_at {item.updated_at!r}")
        return item
    return TaskSnapshot.from_dict(item)


def derive_mood(snapshots: Iterable[TaskSnapshot], now: float,
                recent_window: float = RECENT_WINDOW_S) -> Mood | None:
    """Aggregate mood by priority: running, then recent success, then recent failure.

    Returns None when no rule applies.
    """
    recent_moods = set()
    for snap in snapshots:
        mood = mood_for_status(snap.status)
        if mood is Mood.THINKING:
            return mood
        if now - snap.updated_at < recent_window:
            recent_moods.add(mood)
    for mood in (Mood.HAPPY, Mood.SAD):
        if mood in recent_moods:
            return mood
    return None


class MoodStateMachine:
    """Holds the pet's one current mood.

    ``observe`` feeds in task snapshots; ``set_mood`` overrides directly.
    Listeners subscribe to ``mood_changed`` (MoodChange) and
    ``task_transitioned`` (TaskTransition).
    """

    def __init__(
        self,
        scheduler: Scheduler,
        clock: Callable[[], float] = time.time,
        recent_window: float = RECENT_WINDOW_S,
        revert_delay: float = REVERT_DELAY_S,
        initial: Mood = Mood.IDLE,
    ) -> None:
        self._scheduler = scheduler
        self._clock = clock
        self.recent_window = recent_window
        self.revert_delay = revert_delay
        self._mood = initial
        self._statuses: dict[str, TaskStatus] = {}
        self._revert_timer: Timer | None = None
        self.mood_changed = Signal("mood-changed")
        self.task_transitioned = Signal("task-transitioned")

    @property
    def mood(self) -> Mood:
        return self._mood

    @property
    def revert_pending(self) -> bool:
        return self._revert_timer is not None and self._revert_timer.active

    def last_status(self, task_id: str) -> TaskStatus | None:
        return self._statuses.get(task_id)

    def set_mood(self, mood: Mood | str) -> bool:
        """Switch to ``mood``.  Returns False (and does nothing) if unchanged."""
        try:
            mood = Mood(mood)
        except ValueError:
            logger.warning("Ignoring unknown mood %r", mood)
            return False
        if mood is self._mood:
            return False

        previous = self._mood
        self._mood = mood
        # Whatever was pending belonged to the previous mood
        self._cancel_revert()
        logger.debug("Mood %s -> %s", previous.value, mood.value)
        self.mood_changed.emit(MoodChange(previous=previous, mood=mood, label=mood.label))
        return True

    def observe(self, snapshots: Iterable[Any]) -> None:
        """Record status changes and re-derive the mood from one poll's tasks."""
        valid: list[TaskSnapshot] = []
        for item in snapshots:
            try:
                snap = coerce_snapshot(item)
            except MalformedSnapshot as exc:
                logger.warning("Skipping task snapshot: %s", exc)
                continue
            valid.append(snap)

            previous = self._statuses.get(snap.id)
            if previous is not None and previous is not snap.status:
                logger.info("Task %s: %s -> %s", snap.id, previous.value, snap.status.value)
                self.task_transitioned.emit(
                    TaskTransition(task=snap, from_status=previous, to_status=snap.status)
                )
            self._statuses[snap.id] = snap.status

        mood = derive_mood(valid, self._clock(), self.recent_window)
        if mood is None:
            if self._mood is not Mood.THINKING:
                return
            mood = Mood.IDLE

        if self.set_mood(mood) and mood in TRANSIENT_MOODS:
            self._arm_revert(mood)

    def shutdown(self) -> None:
        self._cancel_revert()

    # ------------------------------------------------------------------
    # Auto-revert
    # ------------------------------------------------------------------

    def _arm_revert(self, mood: Mood) -> None:
        self._cancel_revert()
        self._revert_timer = self._scheduler.call_later(
            self.revert_delay, lambda: self._on_revert(mood)
        )

    def _cancel_revert(self) -> None:
        if self._revert_timer is not None:
            self._revert_timer.cancel()
            self._revert_timer = None

    def _on_revert(self, expected: Mood) -> None:
        self._revert_timer = None
        if self._mood is expected:
            self.set_mood(Mood.IDLE)
