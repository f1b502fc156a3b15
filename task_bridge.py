"""
Task Bridge - Delivers remote task snapshots to the pet via a shared file.

The API poller writes the latest task list to a JSON file, and the pet
app reads that file on a fixed interval to drive its mood.

Accepted file shapes: a JSON list of task records, or the API response
shape ``{"data": [...]}``.  Each record looks like
``{"id": "...", "status": "running", "updated_at": 1700000000000}``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable

from timers import Scheduler, Timer

logger = logging.getLogger(__name__)

DEFAULT_TASKS_FILE = "/tmp/task-pet-tasks.json"
POLL_INTERVAL_S = 5.0


class TaskBridge:
    def __init__(self, tasks_file: str = DEFAULT_TASKS_FILE,
                 scheduler: Scheduler | None = None,
                 poll_interval: float = POLL_INTERVAL_S) -> None:
        self.tasks_file = tasks_file
        self.poll_interval = poll_interval
        self._scheduler = scheduler
        self._callback: Callable[[list[dict[str, Any]]], None] | None = None
        self._watching = False
        self._last_stamp: tuple[int, int] | None = None
        self._cached: list[dict[str, Any]] = []
        self._timer: Timer | None = None

    @property
    def watching(self) -> bool:
        return self._watching

    def read_tasks(self) -> list[dict[str, Any]]:
        """Read the current task list.  Returns [] if the file doesn't exist
        or holds no list; an unparsable file keeps the last good list."""
        try:
            st = os.stat(self.tasks_file)
        except OSError:
            self._last_stamp = None
            self._cached = []
            return []

        # Quick-check: skip the parse if the file hasn't changed
        stamp = (st.st_mtime_ns, st.st_size)
        if stamp == self._last_stamp:
            return list(self._cached)

        try:
            with open(self.tasks_file, "r") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.debug("Could not read tasks file %s: %s", self.tasks_file, exc)
            return list(self._cached)

        if isinstance(raw, dict):
            raw = raw.get("data", [])
        if not isinstance(raw, list):
            logger.debug("Tasks file %s does not hold a list", self.tasks_file)
            raw = []

        self._last_stamp = stamp
        self._cached = raw
        return list(raw)

    def start_watching(self, callback: Callable[[list[dict[str, Any]]], None]) -> None:
        """Deliver the task list now and then every ``poll_interval`` seconds.

        Calls callback(records) on every poll, changed or not, so that
        time-based mood rules keep being evaluated.
        """
        if self._scheduler is None:
            raise RuntimeError("TaskBridge needs a scheduler to watch")

        if self._watching:
            self.stop_watching()

        self._callback = callback
        self._watching = True
        self._poll()
        self._timer = self._scheduler.call_every(self.poll_interval, self._poll)

    def stop_watching(self) -> None:
        """Stop polling and cancel the timer."""
        self._watching = False
        self._callback = None

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _poll(self) -> None:
        if not self._watching or self._callback is None:
            return

        records = self.read_tasks()
        try:
            self._callback(records)
        except Exception:
            # Don't let a bad callback kill the poll loop
            logger.exception("Task callback failed")

    def write_tasks(self, records: list[dict[str, Any]]) -> None:
        """Write a task list to the file.  Useful for testing and internal use."""
        tmp = self.tasks_file + ".tmp"
        try:
            with open(tmp, "w") as f:
                json.dump(records, f)
            os.replace(tmp, self.tasks_file)
        except (OSError, TypeError, ValueError) as exc:
            raise RuntimeError(
                f"Could not write to tasks file '{self.tasks_file}': {exc}"
            ) from exc
