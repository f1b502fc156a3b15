"""Desktop notifications for task status changes (via notify-send)."""

from __future__ import annotations

import logging
import subprocess

from events import TaskTransition
from mood_machine import TaskStatus

logger = logging.getLogger(__name__)

APP_NAME = "Task Pet"
TITLE = "Task status update"
PROMPT_PREVIEW = 100

_SUBTITLES = {
    TaskStatus.RUNNING: "Task started",
    TaskStatus.COMPLETED: "Task completed",
    TaskStatus.FAILED: "Task failed",
}


def format_notification(transition: TaskTransition) -> tuple[str, str] | None:
    """Return (summary, body) for a transition, or None if it isn't worth a popup."""
    subtitle = _SUBTITLES.get(transition.to_status)
    if subtitle is None:
        return None
    task = transition.task
    preview = (task.prompt or task.id)[:PROMPT_PREVIEW]
    if transition.to_status is TaskStatus.FAILED and task.error:
        body = task.error
    else:
        body = preview
    return f"{TITLE}: {subtitle}", body


class DesktopNotifier:
    """Connect ``notify`` to ``MoodStateMachine.task_transitioned``."""

    def __init__(self, enabled: bool = True, command: str = "notify-send") -> None:
        self.enabled = enabled
        self._command = command

    def notify(self, transition: TaskTransition) -> None:
        if not self.enabled:
            return
        message = format_notification(transition)
        if message is None:
            return
        summary, body = message
        try:
            subprocess.Popen(
                [self._command, "--app-name", APP_NAME, summary, body],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.debug("Could not send notification: %s", exc)
