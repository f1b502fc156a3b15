"""Tests for desktop notifications of task transitions."""

import pytest

import notifier
from events import TaskTransition
from mood_machine import TaskSnapshot, TaskStatus
from notifier import DesktopNotifier, format_notification


def transition(to_status, prompt="Summarise the quarterly report", error=None):
    task = TaskSnapshot(id="t1", status=to_status, prompt=prompt, error=error)
    return TaskTransition(task=task, from_status=TaskStatus.RUNNING, to_status=to_status)


@pytest.fixture
def launched(monkeypatch):
    calls = []
    monkeypatch.setattr(notifier.subprocess, "Popen", lambda args, **kw: calls.append(args))
    return calls


class TestFormat:
    def test_completed_uses_prompt(self):
        summary, body = format_notification(transition(TaskStatus.COMPLETED))
        assert "completed" in summary
        assert body == "Summarise the quarterly report"

    def test_failed_prefers_error_text(self):
        summary, body = format_notification(transition(TaskStatus.FAILED, error="quota exceeded"))
        assert "failed" in summary
        assert body == "quota exceeded"

    def test_long_prompt_is_trimmed(self):
        _, body = format_notification(transition(TaskStatus.RUNNING, prompt="x" * 300))
        assert len(body) == 100

    @pytest.mark.parametrize("status", [TaskStatus.PENDING, TaskStatus.CANCELLED])
    def test_uninteresting_statuses_are_skipped(self, status):
        assert format_notification(transition(status)) is None


class TestDesktopNotifier:
    def test_sends_notify_send(self, launched):
        DesktopNotifier().notify(transition(TaskStatus.COMPLETED))
        assert len(launched) == 1
        assert launched[0][0] == "notify-send"

    def test_disabled_sends_nothing(self, launched):
        DesktopNotifier(enabled=False).notify(transition(TaskStatus.COMPLETED))
        assert launched == []

    def test_missing_command_is_not_fatal(self, monkeypatch):
        def boom(*args, **kwargs):
            raise FileNotFoundError("notify-send")

        monkeypatch.setattr(notifier.subprocess, "Popen", boom)
        DesktopNotifier().notify(transition(TaskStatus.FAILED))

    def test_skipped_status_does_not_launch(self, launched):
        DesktopNotifier().notify(transition(TaskStatus.PENDING))
        assert launched == []
