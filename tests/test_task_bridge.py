"""Tests for the task file bridge."""

import json
import os

import pytest

from task_bridge import TaskBridge


@pytest.fixture
def tasks_file(tmp_path):
    return str(tmp_path / "tasks.json")


@pytest.fixture
def bridge(tasks_file, scheduler):
    return TaskBridge(tasks_file, scheduler, poll_interval=5.0)


def write_json(path, data):
    with open(path, "w") as f:
        json.dump(data, f)


class TestReadTasks:
    def test_missing_file_gives_empty_list(self, bridge):
        assert bridge.read_tasks() == []

    def test_reads_plain_list(self, bridge, tasks_file):
        write_json(tasks_file, [{"id": "a", "status": "running"}])
        assert bridge.read_tasks() == [{"id": "a", "status": "running"}]

    def test_reads_api_response_shape(self, bridge, tasks_file):
        write_json(tasks_file, {"data": [{"id": "a", "status": "failed"}], "has_more": False})
        assert bridge.read_tasks() == [{"id": "a", "status": "failed"}]

    def test_corrupt_file_gives_empty_list(self, bridge, tasks_file):
        with open(tasks_file, "w") as f:
            f.write("{not json")
        assert bridge.read_tasks() == []

    def test_unparsable_rewrite_keeps_last_good_list(self, bridge, tasks_file):
        write_json(tasks_file, [{"id": "a", "status": "running"}])
        bridge.read_tasks()
        with open(tasks_file, "w") as f:
            f.write('[{"id": "a", "sta')
        os.utime(tasks_file, ns=(0, 10**9))
        assert bridge.read_tasks() == [{"id": "a", "status": "running"}]

        write_json(tasks_file, [{"id": "a", "status": "completed"}])
        os.utime(tasks_file, ns=(0, 2 * 10**9))
        assert bridge.read_tasks() == [{"id": "a", "status": "completed"}]

    def test_non_list_payload_gives_empty_list(self, bridge, tasks_file):
        write_json(tasks_file, "running")
        assert bridge.read_tasks() == []

    def test_picks_up_rewritten_file(self, bridge, tasks_file):
        write_json(tasks_file, [{"id": "a", "status": "running"}])
        bridge.read_tasks()
        write_json(tasks_file, [{"id": "a", "status": "completed"}, {"id": "b", "status": "pending"}])
        os.utime(tasks_file, ns=(0, 10**9))
        assert len(bridge.read_tasks()) == 2

    def test_returns_a_copy(self, bridge, tasks_file):
        write_json(tasks_file, [{"id": "a", "status": "running"}])
        first = bridge.read_tasks()
        first.clear()
        assert bridge.read_tasks() == [{"id": "a", "status": "running"}]


class TestWatching:
    def test_delivers_immediately_then_every_interval(self, bridge, tasks_file, scheduler):
        write_json(tasks_file, [{"id": "a", "status": "running"}])
        polls = []
        bridge.start_watching(polls.append)
        assert len(polls) == 1

        scheduler.advance(4.9)
        assert len(polls) == 1
        scheduler.advance(0.1)
        assert len(polls) == 2
        scheduler.advance(10)
        assert len(polls) == 4
        assert polls[-1] == [{"id": "a", "status": "running"}]

    def test_stop_watching_cancels_timer(self, bridge, scheduler):
        polls = []
        bridge.start_watching(polls.append)
        bridge.stop_watching()
        scheduler.advance(20)
        assert len(polls) == 1
        assert not bridge.watching
        assert scheduler.active_timers == []

    def test_restart_replaces_previous_timer(self, bridge, scheduler):
        bridge.start_watching(lambda records: None)
        bridge.start_watching(lambda records: None)
        assert len(scheduler.active_timers) == 1

    def test_failing_callback_keeps_polling(self, bridge, scheduler):
        calls = []

        def callback(records):
            calls.append(records)
            raise RuntimeError("boom")

        bridge.start_watching(callback)
        scheduler.advance(5)
        assert len(calls) == 2
        assert bridge.watching

    def test_needs_scheduler(self, tasks_file):
        with pytest.raises(RuntimeError):
            TaskBridge(tasks_file).start_watching(lambda records: None)


class TestWriteTasks:
    def test_write_then_read(self, bridge):
        bridge.write_tasks([{"id": "a", "status": "pending"}])
        assert bridge.read_tasks() == [{"id": "a", "status": "pending"}]

    def test_unwritable_location_raises(self, tmp_path, scheduler):
        bridge = TaskBridge(str(tmp_path / "missing" / "tasks.json"), scheduler)
        with pytest.raises(RuntimeError):
            bridge.write_tasks([])
