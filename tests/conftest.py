"""Shared fixtures: a throwaway Claude config directory per test."""

import json
import os
from datetime import date, datetime, time, timedelta

import pytest

from tokenpulse.config import resolve_paths


def assistant_line(request_id="req_1", **usage) -> str:
    entry = {
        "type": "assistant",
        "message": {"model": "claude-sonnet-4-5", "usage": usage},
    }
    if request_id is not None:
        entry["requestId"] = request_id
    return json.dumps(entry)


@pytest.fixture
def line():
    return assistant_line


@pytest.fixture
def paths(tmp_path):
    return resolve_paths(tmp_path / ".claude")


@pytest.fixture
def write_session(paths):
    """Write a session log under projects/<project>/; ``day`` sets its mtime."""

    def _write(project, name, lines, day=None):
        project_dir = paths.projects_dir / project
        project_dir.mkdir(parents=True, exist_ok=True)
        path = project_dir / name
        path.write_text("".join(l + "\n" for l in lines))
        if day is not None:
            stamp = datetime.combine(day, time(12, 0)).timestamp()
            os.utime(path, (stamp, stamp))
        return path

    return _write


@pytest.fixture
def write_snapshot(paths):
    def _write(data):
        paths.stats_file.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            paths.stats_file.write_text(data)
        else:
            paths.stats_file.write_text(json.dumps(data))
        return paths.stats_file

    return _write


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def snapshot_data(today):
    return {
        "version": 1,
        "lastComputedDate": (today - timedelta(days=1)).isoformat(),
        "dailyActivity": [
            {"date": (today - timedelta(days=2)).isoformat(), "messageCount": 20, "sessionCount": 2, "toolCallCount": 4},
            {"date": today.isoformat(), "messageCount": 7, "sessionCount": 1, "toolCallCount": 3},
            {"date": (today - timedelta(days=1)).isoformat(), "messageCount": 12, "sessionCount": 1, "toolCallCount": 5},
        ],
        "dailyModelTokens": [
            {"date": (today - timedelta(days=1)).isoformat(), "tokensByModel": {"m1": 300}},
            {"date": today.isoformat(), "tokensByModel": {"m1": 100, "m2": 50}},
        ],
        "modelUsage": {
            "m1": {"inputTokens": 10, "outputTokens": 5, "cacheReadInputTokens": 2},
        },
        "totalSessions": 4,
        "totalMessages": 39,
    }


class FakeHandle:
    def __init__(self):
        self.closed = 0

    def close(self):
        self.closed += 1


class FakeWatcher:
    """Records subscriptions; tests fire change events by hand."""

    def __init__(self):
        self.subscriptions = []

    def watch(self, path, on_change):
        handle = FakeHandle()
        self.subscriptions.append((path, on_change, handle))
        return handle

    def fire(self):
        for _, on_change, _ in self.subscriptions:
            on_change()


@pytest.fixture
def fake_watcher():
    return FakeWatcher()
