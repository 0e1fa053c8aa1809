"""Shared test fixtures for planner tests."""

from __future__ import annotations

import copy
import os
from pathlib import Path

import pytest
import yaml

from core.store import MemoryStore, StoreError
from core.workspace import plan_key


class FakeTimer:
    def __init__(self, when: float, callback, args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual clock exposing the asyncio call_later/time surface."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay, callback, *args) -> FakeTimer:
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in time order."""
        target = self.now + seconds
        while True:
            due = [t for t in self.pending() if t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self.timers.remove(timer)
            self.now = timer.when
            timer.callback(*timer.args)
        self.now = target
        self.timers = self.pending()


class RecordingStore(MemoryStore):
    """MemoryStore that records writes and subscriptions and can fail writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[tuple[str, str, dict]] = []
        self.streak_writes: list[tuple[str, dict]] = []
        self.subscriptions: list[tuple[str, str, object]] = []
        self.fail_writes = False

    def subscribe(self, user_id, day, on_change):
        self.subscriptions.append((user_id, day, on_change))
        return super().subscribe(user_id, day, on_change)

    def write_whole(self, user_id, day, data):
        self.writes.append((user_id, day, copy.deepcopy(data)))
        if self.fail_writes:
            raise StoreError("write rejected")
        super().write_whole(user_id, day, data)

    def write_streak(self, user_id, data):
        self.streak_writes.append((user_id, copy.deepcopy(data)))
        if self.fail_writes:
            raise StoreError("write rejected")
        super().write_streak(user_id, data)


class DeferredStore(RecordingStore):
    """Holds back every delivery until the test releases it."""

    def subscribe(self, user_id, day, on_change):
        self.subscriptions.append((user_id, day, on_change))
        return lambda: None

    def write_whole(self, user_id, day, data):
        self.writes.append((user_id, day, copy.deepcopy(data)))
        self._set(plan_key(self.app_id, user_id, day), copy.deepcopy(data))

    def deliver(self, index: int, data: dict | None) -> None:
        _user, _day, on_change = self.subscriptions[index]
        on_change(copy.deepcopy(data))


@pytest.fixture
def loop() -> FakeLoop:
    return FakeLoop()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def deferred_store() -> DeferredStore:
    return DeferredStore()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a settings file."""
    root = tmp_path / "workspace"
    (root / "planner").mkdir(parents=True)

    settings = {
        "app_id": "test-app",
        "timezone": "UTC",
        "debounce_ms": 1000,
        "saving_indicator_ms": 500,
        "notify_interval_s": 60,
    }
    (root / "planner" / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    os.environ["PLANNER_ROOT"] = str(root)
    yield root
    if "PLANNER_ROOT" in os.environ:
        del os.environ["PLANNER_ROOT"]
