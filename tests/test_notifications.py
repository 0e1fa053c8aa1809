"""Tests for core/notifications.py — hourly reminders."""

from datetime import datetime

import pytest

from core.models import ScheduleSlot, default_schedule
from core.notifications import (
    Notification,
    NotificationGate,
    NotificationScheduler,
    slot_for_hour,
)


def _schedule(**tasks: str) -> list[ScheduleSlot]:
    """Build the 19-slot day; keys are hours like h9=..."""
    schedule = default_schedule()
    for key, task in tasks.items():
        hour = int(key.removeprefix("h"))
        slot = slot_for_hour(schedule, hour)
        slot.task = task
    return schedule


def _scheduler(schedule, enabled=True, loop=None):
    sent: list[Notification] = []
    state = {"schedule": schedule, "enabled": enabled}
    scheduler = NotificationScheduler(
        get_schedule=lambda: state["schedule"],
        is_enabled=lambda: state["enabled"],
        notify=sent.append,
        loop=loop,
    )
    return scheduler, sent, state


def test_slot_for_hour():
    schedule = default_schedule()
    assert slot_for_hour(schedule, 6).time == "6:00"
    assert slot_for_hour(schedule, 23).time == "23:00"
    assert slot_for_hour(schedule, 0).time == "0:00"
    assert slot_for_hour(schedule, 3) is None


def test_slot_for_hour_legacy_midnight_label():
    schedule = default_schedule()
    schedule[-1].time = "00:00"
    assert slot_for_hour(schedule, 0) is schedule[-1]


@pytest.mark.parametrize("second", [0, 30, 59])
def test_fires_on_the_hour(second):
    scheduler, sent, _ = _scheduler(_schedule(h9="Standup"))
    result = scheduler.tick(datetime(2026, 10, 19, 9, 0, second))
    assert result == Notification(title="Planner: 9:00", body="Standup")
    assert sent == [result]


def test_no_fire_off_the_hour():
    scheduler, sent, _ = _scheduler(_schedule(h9="Standup"))
    assert scheduler.tick(datetime(2026, 10, 19, 9, 5)) is None
    assert sent == []


def test_no_fire_for_blank_task():
    scheduler, sent, _ = _scheduler(_schedule(h9="   "))
    assert scheduler.tick(datetime(2026, 10, 19, 9, 0)) is None
    assert sent == []


def test_no_fire_when_disabled():
    scheduler, sent, _ = _scheduler(_schedule(h9="Standup"), enabled=False)
    assert scheduler.tick(datetime(2026, 10, 19, 9, 0)) is None


def test_no_slot_for_early_hours():
    scheduler, sent, _ = _scheduler(_schedule(h9="Standup"))
    assert scheduler.tick(datetime(2026, 10, 19, 3, 0)) is None


def test_midnight():
    scheduler, sent, _ = _scheduler(_schedule(h0="Sleep"))
    scheduler.tick(datetime(2026, 10, 20, 0, 0))
    assert sent == [Notification(title="Planner: 0:00", body="Sleep")]


def test_reads_latest_schedule_each_tick():
    scheduler, sent, state = _scheduler(_schedule())
    scheduler.tick(datetime(2026, 10, 19, 10, 0))
    assert sent == []

    state["schedule"] = _schedule(h10="Review")
    scheduler.tick(datetime(2026, 10, 19, 10, 0))
    assert [n.body for n in sent] == ["Review"]


def test_timer_runs_every_interval(loop):
    scheduler, _, _ = _scheduler(_schedule(), loop=loop)
    ticks = []
    scheduler.tick = lambda now=None: ticks.append(loop.time())

    scheduler.start()
    assert scheduler.running
    loop.advance(180)
    assert ticks == [60.0, 120.0, 180.0]

    scheduler.stop()
    assert not scheduler.running
    loop.advance(600)
    assert len(ticks) == 3


def test_start_twice_keeps_one_timer(loop):
    scheduler, _, _ = _scheduler(_schedule(), loop=loop)
    scheduler.start()
    scheduler.start()
    assert len(loop.pending()) == 1


def test_gate_granted():
    gate = NotificationGate()
    assert gate.request(lambda: True) is None
    assert gate.enabled is True


def test_gate_denied():
    gate = NotificationGate()
    advisory = gate.request(lambda: False)
    assert "not allowed" in advisory
    assert gate.enabled is False


def test_gate_unsupported():
    gate = NotificationGate()
    assert gate.request(None) == "Not supported on this platform."
    assert gate.enabled is False


def test_gate_already_enabled_does_not_prompt():
    gate = NotificationGate(enabled=True)

    def prompt():
        raise AssertionError("should not prompt")

    assert gate.request(prompt) is None
