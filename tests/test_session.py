"""Tests for core/session.py — sign-in wiring."""

from datetime import datetime
from unittest.mock import patch

from core.config import Settings, load_settings
from core.models import StreakRecord
from core.session import PlannerSession
from core.sync import EngineState


def _session(store, loop, **kwargs) -> PlannerSession:
    return PlannerSession(store, loop, settings=Settings(), **kwargs)


def test_sign_in_counts_streak_and_subscribes(store, loop):
    store.write_streak("u", {"currentStreak": 3, "lastLogin": "2026-10-18"})
    session = _session(store, loop)
    with patch("core.sync.default_plan_date", return_value="2026-10-20"):
        session.on_auth_changed("u", today="2026-10-19")

    assert session.streak == 4
    assert session.engine.state is EngineState.LIVE
    assert session.engine.date == "2026-10-20"
    assert store.subscriptions[0][:2] == ("u", "2026-10-20")


def test_same_user_again_is_noop(store, loop):
    session = _session(store, loop)
    session.on_auth_changed("u", today="2026-10-19")
    session.on_auth_changed("u", today="2026-10-19")
    assert len(store.subscriptions) == 1
    assert len(store.streak_writes) == 1


def test_sign_out_stops_engine(store, loop):
    session = _session(store, loop)
    session.on_auth_changed("u", today="2026-10-19")
    session.engine.set_notes("pending")
    session.on_auth_changed(None)

    assert session.streak == 0
    assert session.engine.state is EngineState.UNSUBSCRIBED
    assert store.writes[-1][2]["notes"] == "pending"


def test_switch_user(store, loop):
    session = _session(store, loop)
    session.on_auth_changed("a", today="2026-10-19")
    session.on_auth_changed("b", today="2026-10-19")
    assert session.engine.user_id == "b"
    assert StreakRecord.from_dict(store.read_streak("b")).current_streak == 1


def test_reminder_reads_engine_schedule(store, loop):
    sent = []
    session = _session(store, loop, notify=sent.append)
    session.gate.enabled = True
    session.on_auth_changed("u", today="2026-10-19")
    session.engine.set_schedule_slot(3, "Standup")  # 9:00

    session.scheduler.tick(datetime(2026, 10, 19, 9, 0))
    assert [n.body for n in sent] == ["Standup"]


def test_open_and_close(store, loop):
    session = _session(store, loop)
    session.open()
    assert session.scheduler.running
    session.on_auth_changed("u", today="2026-10-19")
    session.close()
    assert not session.scheduler.running
    assert session.user_id is None


def test_enable_notifications_remembers_grant(store, loop, workspace):
    session = PlannerSession(store, loop, settings=load_settings(workspace), root=workspace)
    assert session.enable_notifications(lambda: True) is None
    assert session.gate.enabled is True
    assert load_settings(workspace).notifications_granted is True


def test_enable_notifications_denied(store, loop, workspace):
    session = PlannerSession(store, loop, settings=load_settings(workspace), root=workspace)
    assert session.enable_notifications(lambda: False)
    assert session.gate.enabled is False
    assert load_settings(workspace).notifications_granted is False


def test_settings_drive_timers(store, loop):
    settings = Settings(debounce_ms=250, saving_indicator_ms=100, notify_interval_s=5)
    session = PlannerSession(store, loop, settings=settings)
    assert session.engine.debounce == 0.25
    assert session.engine.saving_linger == 0.1
    assert session.scheduler.interval == 5.0
