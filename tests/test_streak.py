"""Tests for core/streak.py — login streak counting."""

import logging
from unittest.mock import patch

from core.models import StreakRecord
from core.streak import advance_streak, check_streak

TODAY = "2026-10-19"


def test_advance_from_yesterday():
    updated = advance_streak(StreakRecord(4, "2026-10-18"), TODAY)
    assert updated == StreakRecord(5, TODAY)


def test_advance_same_day_is_noop():
    assert advance_streak(StreakRecord(4, TODAY), TODAY) is None


def test_advance_after_gap_resets():
    assert advance_streak(StreakRecord(9, "2026-10-16"), TODAY) == StreakRecord(1, TODAY)


def test_advance_first_login():
    assert advance_streak(StreakRecord(), TODAY) == StreakRecord(1, TODAY)


def test_advance_across_month_boundary():
    assert advance_streak(StreakRecord(2, "2026-09-30"), "2026-10-01") == StreakRecord(3, "2026-10-01")


def test_advance_garbage_last_login_resets():
    assert advance_streak(StreakRecord(7, "last tuesday"), TODAY) == StreakRecord(1, TODAY)


def test_check_streak_increments_and_persists(store):
    store.write_streak("u", {"currentStreak": 2, "lastLogin": "2026-10-18"})
    store.streak_writes.clear()

    assert check_streak(store, "u", TODAY) == 3
    assert store.streak_writes == [("u", {"currentStreak": 3, "lastLogin": TODAY})]
    assert StreakRecord.from_dict(store.read_streak("u")) == StreakRecord(3, TODAY)


def test_check_streak_same_day_no_write(store):
    store.write_streak("u", {"currentStreak": 5, "lastLogin": TODAY})
    store.streak_writes.clear()

    assert check_streak(store, "u", TODAY) == 5
    assert store.streak_writes == []


def test_check_streak_absent_record(store):
    assert check_streak(store, "new-user", TODAY) == 1
    assert store.read_streak("new-user") == {"currentStreak": 1, "lastLogin": TODAY}


def test_check_streak_three_days_ago_resets(store):
    store.write_streak("u", {"currentStreak": 12, "lastLogin": "2026-10-16"})
    assert check_streak(store, "u", TODAY) == 1


def test_check_streak_uses_today_str_by_default(store):
    with patch("core.streak.today_str", return_value=TODAY):
        assert check_streak(store, "u") == 1
    assert store.read_streak("u")["lastLogin"] == TODAY


def test_check_streak_write_failure_still_shows_value(store, caplog):
    store.write_streak("u", {"currentStreak": 2, "lastLogin": "2026-10-18"})
    store.fail_writes = True
    with caplog.at_level(logging.ERROR, logger="core.streak"):
        assert check_streak(store, "u", TODAY) == 3
    assert "Error saving streak" in caplog.text


def test_check_streak_read_failure_shows_zero(caplog):
    from core.store import MemoryStore, StoreError

    class BrokenStore(MemoryStore):
        def read_streak(self, user_id):
            raise StoreError("offline")

    with caplog.at_level(logging.ERROR, logger="core.streak"):
        assert check_streak(BrokenStore(), "u", TODAY) == 0
    assert "Error reading streak" in caplog.text
