"""Consecutive-day login streak."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from core.models import StreakRecord
from core.store import RemoteStore, StoreError
from core.workspace import today_str

logger = logging.getLogger(__name__)


def advance_streak(record: StreakRecord, today: str) -> StreakRecord | None:
    """Return the record to persist for a login on *today*, or None.

    None means today was already counted. A login the day after the last
    one extends the streak; any other gap (or no previous login) restarts
    it at 1.
    """
    if record.last_login == today:
        return None
    yesterday = (date.fromisoformat(today) - timedelta(days=1)).isoformat()
    if record.last_login == yesterday:
        return StreakRecord(current_streak=record.current_streak + 1, last_login=today)
    return StreakRecord(current_streak=1, last_login=today)


def check_streak(store: RemoteStore, user_id: str, today: str | None = None) -> int:
    """Count today's login for *user_id* and return the streak to display.

    Runs once per authenticated session. Store failures are logged; a
    failed read shows 0, a failed write still shows the computed value.
    """
    if today is None:
        today = today_str()

    try:
        record = StreakRecord.from_dict(store.read_streak(user_id))
    except StoreError as e:
        logger.error("Error reading streak for %s: %s", user_id, e)
        return 0

    updated = advance_streak(record, today)
    if updated is None:
        return record.current_streak

    try:
        store.write_streak(user_id, updated.to_dict())
    except StoreError as e:
        logger.error("Error saving streak for %s: %s", user_id, e)
    return updated.current_streak
