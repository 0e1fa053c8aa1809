"""Hourly schedule reminders.

A recurring tick (every 60 s by default) looks at the schedule currently
held in memory. On the tick that lands in minute 0 of an hour, the slot
for that hour fires one notification if its task is not blank. The
schedule is whatever date is on screen, not necessarily today's.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from core.models import ScheduleSlot
from core.sync import TimerHandle, TimerLoop
from core.workspace import now_local

logger = logging.getLogger(__name__)

NOTIFY_INTERVAL_SECONDS = 60.0
MIDNIGHT_LABELS = ("0:00", "00:00")


@dataclass
class Notification:
    title: str
    body: str


def slot_for_hour(schedule: Sequence[ScheduleSlot], hour: int) -> ScheduleSlot | None:
    """Find the slot labelled for *hour* (0-23)."""
    for slot in schedule:
        if hour == 0 and slot.time in MIDNIGHT_LABELS:
            return slot
        if slot.time == f"{hour}:00":
            return slot
    return None


class NotificationGate:
    """Tracks whether local notifications may be shown.

    ``request`` is given the platform's permission prompt, or None when the
    platform has no notification support. Denial leaves the gate closed and
    returns a one-time advisory.
    """

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled

    def request(self, prompt: Callable[[], bool] | None) -> str | None:
        if self.enabled:
            return None
        if prompt is None:
            logger.warning("Notifications are not supported here")
            return "Not supported on this platform."
        if prompt():
            self.enabled = True
            return None
        logger.warning("Notification permission denied")
        return "Notifications were not allowed; reminders stay off."


class NotificationScheduler:
    def __init__(
        self,
        get_schedule: Callable[[], Sequence[ScheduleSlot]],
        is_enabled: Callable[[], bool],
        notify: Callable[[Notification], None],
        loop: TimerLoop | None = None,
        interval: float = NOTIFY_INTERVAL_SECONDS,
    ) -> None:
        self.get_schedule = get_schedule
        self.is_enabled = is_enabled
        self.notify = notify
        self.loop = loop
        self.interval = interval
        self._handle: TimerHandle | None = None

    def tick(self, now: datetime | None = None) -> Notification | None:
        """Run one check; returns the notification sent, if any."""
        if not self.is_enabled():
            return None
        if now is None:
            now = now_local()
        if now.minute != 0:
            return None
        slot = slot_for_hour(self.get_schedule(), now.hour)
        if slot is None or not slot.task.strip():
            return None
        notification = Notification(title=f"Planner: {slot.time}", body=slot.task)
        self.notify(notification)
        return notification

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self.loop is None:
            raise ValueError("NotificationScheduler needs a loop to start.")
        if self._handle is None:
            self._handle = self.loop.call_later(self.interval, self._run)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _run(self) -> None:
        self._handle = self.loop.call_later(self.interval, self._run)
        try:
            self.tick()
        except Exception:
            logger.exception("Notification check failed")
