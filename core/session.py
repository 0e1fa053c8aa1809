"""A signed-in planning session.

Wires the identity boundary to the engines: signing in counts the day's
login streak once and subscribes the sync engine; signing out flushes
and tears the subscription down. The notification check runs for as long
as the session object is open, independent of sign-in state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from core.config import Settings, save_settings
from core.notifications import Notification, NotificationGate, NotificationScheduler
from core.store import RemoteStore
from core.streak import check_streak
from core.suggestions import NotesAnalyzer, SuggestionClient
from core.sync import SyncEngine, TimerLoop

logger = logging.getLogger(__name__)


class PlannerSession:
    def __init__(
        self,
        store: RemoteStore,
        loop: TimerLoop,
        settings: Settings | None = None,
        notify: Callable[[Notification], None] | None = None,
        root: Path | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.root = root
        self.store = store
        self.user_id: str | None = None
        self.streak = 0

        self.engine = SyncEngine(
            store,
            loop,
            debounce=self.settings.debounce_ms / 1000,
            saving_linger=self.settings.saving_indicator_ms / 1000,
        )
        self.gate = NotificationGate(enabled=self.settings.notifications_granted)
        self.scheduler = NotificationScheduler(
            get_schedule=lambda: self.engine.document.schedule,
            is_enabled=lambda: self.gate.enabled,
            notify=notify or (lambda n: logger.info("%s: %s", n.title, n.body)),
            loop=loop,
            interval=float(self.settings.notify_interval_s),
        )
        self.analyzer = NotesAnalyzer(
            SuggestionClient(
                api_key=self.settings.suggestion_api_key,
                model=self.settings.suggestion_model,
                timeout=float(self.settings.suggestion_timeout_s),
            ),
            self.engine,
        )

    def open(self) -> None:
        self.scheduler.start()

    def close(self) -> None:
        self.on_auth_changed(None)
        self.scheduler.stop()

    def on_auth_changed(self, user_id: str | None, today: str | None = None) -> None:
        """React to the identity boundary reporting a user (or none)."""
        if user_id == self.user_id:
            return
        if self.user_id is not None:
            self.engine.stop()
        self.user_id = user_id
        if user_id is None:
            self.streak = 0
            return
        self.streak = check_streak(self.store, user_id, today)
        self.engine.start(user_id)

    def enable_notifications(self, prompt: Callable[[], bool] | None) -> str | None:
        """Ask for permission once; remembers a grant in settings.yaml."""
        advisory = self.gate.request(prompt)
        if self.gate.enabled and not self.settings.notifications_granted:
            self.settings.notifications_granted = True
            if self.root is not None:
                save_settings(self.settings, self.root)
        return advisory
