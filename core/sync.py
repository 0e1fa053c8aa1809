"""Sync engine: keeps the in-memory plan in step with the remote store.

Lifecycle per (user, date): UNSUBSCRIBED -> LOADING -> LIVE.

- Changing user or date drops the old subscription and subscribes to the
  new key. Deliveries from an older subscription are ignored.
- The first delivery replaces the in-memory document and marks it ready.
  Nothing is written before that, so the empty defaults shown while
  loading never overwrite a stored document.
- Every local edit restarts a debounce timer. When it expires, one
  whole-document write goes to the (user, date) the edit was made on,
  even if the displayed date has changed since.
- A delivery equal to the in-memory document is an echo and changes
  nothing. While local edits are unsaved, a delivery equal to the last
  document this engine wrote for the key is a late echo and is ignored too.
  Any other delivery replaces the document and drops an unsaved edit for
  that key.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from core.models import PRIORITY_COUNT, PlanDocument, StudySession, Todo, normalize, progress
from core.store import RemoteStore, Snapshot, StoreError
from core.workspace import default_plan_date, utc_timestamp

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 1.0
SAVING_LINGER_SECONDS = 0.5


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerLoop(Protocol):
    """The part of an asyncio event loop the engine and scheduler use."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...

    def time(self) -> float: ...


class EngineState(str, Enum):
    UNSUBSCRIBED = "unsubscribed"
    LOADING = "loading"
    LIVE = "live"


class SyncEngine:
    def __init__(
        self,
        store: RemoteStore,
        loop: TimerLoop,
        debounce: float = DEBOUNCE_SECONDS,
        saving_linger: float = SAVING_LINGER_SECONDS,
    ) -> None:
        self.store = store
        self.loop = loop
        self.debounce = debounce
        self.saving_linger = saving_linger

        self.user_id: str | None = None
        self.date: str | None = None
        self.document = PlanDocument()
        self.document_ready = False
        self.state = EngineState.UNSUBSCRIBED
        self.dirty = False
        self.saving = False

        self._unsubscribe: Callable[[], None] | None = None
        self._generation = 0
        self._timer: TimerHandle | None = None
        self._pending_key: tuple[str, str] | None = None
        self._pending_doc: PlanDocument | None = None
        self._saving_timer: TimerHandle | None = None
        self._last_written: dict[tuple[str, str], PlanDocument] = {}
        self._last_id = 0
        self._listeners: list[Callable[[str], None]] = []

    # ── Observers ──────────────────────────────────────────────

    def add_listener(self, callback: Callable[[str], None]) -> None:
        """Register a callback receiving "state", "document", "edit" or "saving"."""
        self._listeners.append(callback)

    def _emit(self, event: str) -> None:
        for callback in list(self._listeners):
            callback(event)

    @property
    def progress(self) -> int:
        return progress(self.document)

    # ── Lifecycle ──────────────────────────────────────────────

    def start(self, user_id: str, day: str | None = None) -> None:
        """Begin syncing for *user_id*, on *day* or the current/default date."""
        self._switch(user_id, day or self.date or default_plan_date())

    def stop(self) -> None:
        """Flush any pending write and drop the subscription."""
        self.flush()
        self._cancel_subscription()
        self._generation += 1
        self.user_id = None
        self.document = PlanDocument()
        self.document_ready = False
        self.dirty = False
        self._last_written.clear()
        self.state = EngineState.UNSUBSCRIBED
        self._emit("state")
        self._emit("document")

    def set_date(self, day: str) -> None:
        """Show *day*; subscribes to it when a user is signed in."""
        if day == self.date:
            return
        if self.user_id is None:
            self.date = day
            return
        self._switch(self.user_id, day)

    def _cancel_subscription(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def _switch(self, user_id: str, day: str) -> None:
        self._cancel_subscription()
        if self._pending_key == (user_id, day):
            self.flush()
        self._last_written = {
            k: v for k, v in self._last_written.items() if k == (user_id, day)
        }

        self.user_id = user_id
        self.date = day
        self._generation += 1
        generation = self._generation
        self.document_ready = False
        self.dirty = False
        self.state = EngineState.LOADING
        self._emit("state")

        def on_change(snapshot: Snapshot) -> None:
            self._on_snapshot(generation, snapshot)

        try:
            unsubscribe = self.store.subscribe(user_id, day, on_change)
        except StoreError as e:
            logger.error("Error subscribing to plan %s/%s: %s", user_id, day, e)
            return
        if generation == self._generation:
            self._unsubscribe = unsubscribe
        else:
            unsubscribe()

    # ── Inbound ────────────────────────────────────────────────

    def _on_snapshot(self, generation: int, snapshot: Snapshot) -> None:
        if generation != self._generation or self.user_id is None or self.date is None:
            logger.debug("Dropping delivery from a superseded subscription")
            return

        key = (self.user_id, self.date)
        incoming = normalize(snapshot)
        if self.document_ready:
            if incoming == self.document:
                logger.debug("Delivery for %s/%s matches local state", *key)
                return
            if self.dirty and incoming == self._last_written.get(key):
                logger.debug("Echo of an earlier write for %s/%s", *key)
                return
            if self._pending_key == key:
                logger.warning("Remote change for %s/%s replaced unsaved edits", *key)
                self._drop_pending()
            self._last_written.pop(key, None)

        self.document = incoming
        self.dirty = False
        self.document_ready = True
        if self.state is not EngineState.LIVE:
            self.state = EngineState.LIVE
            self._emit("state")
        self._emit("document")

    # ── Outbound ───────────────────────────────────────────────

    def _touch(self) -> None:
        self.dirty = True
        self._emit("edit")
        if not self.document_ready or self.user_id is None or self.date is None:
            return
        key = (self.user_id, self.date)
        if self._pending_key is not None and self._pending_key != key:
            self.flush()
        self._pending_key = key
        self._pending_doc = self.document.copy()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self.loop.call_later(self.debounce, self.flush)

    def _drop_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending_key = None
        self._pending_doc = None

    def flush(self) -> bool:
        """Write the pending edit now. Returns True if a write succeeded."""
        key, doc = self._pending_key, self._pending_doc
        self._drop_pending()
        if key is None or doc is None:
            return False

        user_id, day = key
        is_current = key == (self.user_id, self.date)
        doc.last_updated = utc_timestamp()
        self._last_written[key] = doc
        if is_current:
            self.dirty = False
            self.document.last_updated = doc.last_updated
        self._set_saving(True)
        try:
            self.store.write_whole(user_id, day, doc.to_dict())
        except StoreError as e:
            logger.error("Error saving plan %s/%s: %s", user_id, day, e)
            self._last_written.pop(key, None)
            if is_current:
                self.dirty = True
            return False
        finally:
            if self._saving_timer is not None:
                self._saving_timer.cancel()
            self._saving_timer = self.loop.call_later(self.saving_linger, self._set_saving, False)
        return True

    def _set_saving(self, value: bool) -> None:
        if not value:
            self._saving_timer = None
        if self.saving != value:
            self.saving = value
            self._emit("saving")

    # ── Mutations ──────────────────────────────────────────────

    def _new_id(self) -> int:
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return self._last_id

    def set_priority(self, index: int, text: str) -> None:
        """Replace one of the three priorities. Raises IndexError for a bad index."""
        if not 0 <= index < PRIORITY_COUNT:
            raise IndexError(f"priority index out of range: {index}")
        if self.document.priorities[index] == text:
            return
        self.document.priorities[index] = text
        self._touch()

    def add_study_session(self, subject: str, topic: str = "") -> StudySession | None:
        """Append a study session. Returns None when the subject is blank."""
        if not subject.strip():
            return None
        session = StudySession(id=self._new_id(), subject=subject, topic=topic)
        self.document.study_sessions.append(session)
        self._touch()
        return session

    def toggle_study_session(self, session_id: Any) -> bool:
        """Flip a study session's completed flag. Returns False if the id is unknown."""
        for session in self.document.study_sessions:
            if session.id == session_id:
                session.completed = not session.completed
                self._touch()
                return True
        return False

    def delete_study_session(self, session_id: Any) -> bool:
        """Remove a study session. Returns False if the id is unknown."""
        kept = [s for s in self.document.study_sessions if s.id != session_id]
        if len(kept) == len(self.document.study_sessions):
            return False
        self.document.study_sessions = kept
        self._touch()
        return True

    def set_schedule_slot(self, index: int, task: str) -> None:
        """Set the task of one hourly slot. Raises IndexError for a bad index."""
        if not 0 <= index < len(self.document.schedule):
            raise IndexError(f"schedule index out of range: {index}")
        slot = self.document.schedule[index]
        if slot.task == task:
            return
        slot.task = task
        self._touch()

    def add_todo(self, text: str) -> Todo | None:
        """Append a todo. Returns None when the text is blank."""
        if not text.strip():
            return None
        todo = Todo(id=self._new_id(), text=text)
        self.document.todos.append(todo)
        self._touch()
        return todo

    def toggle_todo(self, todo_id: Any) -> bool:
        """Flip a todo's completed flag. Returns False if the id is unknown."""
        for todo in self.document.todos:
            if todo.id == todo_id:
                todo.completed = not todo.completed
                self._touch()
                return True
        return False

    def delete_todo(self, todo_id: Any) -> bool:
        """Remove a todo. Returns False if the id is unknown."""
        kept = [t for t in self.document.todos if t.id != todo_id]
        if len(kept) == len(self.document.todos):
            return False
        self.document.todos = kept
        self._touch()
        return True

    def set_notes(self, text: str) -> None:
        """Replace the free-form notes."""
        if self.document.notes == text:
            return
        self.document.notes = text
        self._touch()
