#!/usr/bin/env python3
"""Cloud Planner TUI — daily plan editor powered by Textual."""

from __future__ import annotations

import asyncio
import getpass
import logging
import os
from typing import Any

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    Checkbox,
    Footer,
    Header,
    Input,
    Label,
    TextArea,
)

from core import (
    SCHEDULE_TIMES,
    FileStore,
    Notification,
    PlannerSession,
    load_settings,
    shift_date,
    workspace_root,
)
from core.workspace import log_path

# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
}

#left-pane {
    width: 1fr;
    min-width: 30;
    border-right: tall $primary-background-darken-2;
    padding: 0 1;
}

#right-pane {
    width: 1fr;
    min-width: 30;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

.item-row {
    height: auto;
}

.item-row Checkbox {
    width: 1fr;
    height: auto;
}

.item-row Button {
    min-width: 5;
    width: 5;
}

.item-done Checkbox {
    text-style: strike;
    opacity: 50%;
}

.slot-row {
    height: 3;
}

.slot-time {
    width: 7;
    padding: 1 1 0 0;
    content-align: right middle;
}

.slot-row Input {
    width: 1fr;
}

#study-inputs Input {
    width: 1fr;
}

#study-inputs {
    height: auto;
}

#notes {
    height: 10;
    min-height: 4;
}
"""


# ── Rows ───────────────────────────────────────────────────────


class ItemRow(Horizontal):
    """A study session or todo: checkbox + delete button."""

    def __init__(self, kind: str, item_id: Any, label: str, done: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.kind = kind
        self.item_id = item_id
        self.item_label = label
        self.item_done = done

    def compose(self) -> ComposeResult:
        yield Checkbox(self.item_label, value=self.item_done)
        yield Button("✕", classes="delete-item")

    def on_mount(self) -> None:
        self.add_class("item-row")
        if self.item_done:
            self.add_class("item-done")


class SuggestionRow(Horizontal):
    def __init__(self, text: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.text = text

    def compose(self) -> ComposeResult:
        yield Label(self.text)
        yield Button("+", classes="accept-suggestion")
        yield Button("✕", classes="dismiss-suggestion")

    def on_mount(self) -> None:
        self.add_class("item-row")


# ── Main app ───────────────────────────────────────────────────


class PlannerApp(App):
    """Cloud Planner — plan your tomorrow, today."""

    TITLE = "Cloud Planner"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("f5", "prev_day", "Prev day"),
        Binding("f6", "next_day", "Next day"),
        Binding("f7", "enable_reminders", "Reminders"),
        Binding("f8", "analyze_notes", "Suggest todos"),
        Binding("ctrl+s", "save", "Save now"),
        Binding("escape", "blur_focus", "Back"),
        Binding("ctrl+q", "quit_app", "Quit"),
    ]

    def __init__(self, user_id: str) -> None:
        super().__init__()
        self.user_id = user_id
        self.root_dir = workspace_root()
        self.settings = load_settings(self.root_dir)
        self.session: PlannerSession | None = None
        self._closing = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            VerticalScroll(
                Label("Top 3 priorities", classes="section-title"),
                *[Input(placeholder=f"Priority {i + 1}", id=f"prio-{i}") for i in range(3)],
                Label("Study sessions", classes="section-title"),
                Horizontal(
                    Input(placeholder="Subject", id="new-subject"),
                    Input(placeholder="Topic", id="new-topic"),
                    id="study-inputs",
                ),
                Vertical(id="study-list"),
                Label("To-do", classes="section-title"),
                Input(placeholder="Add a task and press Enter", id="new-todo"),
                Vertical(id="todo-list"),
                id="left-pane",
                can_focus=False,
            ),
            VerticalScroll(
                Label("Schedule", classes="section-title"),
                *[
                    Horizontal(
                        Label(t, classes="slot-time"),
                        Input(id=f"slot-{i}"),
                        classes="slot-row",
                    )
                    for i, t in enumerate(SCHEDULE_TIMES)
                ],
                Label("Brain dump", classes="section-title"),
                TextArea(id="notes"),
                Vertical(id="suggestion-list"),
                id="right-pane",
                can_focus=False,
            ),
            id="main-layout",
        )
        yield Footer()

    # ── Session wiring ─────────────────────────────────────────

    def on_mount(self) -> None:
        store = FileStore(self.settings.resolved_store_dir(self.root_dir), self.settings.app_id)
        self.session = PlannerSession(
            store,
            asyncio.get_running_loop(),
            settings=self.settings,
            notify=self._show_notification,
            root=self.root_dir,
        )
        self.session.engine.add_listener(self._on_engine_event)
        self.session.open()
        self.session.on_auth_changed(self.user_id)
        self._load_document()

    def _show_notification(self, notification: Notification) -> None:
        self.notify(notification.body, title=notification.title, timeout=30)

    def on_unmount(self) -> None:
        # Runs on every exit path, including the command palette quit.
        if self.session is not None:
            self._closing = True
            self.session.close()

    def _on_engine_event(self, event: str) -> None:
        if self._closing:
            return
        if event == "document":
            self._load_document()
        else:
            self._update_status()

    def _load_document(self) -> None:
        """Push the engine's document into every widget."""
        doc = self.session.engine.document
        for i, text in enumerate(doc.priorities):
            self.query_one(f"#prio-{i}", Input).value = text
        for i, slot in enumerate(doc.schedule):
            self.query_one(f"#slot-{i}", Input).value = slot.task
        notes = self.query_one("#notes", TextArea)
        if notes.text != doc.notes:
            notes.load_text(doc.notes)
        self._rebuild_lists()
        self._update_status()

    def _rebuild_lists(self) -> None:
        doc = self.session.engine.document
        study_list = self.query_one("#study-list", Vertical)
        study_list.remove_children()
        study_list.mount_all(
            ItemRow(
                "study", s.id,
                f"{s.subject} — {s.topic}" if s.topic else s.subject,
                s.completed,
            )
            for s in doc.study_sessions
        )
        todo_list = self.query_one("#todo-list", Vertical)
        todo_list.remove_children()
        todo_list.mount_all(ItemRow("todo", t.id, t.text, t.completed) for t in doc.todos)

    def _rebuild_suggestions(self) -> None:
        box = self.query_one("#suggestion-list", Vertical)
        box.remove_children()
        box.mount_all(SuggestionRow(s) for s in self.session.analyzer.suggestions)

    def _update_status(self) -> None:
        engine = self.session.engine
        parts = [f"🔥 {self.session.streak} day streak", engine.date or ""]
        if engine.document_ready:
            parts.append(f"{engine.progress}% done")
        else:
            parts.append("loading…")
        if engine.saving:
            parts.append("saving…")
        self.sub_title = "  ".join(parts)

    # ── Edits ──────────────────────────────────────────────────

    @on(Input.Changed)
    def _on_input_change(self, event: Input.Changed) -> None:
        # Queued from a load the widget has since been refilled past.
        if event.value != event.input.value:
            return
        widget_id = event.input.id or ""
        engine = self.session.engine
        if widget_id.startswith("prio-"):
            engine.set_priority(int(widget_id.removeprefix("prio-")), event.value)
        elif widget_id.startswith("slot-"):
            engine.set_schedule_slot(int(widget_id.removeprefix("slot-")), event.value)

    @on(Input.Submitted, "#new-todo")
    def _on_new_todo(self, event: Input.Submitted) -> None:
        if self.session.engine.add_todo(event.value):
            event.input.value = ""
            self._rebuild_lists()

    @on(Input.Submitted, "#new-subject")
    @on(Input.Submitted, "#new-topic")
    def _on_new_study(self, event: Input.Submitted) -> None:
        subject = self.query_one("#new-subject", Input)
        topic = self.query_one("#new-topic", Input)
        if self.session.engine.add_study_session(subject.value, topic.value):
            subject.value = ""
            topic.value = ""
            self._rebuild_lists()

    @on(TextArea.Changed, "#notes")
    def _on_notes_change(self, event: TextArea.Changed) -> None:
        self.session.engine.set_notes(event.text_area.text)

    @on(Checkbox.Changed)
    def _on_item_toggle(self, event: Checkbox.Changed) -> None:
        row = event.checkbox.parent
        if not isinstance(row, ItemRow):
            return
        engine = self.session.engine
        items = engine.document.study_sessions if row.kind == "study" else engine.document.todos
        current = next((i for i in items if i.id == row.item_id), None)
        if current is None or current.completed == event.value:
            return
        if row.kind == "study":
            engine.toggle_study_session(row.item_id)
        else:
            engine.toggle_todo(row.item_id)
        row.set_class(event.value, "item-done")

    @on(Button.Pressed, ".delete-item")
    def _on_item_delete(self, event: Button.Pressed) -> None:
        row = event.button.parent
        if not isinstance(row, ItemRow):
            return
        if row.kind == "study":
            self.session.engine.delete_study_session(row.item_id)
        else:
            self.session.engine.delete_todo(row.item_id)
        self._rebuild_lists()

    @on(Button.Pressed, ".accept-suggestion")
    def _on_accept_suggestion(self, event: Button.Pressed) -> None:
        row = event.button.parent
        if isinstance(row, SuggestionRow):
            self.session.analyzer.accept(row.text)
            self._rebuild_lists()
            self._rebuild_suggestions()

    @on(Button.Pressed, ".dismiss-suggestion")
    def _on_dismiss_suggestion(self, event: Button.Pressed) -> None:
        row = event.button.parent
        if isinstance(row, SuggestionRow):
            self.session.analyzer.dismiss(row.text)
            self._rebuild_suggestions()

    # ── Actions ────────────────────────────────────────────────

    def action_prev_day(self) -> None:
        engine = self.session.engine
        engine.set_date(shift_date(engine.date, -1))
        self._update_status()

    def action_next_day(self) -> None:
        engine = self.session.engine
        engine.set_date(shift_date(engine.date, 1))
        self._update_status()

    def action_enable_reminders(self) -> None:
        advisory = self.session.enable_notifications(lambda: True)
        if advisory:
            self.notify(advisory, severity="warning")
        else:
            self.notify("Hourly reminders are on.", title="Reminders")

    def action_analyze_notes(self) -> None:
        if self.session.analyzer.analyzing:
            return
        self.notify("Analyzing notes…")
        self._analyze(self.session.engine.document.notes)

    @work(thread=True)
    def _analyze(self, notes: str) -> None:
        analyzer = self.session.analyzer
        analyzer.analyze(notes)
        if analyzer.message:
            self.call_from_thread(self.notify, analyzer.message, severity="error")
        self.call_from_thread(self._rebuild_suggestions)

    def action_save(self) -> None:
        if self.session.engine.flush():
            self.notify("Saved.")

    def action_blur_focus(self) -> None:
        self.set_focus(None)

    def action_quit_app(self) -> None:
        self.exit()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path(root)),
        level=os.environ.get("PLANNER_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    user_id = os.environ.get("PLANNER_USER") or getpass.getuser()
    app = PlannerApp(user_id)
    app.run()


if __name__ == "__main__":
    main()
