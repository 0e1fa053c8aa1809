"""Typed dataclasses for the planner data model.

All models use from_dict/to_dict for JSON serialization.
camelCase on the wire is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

PRIORITY_COUNT = 3

# 6:00 through 23:00, then midnight.
SCHEDULE_TIMES: tuple[str, ...] = tuple(f"{h}:00" for h in range(6, 24)) + ("0:00",)


# ── Plan items ────────────────────────────────────────────────


@dataclass
class StudySession:
    id: Any = None
    subject: str = ""
    topic: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> StudySession:
        return cls(
            id=d.get("id"),
            subject=str(d.get("subject") or ""),
            topic=str(d.get("topic") or ""),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject": self.subject,
            "topic": self.topic,
            "completed": self.completed,
        }


@dataclass
class ScheduleSlot:
    time: str = ""
    task: str = ""

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> ScheduleSlot:
        return cls(time=str(d.get("time", "")), task=str(d.get("task") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "task": self.task}


@dataclass
class Todo:
    id: Any = None
    text: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Todo:
        return cls(
            id=d.get("id"),
            text=str(d.get("text") or ""),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


def default_schedule() -> list[ScheduleSlot]:
    """The canonical empty 19-slot day."""
    return [ScheduleSlot(time=t) for t in SCHEDULE_TIMES]


def _default_priorities() -> list[str]:
    return [""] * PRIORITY_COUNT


def _is_well_formed_schedule(raw: Any) -> bool:
    if not isinstance(raw, list) or len(raw) != len(SCHEDULE_TIMES):
        return False
    return all(isinstance(s, Mapping) and isinstance(s.get("time"), str) for s in raw)


def _priorities_from(raw: Any) -> list[str]:
    if not isinstance(raw, list):
        return _default_priorities()
    values = ["" if p is None else str(p) for p in raw[:PRIORITY_COUNT]]
    return values + [""] * (PRIORITY_COUNT - len(values))


# ── Plan document ─────────────────────────────────────────────


@dataclass
class PlanDocument:
    """One user's planning data for one calendar date.

    Equality compares the five content fields only; ``last_updated`` is
    informational.
    """

    priorities: list[str] = field(default_factory=_default_priorities)
    study_sessions: list[StudySession] = field(default_factory=list)
    schedule: list[ScheduleSlot] = field(default_factory=default_schedule)
    todos: list[Todo] = field(default_factory=list)
    notes: str = ""
    last_updated: str = field(default="", compare=False)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> PlanDocument:
        if not d or not isinstance(d, Mapping):
            return cls()
        raw_schedule = d.get("schedule")
        if _is_well_formed_schedule(raw_schedule):
            schedule = [ScheduleSlot.from_dict(s) for s in raw_schedule]
        else:
            schedule = default_schedule()
        sessions = d.get("studySessions")
        todos = d.get("todos")
        last_updated = d.get("lastUpdated")
        return cls(
            priorities=_priorities_from(d.get("priorities")),
            study_sessions=[
                StudySession.from_dict(s)
                for s in (sessions if isinstance(sessions, list) else [])
                if isinstance(s, Mapping)
            ],
            schedule=schedule,
            todos=[
                Todo.from_dict(t)
                for t in (todos if isinstance(todos, list) else [])
                if isinstance(t, Mapping)
            ],
            notes=str(d.get("notes") or ""),
            last_updated=last_updated if isinstance(last_updated, str) else "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: the five content fields plus ``lastUpdated``."""
        return {
            "priorities": list(self.priorities),
            "studySessions": [s.to_dict() for s in self.study_sessions],
            "schedule": [s.to_dict() for s in self.schedule],
            "todos": [t.to_dict() for t in self.todos],
            "notes": self.notes,
            "lastUpdated": self.last_updated,
        }

    def copy(self) -> PlanDocument:
        return PlanDocument.from_dict(self.to_dict())


def normalize(raw: Mapping[str, Any] | PlanDocument | None) -> PlanDocument:
    """Turn a possibly partial or absent remote payload into a full document.

    ``None`` stands for "no document stored". A schedule is kept as
    supplied when it has 19 entries that each carry a time label; anything
    else falls back to the empty template.
    """
    if isinstance(raw, PlanDocument):
        raw = raw.to_dict()
    return PlanDocument.from_dict(raw)


def progress(doc: PlanDocument) -> int:
    """Percent of study sessions and todos marked completed."""
    total = len(doc.study_sessions) + len(doc.todos)
    if total == 0:
        return 0
    done = sum(1 for s in doc.study_sessions if s.completed)
    done += sum(1 for t in doc.todos if t.completed)
    return int(done * 100 / total + 0.5)


# ── Streak ────────────────────────────────────────────────────


@dataclass
class StreakRecord:
    current_streak: int = 0
    last_login: str = ""

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> StreakRecord:
        if not d or not isinstance(d, Mapping):
            return cls()
        try:
            current = max(0, int(d.get("currentStreak") or 0))
        except (TypeError, ValueError):
            current = 0
        return cls(current_streak=current, last_login=str(d.get("lastLogin") or ""))

    def to_dict(self) -> dict[str, Any]:
        return {"currentStreak": self.current_streak, "lastLogin": self.last_login}
