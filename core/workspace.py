"""Workspace root, timezone, date helpers and remote key paths."""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.fileio import read_yaml

NAMESPACE = "artifacts"
DEFAULT_APP_ID = "productivity-app-v1"


def workspace_root() -> Path:
    """Get the workspace root directory (contains planner/ and store/)."""
    return Path(
        os.environ.get("PLANNER_ROOT", str(Path.home() / "planner"))
    ).expanduser().resolve()


def get_user_timezone(root: Path | None = None) -> tzinfo:
    """Get the user's timezone from PLANNER_TZ or settings.yaml.

    Falls back to the device's local zone when neither names a valid zone.
    """
    if root is None:
        root = workspace_root()
    name = os.environ.get("PLANNER_TZ", "")
    if not name:
        settings = read_yaml(settings_path(root))
        name = str(settings.get("timezone") or "")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return datetime.now().astimezone().tzinfo or timezone.utc


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return now_local(root).date().isoformat()


def default_plan_date(root: Path | None = None) -> str:
    """The date a fresh session opens on: tomorrow."""
    return (now_local(root).date() + timedelta(days=1)).isoformat()


def shift_date(day: str, days: int) -> str:
    """Move an ISO date string by a number of days."""
    return (date.fromisoformat(day) + timedelta(days=days)).isoformat()


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner" / "settings.yaml"


def store_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "store"


def log_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "planner.log"


# ── Remote key paths ──────────────────────────────────────────

def plan_key(app_id: str, user_id: str, day: str) -> tuple[str, ...]:
    """Key path of one user's plan document for one calendar date."""
    return (NAMESPACE, app_id, "users", user_id, "plans", day)


def streak_key(app_id: str, user_id: str) -> tuple[str, ...]:
    """Key path of one user's streak record."""
    return (NAMESPACE, app_id, "users", user_id, "stats", "streak")
