"""Settings for the planner.

Values come from planner/settings.yaml, then environment variables
(a .env file in the workspace or the current directory is loaded first).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from core.fileio import read_yaml, write_yaml_atomic
from core.workspace import DEFAULT_APP_ID, settings_path, store_path, workspace_root


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    app_id: str = DEFAULT_APP_ID
    timezone: str = ""  # empty: device local zone
    debounce_ms: int = 1000
    saving_indicator_ms: int = 500
    notify_interval_s: int = 60
    notifications_granted: bool = False
    store_dir: str = ""
    suggestion_model: str = "gemini-2.5-flash"
    suggestion_api_key: str = ""
    suggestion_timeout_s: int = 30

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            app_id=str(d.get("app_id") or DEFAULT_APP_ID),
            timezone=str(d.get("timezone") or ""),
            debounce_ms=_int(d.get("debounce_ms"), 1000),
            saving_indicator_ms=_int(d.get("saving_indicator_ms"), 500),
            notify_interval_s=_int(d.get("notify_interval_s"), 60),
            notifications_granted=bool(d.get("notifications_granted", False)),
            store_dir=str(d.get("store_dir") or ""),
            suggestion_model=str(d.get("suggestion_model") or "gemini-2.5-flash"),
            suggestion_timeout_s=_int(d.get("suggestion_timeout_s"), 30),
        )

    def to_dict(self) -> dict[str, Any]:
        # The API key is never written back to disk.
        d: dict[str, Any] = {
            "app_id": self.app_id,
            "debounce_ms": self.debounce_ms,
            "saving_indicator_ms": self.saving_indicator_ms,
            "notify_interval_s": self.notify_interval_s,
            "notifications_granted": self.notifications_granted,
            "suggestion_model": self.suggestion_model,
            "suggestion_timeout_s": self.suggestion_timeout_s,
        }
        if self.timezone:
            d["timezone"] = self.timezone
        if self.store_dir:
            d["store_dir"] = self.store_dir
        return d

    def resolved_store_dir(self, root: Path | None = None) -> Path:
        if self.store_dir:
            return Path(self.store_dir).expanduser()
        return store_path(root)


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml and apply environment overrides."""
    if root is None:
        root = workspace_root()
    load_dotenv(root / ".env")
    load_dotenv()

    settings = Settings.from_dict(read_yaml(settings_path(root)))
    if os.environ.get("PLANNER_APP_ID"):
        settings.app_id = os.environ["PLANNER_APP_ID"]
    if os.environ.get("PLANNER_TZ"):
        settings.timezone = os.environ["PLANNER_TZ"]
    if os.environ.get("PLANNER_STORE_DIR"):
        settings.store_dir = os.environ["PLANNER_STORE_DIR"]
    if os.environ.get("GEMINI_MODEL"):
        settings.suggestion_model = os.environ["GEMINI_MODEL"]
    settings.suggestion_api_key = os.environ.get("GEMINI_API_KEY", "")
    return settings


def save_settings(settings: Settings, root: Path | None = None) -> None:
    if root is None:
        root = workspace_root()
    write_yaml_atomic(settings_path(root), settings.to_dict())
