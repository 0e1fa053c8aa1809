"""Planner core library — plan model, remote store and sync engines.

Public API re-exports for convenient imports:
    from core import SyncEngine, MemoryStore, normalize, check_streak, ...
"""

# Workspace & paths
from core.workspace import (
    workspace_root,
    get_user_timezone,
    today_str,
    now_local,
    default_plan_date,
    shift_date,
    settings_path,
    store_path,
    plan_key,
    streak_key,
)

# File I/O
from core.fileio import (
    read_json,
    read_yaml,
    write_json_atomic,
    write_yaml_atomic,
)

# Configuration
from core.config import Settings, load_settings, save_settings

# Models
from core.models import (
    SCHEDULE_TIMES,
    StudySession,
    ScheduleSlot,
    Todo,
    PlanDocument,
    StreakRecord,
    default_schedule,
    normalize,
    progress,
)

# Remote store
from core.store import (
    StoreError,
    RemoteStore,
    DocumentStore,
    MemoryStore,
    FileStore,
)

# Engines
from core.streak import advance_streak, check_streak
from core.sync import EngineState, SyncEngine
from core.notifications import (
    Notification,
    NotificationGate,
    NotificationScheduler,
    slot_for_hour,
)
from core.suggestions import (
    SuggestionError,
    SuggestionClient,
    NotesAnalyzer,
    parse_suggestions,
)

# Session
from core.session import PlannerSession
