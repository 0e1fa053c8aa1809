"""Remote document store adapters.

A store holds whole JSON documents under hierarchical key paths
(see core.workspace.plan_key / streak_key). Plan documents can be read
once, written whole, and subscribed to; a subscription delivers the
current snapshot immediately and then every later change to that key,
including changes written by the subscriber itself.

Missing documents are delivered and returned as ``None``. Any I/O
failure is raised as ``StoreError``.
"""

from __future__ import annotations

import copy
import json
import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from core.fileio import read_json, write_json_atomic
from core.workspace import DEFAULT_APP_ID, plan_key, streak_key

logger = logging.getLogger(__name__)

Snapshot = dict[str, Any] | None
Listener = Callable[[Snapshot], None]
Key = tuple[str, ...]


class StoreError(Exception):
    """A remote read, write or subscribe call failed."""


class RemoteStore(Protocol):
    def read_once(self, user_id: str, day: str) -> Snapshot: ...

    def subscribe(self, user_id: str, day: str, on_change: Listener) -> Callable[[], None]: ...

    def write_whole(self, user_id: str, day: str, data: dict[str, Any]) -> None: ...

    def read_streak(self, user_id: str) -> Snapshot: ...

    def write_streak(self, user_id: str, data: dict[str, Any]) -> None: ...


class DocumentStore:
    """Shared key-path and listener bookkeeping.

    Subclasses implement ``_get`` and ``_set`` for a concrete backend.
    Listeners of a key are called in registration order after every
    successful write to that key.
    """

    def __init__(self, app_id: str = DEFAULT_APP_ID) -> None:
        self.app_id = app_id
        self._listeners: dict[Key, list[Listener]] = defaultdict(list)

    def _get(self, key: Key) -> Snapshot:
        raise NotImplementedError

    def _set(self, key: Key, data: dict[str, Any]) -> None:
        raise NotImplementedError

    # ── Plan documents ─────────────────────────────────────────

    def read_once(self, user_id: str, day: str) -> Snapshot:
        return self._get(plan_key(self.app_id, user_id, day))

    def subscribe(self, user_id: str, day: str, on_change: Listener) -> Callable[[], None]:
        key = plan_key(self.app_id, user_id, day)
        snapshot = self._get(key)
        self._listeners[key].append(on_change)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if on_change in listeners:
                listeners.remove(on_change)
            if not listeners:
                self._listeners.pop(key, None)

        on_change(copy.deepcopy(snapshot))
        return unsubscribe

    def write_whole(self, user_id: str, day: str, data: dict[str, Any]) -> None:
        key = plan_key(self.app_id, user_id, day)
        self._set(key, copy.deepcopy(data))
        self._deliver(key, data)

    def _deliver(self, key: Key, data: dict[str, Any]) -> None:
        for listener in list(self._listeners.get(key, [])):
            listener(copy.deepcopy(data))

    # ── Streak ─────────────────────────────────────────────────

    def read_streak(self, user_id: str) -> Snapshot:
        return self._get(streak_key(self.app_id, user_id))

    def write_streak(self, user_id: str, data: dict[str, Any]) -> None:
        self._set(streak_key(self.app_id, user_id), copy.deepcopy(data))


class MemoryStore(DocumentStore):
    """In-process store. ``push`` simulates a change made by another client."""

    def __init__(self, app_id: str = DEFAULT_APP_ID) -> None:
        super().__init__(app_id)
        self.documents: dict[Key, dict[str, Any]] = {}

    def _get(self, key: Key) -> Snapshot:
        data = self.documents.get(key)
        return copy.deepcopy(data) if data is not None else None

    def _set(self, key: Key, data: dict[str, Any]) -> None:
        self.documents[key] = data

    def push(self, user_id: str, day: str, data: dict[str, Any]) -> None:
        key = plan_key(self.app_id, user_id, day)
        self._set(key, copy.deepcopy(data))
        self._deliver(key, data)


class FileStore(DocumentStore):
    """One JSON file per key path under a base directory.

    Live delivery covers writes made through this instance only.
    """

    def __init__(self, base_dir: Path, app_id: str = DEFAULT_APP_ID) -> None:
        super().__init__(app_id)
        self.base_dir = Path(base_dir)

    def path_for(self, key: Key) -> Path:
        *parents, leaf = key
        return self.base_dir.joinpath(*parents) / f"{leaf}.json"

    def _get(self, key: Key) -> Snapshot:
        path = self.path_for(key)
        try:
            return read_json(path)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read %s: %s", path, e)
            raise StoreError(f"read failed for {'/'.join(key)}: {e}") from e

    def _set(self, key: Key, data: dict[str, Any]) -> None:
        path = self.path_for(key)
        try:
            write_json_atomic(path, data)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StoreError(f"write failed for {'/'.join(key)}: {e}") from e
