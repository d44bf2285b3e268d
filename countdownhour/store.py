"""
Persistent store — a JSON file holding string values under fixed keys.

KeyValueStore is the storage medium; PomodoroStore encodes and decodes the
Pomodoro state held under it. Anything unreadable decodes to its default.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Tuple

from .models import PomodoroSettings, PomodoroSnapshot, PomodoroTodo

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
TODO_POOL_KEY = "todo_pool"
SELECTED_TODO_IDS_KEY = "selected_todo_ids"
COMPLETED_POMODOROS_KEY = "completed_pomodoros"
CURRENT_CYCLE_KEY = "current_cycle"


class KeyValueStore:
    """Thread-safe string→string map persisted to a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._data is None:
            self._data = {}
            if self.path.exists():
                try:
                    raw = json.loads(self.path.read_text(encoding="utf-8"))
                    if isinstance(raw, dict):
                        self._data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
                    else:
                        logger.warning("store %s is not an object, starting empty", self.path)
                except (OSError, ValueError) as e:
                    logger.warning("could not read store %s: %s, starting empty", self.path, e)
        return self._data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set_many(self, values: Dict[str, str]) -> None:
        with self._lock:
            data = self._load()
            data.update(values)
            self._write(data)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            # in-memory state stays authoritative; the next write retries
            logger.warning("could not write store %s: %s", self.path, e)


class PomodoroStore:
    """Typed view over the persisted Pomodoro keys."""

    def __init__(self, kv: KeyValueStore):
        self._kv = kv

    def _decode(self, key: str):
        raw = self._kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("malformed value under %r, using default", key)
            return None

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load_settings(self) -> PomodoroSettings:
        data = self._decode(SETTINGS_KEY)
        if not isinstance(data, dict):
            return PomodoroSettings()
        return PomodoroSettings.from_dict(data)

    def load_todo_pool(self) -> Tuple[PomodoroTodo, ...]:
        data = self._decode(TODO_POOL_KEY)
        if not isinstance(data, list):
            return ()
        try:
            return tuple(PomodoroTodo.from_dict(item) for item in data)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("malformed todo pool, using empty pool")
            return ()

    def load_selected_todo_ids(self) -> FrozenSet[str]:
        data = self._decode(SELECTED_TODO_IDS_KEY)
        if not isinstance(data, list):
            return frozenset()
        return frozenset(str(i) for i in data)

    def _load_count(self, key: str) -> int:
        data = self._decode(key)
        if isinstance(data, bool) or not isinstance(data, int) or data < 0:
            return 0
        return data

    def load_completed_pomodoros(self) -> int:
        return self._load_count(COMPLETED_POMODOROS_KEY)

    def load_current_cycle(self) -> int:
        return self._load_count(CURRENT_CYCLE_KEY)

    def load(self) -> PomodoroSnapshot:
        """Everything persisted, as an IDLE snapshot."""
        pool = self.load_todo_pool()
        pool_ids = {t.id for t in pool}
        return PomodoroSnapshot(
            settings=self.load_settings(),
            todo_pool=pool,
            selected_todo_ids=frozenset(i for i in self.load_selected_todo_ids() if i in pool_ids),
            completed_pomodoros=self.load_completed_pomodoros(),
            current_pomodoro_in_cycle=self.load_current_cycle(),
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, state: PomodoroSnapshot) -> None:
        selected: List[str] = sorted(state.selected_todo_ids)
        self._kv.set_many({
            SETTINGS_KEY: json.dumps(state.settings.to_dict()),
            TODO_POOL_KEY: json.dumps([t.to_dict() for t in state.todo_pool]),
            SELECTED_TODO_IDS_KEY: json.dumps(selected),
            COMPLETED_POMODOROS_KEY: json.dumps(state.completed_pomodoros),
            CURRENT_CYCLE_KEY: json.dumps(state.current_pomodoro_in_cycle),
        })
