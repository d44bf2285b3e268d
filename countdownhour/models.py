"""
Snapshot value types for the countdown timer and the Pomodoro cycle.

Snapshots are frozen: sessions publish a new instance on every mutation
(``dataclasses.replace``) and never hand out something a reader could change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .clock import MS_PER_HOUR, MS_PER_MINUTE, MS_PER_SECOND


def _progress(remaining_millis: int, total_millis: int) -> float:
    if total_millis <= 0:
        return 0.0
    return remaining_millis / total_millis


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, value))


# ---------------------------------------------------------------------------
# Countdown-to-clock-time timer
# ---------------------------------------------------------------------------

class TimerStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class TimerSnapshot:
    target_hour: Optional[int] = None
    target_minute: Optional[int] = None
    remaining_millis: int = 0
    total_millis: int = 0
    status: TimerStatus = TimerStatus.IDLE
    finished_at: Optional[int] = None      # epoch ms the countdown hit zero

    @property
    def has_target(self) -> bool:
        return self.target_hour is not None and self.target_minute is not None

    @property
    def remaining_hours(self) -> int:
        return self.remaining_millis // MS_PER_HOUR

    @property
    def remaining_minutes(self) -> int:
        return (self.remaining_millis % MS_PER_HOUR) // MS_PER_MINUTE

    @property
    def remaining_seconds(self) -> int:
        return (self.remaining_millis % MS_PER_MINUTE) // MS_PER_SECOND

    @property
    def progress(self) -> float:
        return _progress(self.remaining_millis, self.total_millis)

    def elapsed_since_finish_ms(self, now_ms: int) -> Optional[int]:
        if self.finished_at is None:
            return None
        return max(0, now_ms - self.finished_at)


# ---------------------------------------------------------------------------
# Pomodoro
# ---------------------------------------------------------------------------

class PomodoroPhase(str, Enum):
    IDLE = "idle"
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"
    PAUSED = "paused"

    @classmethod
    def parse(cls, value: Any, default: Optional["PomodoroPhase"] = None) -> "PomodoroPhase":
        """Map a phase name or value (any case) to a phase; unknown input gives *default* (WORK)."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for phase in cls:
            if text in (phase.value, phase.name.lower()):
                return phase
        return default if default is not None else cls.WORK

    @property
    def is_running(self) -> bool:
        return self in (PomodoroPhase.WORK, PomodoroPhase.SHORT_BREAK, PomodoroPhase.LONG_BREAK)

    @property
    def is_break(self) -> bool:
        return self in (PomodoroPhase.SHORT_BREAK, PomodoroPhase.LONG_BREAK)

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]


_PHASE_LABELS = {
    PomodoroPhase.IDLE: "Ready",
    PomodoroPhase.WORK: "Focus",
    PomodoroPhase.SHORT_BREAK: "Short Break",
    PomodoroPhase.LONG_BREAK: "Long Break",
    PomodoroPhase.PAUSED: "Paused",
}


@dataclass(frozen=True)
class PomodoroSettings:
    """Cycle lengths in minutes. Out-of-range values are clamped on construction."""

    work_duration_minutes: int = 25
    short_break_minutes: int = 5
    long_break_minutes: int = 15
    pomodoros_until_long_break: int = 4

    RANGES = {
        "work_duration_minutes": (1, 120),
        "short_break_minutes": (1, 60),
        "long_break_minutes": (1, 60),
        "pomodoros_until_long_break": (1, 10),
    }

    def __post_init__(self):
        for name, (low, high) in self.RANGES.items():
            default = self.__dataclass_fields__[name].default
            object.__setattr__(self, name, _clamp(getattr(self, name), low, high, default))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PomodoroSettings":
        """Build from a decoded mapping; unknown keys are ignored."""
        return cls(**{k: v for k, v in data.items() if k in cls.RANGES})

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in self.RANGES}


@dataclass(frozen=True)
class PomodoroTodo:
    id: str
    text: str
    is_completed: bool = False
    completed_at: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PomodoroTodo":
        completed_at = data.get("completed_at")
        return cls(
            id=str(data["id"]),
            text=str(data["text"]),
            is_completed=bool(data.get("is_completed", False)),
            completed_at=int(completed_at) if completed_at is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "is_completed": self.is_completed,
            "completed_at": self.completed_at,
        }


@dataclass(frozen=True)
class PomodoroSnapshot:
    phase: PomodoroPhase = PomodoroPhase.IDLE
    remaining_millis: int = 0
    total_millis: int = 0
    completed_pomodoros: int = 0           # lifetime counter
    current_pomodoro_in_cycle: int = 0
    settings: PomodoroSettings = field(default_factory=PomodoroSettings)
    session_completed_at: Optional[int] = None
    todo_pool: Tuple[PomodoroTodo, ...] = ()
    selected_todo_ids: FrozenSet[str] = frozenset()
    todos: Tuple[PomodoroTodo, ...] = ()   # active set bound to the focus session

    @property
    def remaining_minutes(self) -> int:
        return self.remaining_millis // MS_PER_MINUTE

    @property
    def remaining_seconds(self) -> int:
        return (self.remaining_millis % MS_PER_MINUTE) // MS_PER_SECOND

    @property
    def progress(self) -> float:
        return _progress(self.remaining_millis, self.total_millis)

    @property
    def is_running(self) -> bool:
        return self.phase.is_running

    @property
    def phase_label(self) -> str:
        return self.phase.label

    @property
    def long_break_due(self) -> bool:
        return self.current_pomodoro_in_cycle >= self.settings.pomodoros_until_long_break

    def elapsed_since_completion_ms(self, now_ms: int) -> Optional[int]:
        """Milliseconds since the last phase completed, or None if none has."""
        if self.session_completed_at is None:
            return None
        return max(0, now_ms - self.session_completed_at)
