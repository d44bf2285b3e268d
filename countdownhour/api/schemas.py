"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..formatting import format_elapsed, format_end_time, format_remaining
from ..models import PomodoroSettings, PomodoroSnapshot, PomodoroTodo, TimerSnapshot

# ── Countdown timer ────────────────────────────────────────────────────────

class TargetIn(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)


class TimerStateOut(BaseModel):
    status: str
    target_hour: Optional[int]
    target_minute: Optional[int]
    remaining_millis: int
    total_millis: int
    progress: float
    remaining_text: str
    finished_at: Optional[int]
    elapsed_since_finish: Optional[str] = None


def timer_out(snap: TimerSnapshot, now_ms: int) -> TimerStateOut:
    elapsed_ms = snap.elapsed_since_finish_ms(now_ms)
    elapsed = format_elapsed(elapsed_ms) if elapsed_ms is not None else None
    return TimerStateOut(
        status=snap.status.value,
        target_hour=snap.target_hour,
        target_minute=snap.target_minute,
        remaining_millis=snap.remaining_millis,
        total_millis=snap.total_millis,
        progress=snap.progress,
        remaining_text=format_remaining(snap.remaining_millis),
        finished_at=snap.finished_at,
        elapsed_since_finish=elapsed,
    )


# ── Settings ───────────────────────────────────────────────────────────────

class SettingsIn(BaseModel):
    work_duration_minutes: int = Field(25, ge=1, le=120)
    short_break_minutes: int = Field(5, ge=1, le=60)
    long_break_minutes: int = Field(15, ge=1, le=60)
    pomodoros_until_long_break: int = Field(4, ge=1, le=10)

    def to_settings(self) -> PomodoroSettings:
        return PomodoroSettings(**self.model_dump())


class SettingsOut(BaseModel):
    work_duration_minutes: int
    short_break_minutes: int
    long_break_minutes: int
    pomodoros_until_long_break: int


# ── Todos ──────────────────────────────────────────────────────────────────

class TodoIn(BaseModel):
    text: str


class TodoOut(BaseModel):
    id: str
    text: str
    is_completed: bool = False
    completed_at: Optional[int] = None

    def to_todo(self) -> PomodoroTodo:
        return PomodoroTodo(**self.model_dump())


class TodoBackup(BaseModel):
    """Pool and selection captured before a bulk clear; POST it back to undo."""
    todo_pool: List[TodoOut]
    selected_todo_ids: List[str]


class TodosOut(BaseModel):
    todo_pool: List[TodoOut]
    selected_todo_ids: List[str]
    todos: List[TodoOut]


class ClearOut(BaseModel):
    state: TodosOut
    undo: TodoBackup


def _todo_out(todo: PomodoroTodo) -> TodoOut:
    return TodoOut(**todo.to_dict())


def _selected(snap: PomodoroSnapshot) -> List[str]:
    # pool order, so responses are stable
    return [t.id for t in snap.todo_pool if t.id in snap.selected_todo_ids]


def todos_out(snap: PomodoroSnapshot) -> TodosOut:
    return TodosOut(
        todo_pool=[_todo_out(t) for t in snap.todo_pool],
        selected_todo_ids=_selected(snap),
        todos=[_todo_out(t) for t in snap.todos],
    )


def backup_of(snap: PomodoroSnapshot) -> TodoBackup:
    return TodoBackup(
        todo_pool=[_todo_out(t) for t in snap.todo_pool],
        selected_todo_ids=_selected(snap),
    )


# ── Pomodoro ───────────────────────────────────────────────────────────────

class WorkIn(BaseModel):
    duration_minutes: Optional[int] = Field(None, ge=1, le=120)
    skip_todo_activation: bool = False


class BreakIn(BaseModel):
    duration_minutes: Optional[int] = Field(None, ge=1, le=60)


class AddTimeIn(BaseModel):
    minutes: int = Field(..., ge=-120, le=120)


class PomodoroStateOut(BaseModel):
    phase: str
    phase_label: str
    remaining_millis: int
    total_millis: int
    progress: float
    remaining_text: str
    ends_at: Optional[str] = None
    completed_pomodoros: int
    current_pomodoro_in_cycle: int
    long_break_due: bool
    settings: SettingsOut
    session_completed_at: Optional[int]
    elapsed_since_completion: Optional[str] = None
    todos: List[TodoOut]


def pomodoro_out(snap: PomodoroSnapshot, now_ms: int) -> PomodoroStateOut:
    elapsed_ms = snap.elapsed_since_completion_ms(now_ms)
    elapsed = format_elapsed(elapsed_ms) if elapsed_ms is not None else None
    return PomodoroStateOut(
        phase=snap.phase.value,
        phase_label=snap.phase_label,
        remaining_millis=snap.remaining_millis,
        total_millis=snap.total_millis,
        progress=snap.progress,
        remaining_text=format_remaining(snap.remaining_millis),
        ends_at=format_end_time(now_ms, snap.remaining_millis) if snap.is_running else None,
        completed_pomodoros=snap.completed_pomodoros,
        current_pomodoro_in_cycle=snap.current_pomodoro_in_cycle,
        long_break_due=snap.long_break_due,
        settings=SettingsOut(**snap.settings.to_dict()),
        session_completed_at=snap.session_completed_at,
        elapsed_since_completion=elapsed,
        todos=[_todo_out(t) for t in snap.todos],
    )
