"""
Pomodoro Session — work / short break / long break cycle with a todo set
bound to each focus phase.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from ..clock import MS_PER_MINUTE
from ..config import config
from ..countdown import CountdownEngine
from ..models import PomodoroPhase, PomodoroSettings, PomodoroSnapshot, PomodoroTodo
from ..platform.background import POMODORO
from .base import Session
from .todos import TodoActivation

logger = logging.getLogger(__name__)


class PomodoroSession(Session):
    """
    Phases: IDLE → WORK | SHORT_BREAK | LONG_BREAK → (PAUSED ⇄ phase) → IDLE.

    Each completed phase returns to IDLE; the caller decides what starts
    next. ``store`` is read once here and written after every command that
    changes persisted fields.
    """

    def __init__(
        self,
        engine: CountdownEngine,
        todos: Optional[TodoActivation] = None,
        store=None,
        chime=None,
        background=None,
        min_remaining_ms: Optional[int] = None,
    ):
        initial = store.load() if store is not None else PomodoroSnapshot()
        super().__init__(engine, initial)
        self.todo_ops = todos or TodoActivation(clock=engine.clock)
        self._store = store
        self._chime = chime
        self._background = background
        self._min_remaining_ms = config.min_remaining_ms if min_remaining_ms is None else min_remaining_ms
        self._resume_phase = PomodoroPhase.IDLE

    def _persist(self) -> None:
        if self._store is not None:
            self._store.save(self._snapshot)

    # ------------------------------------------------------------------
    # Phase commands
    # ------------------------------------------------------------------

    def start_work(
        self, duration_override: Optional[int] = None, skip_todo_activation: bool = False
    ) -> PomodoroSnapshot:
        with self._lock:
            snap = self._snapshot
            if not skip_todo_activation:
                snap = self.todo_ops.activate_selected(snap)
            settings = snap.settings
            # starting work with a long break still owed forfeits it
            cycle = 0 if snap.long_break_due else snap.current_pomodoro_in_cycle
            minutes = duration_override if duration_override is not None else settings.work_duration_minutes
            self._begin(replace(snap, current_pomodoro_in_cycle=cycle), PomodoroPhase.WORK, minutes)
            if cycle != snap.current_pomodoro_in_cycle:
                self._persist()
            return self._snapshot

    def start_break(self, duration_override: Optional[int] = None) -> PomodoroSnapshot:
        with self._lock:
            snap = self._snapshot
            settings = snap.settings
            if snap.long_break_due:
                phase, default = PomodoroPhase.LONG_BREAK, settings.long_break_minutes
            else:
                phase, default = PomodoroPhase.SHORT_BREAK, settings.short_break_minutes
            minutes = duration_override if duration_override is not None else default
            self._begin(snap, phase, minutes)
            return self._snapshot

    def pause(self) -> PomodoroSnapshot:
        with self._lock:
            snap = self._snapshot
            if not snap.is_running:
                return snap
            remaining = self._live_remaining()
            if remaining <= 0:
                self._complete(snap.phase, self._deadline_ms)
                return self._snapshot
            self._disarm()
            self._resume_phase = snap.phase
            self._set(replace(snap, phase=PomodoroPhase.PAUSED, remaining_millis=remaining))
            if self._background is not None:
                self._background.pause(POMODORO)
            logger.info("%s paused with %d ms left", self._resume_phase.value, remaining)
            return self._snapshot

    def resume(self) -> PomodoroSnapshot:
        with self._lock:
            snap = self._snapshot
            if snap.phase != PomodoroPhase.PAUSED or not self._resume_phase.is_running:
                return snap
            deadline = self.now() + snap.remaining_millis
            self._set(replace(snap, phase=self._resume_phase))
            if self._background is not None:
                self._background.resume(POMODORO)
            self._arm(deadline)
            logger.info("%s resumed", self._resume_phase.value)
            return self._snapshot

    def add_time(self, minutes: int) -> PomodoroSnapshot:
        """
        Shift the running phase by *minutes* (may be negative). Remaining time
        never drops below one minute; only the delta actually applied moves
        the deadline and the phase total.
        """
        with self._lock:
            snap = self._snapshot
            if not snap.is_running or self._deadline_ms is None:
                return snap
            remaining = self._live_remaining()
            new_remaining = max(remaining + minutes * MS_PER_MINUTE, self._min_remaining_ms)
            applied = new_remaining - remaining
            if applied == 0:
                return snap
            self._retarget(self._deadline_ms + applied)
            self._set(replace(
                snap,
                remaining_millis=new_remaining,
                total_millis=snap.total_millis + applied,
            ))
            if self._background is not None:
                self._background.add_time(applied)
            logger.info("adjusted %s by %d ms", snap.phase.value, applied)
            return self._snapshot

    def skip_phase(self) -> PomodoroSnapshot:
        """Finish the current (or paused) phase now, bypassing the timer."""
        with self._lock:
            snap = self._snapshot
            if snap.is_running:
                self._complete(snap.phase, self.now())
            elif snap.phase == PomodoroPhase.PAUSED and self._resume_phase.is_running:
                self._complete(self._resume_phase, self.now())
            return self._snapshot

    def reset(self) -> PomodoroSnapshot:
        """Back to IDLE keeping pool, selection and settings; progress is discarded."""
        with self._lock:
            self._disarm()
            self._deadline_ms = None
            self._resume_phase = PomodoroPhase.IDLE
            snap = self._snapshot
            self._set(PomodoroSnapshot(
                todo_pool=snap.todo_pool,
                selected_todo_ids=snap.selected_todo_ids,
                settings=snap.settings,
            ))
            if self._background is not None:
                self._background.stop(POMODORO)
            self._persist()
            logger.info("pomodoro reset")
            return self._snapshot

    def sync_from_background(self) -> PomodoroSnapshot:
        """
        Reconcile with the wall clock after suspension. A phase whose deadline
        passed while suspended completes *at the deadline*.
        """
        with self._lock:
            snap = self._snapshot
            if not snap.is_running or self._deadline_ms is None:
                return snap
            remaining = self._deadline_ms - self.now()
            if remaining <= 0:
                self._complete(snap.phase, self._deadline_ms)
            else:
                self._set(replace(snap, remaining_millis=remaining))
                if self._background is not None:
                    self._background.sync_pomodoro_state(remaining, True, snap.phase)
            return self._snapshot

    def update_settings(self, settings: PomodoroSettings) -> PomodoroSnapshot:
        with self._lock:
            self._set(replace(self._snapshot, settings=settings))
            self._persist()
            return self._snapshot

    # ------------------------------------------------------------------
    # Todo commands (each one persists)
    # ------------------------------------------------------------------

    def _apply_todos(self, op, *args) -> PomodoroSnapshot:
        with self._lock:
            new = op(self._snapshot, *args)
            if new is not self._snapshot:
                self._set(new)
                self._persist()
            return self._snapshot

    def add_to_pool(self, text: str) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.add_to_pool, text)

    def remove_from_pool(self, todo_id: str) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.remove_from_pool, todo_id)

    def update_text(self, todo_id: str, new_text: str) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.update_text, todo_id, new_text)

    def toggle_selection(self, todo_id: str) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.toggle_selection, todo_id)

    def toggle_completion(self, todo_id: str, active: bool = False) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.toggle_completion, todo_id, active)

    def activate_selected(self) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.activate_selected)

    def refresh_active_todos(self) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.refresh_active_todos)

    def clear_todos(self) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.clear_todos)

    def clear_all_todos(self) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.clear_all_todos)

    def clear_completed_todos(self) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.clear_completed_todos)

    def restore_todos(self, todos: Iterable[PomodoroTodo], selected_ids: Iterable[str]) -> PomodoroSnapshot:
        return self._apply_todos(self.todo_ops.restore_todos, todos, selected_ids)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _begin(self, snap: PomodoroSnapshot, phase: PomodoroPhase, minutes: int) -> None:
        total = max(1, int(minutes)) * MS_PER_MINUTE
        deadline = self.now() + total
        self._resume_phase = phase
        self._set(replace(
            snap,
            phase=phase,
            total_millis=total,
            remaining_millis=total,
            session_completed_at=None,
        ))
        if self._background is not None:
            self._background.start_pomodoro(total, phase)
        self._arm(deadline)
        logger.info("%s started for %d min", phase.value, total // MS_PER_MINUTE)

    def _on_tick(self, remaining: int) -> None:
        if self._snapshot.is_running:
            self._set(replace(self._snapshot, remaining_millis=remaining))

    def _on_complete(self, finished_at: int) -> None:
        if self._snapshot.is_running:
            self._complete(self._snapshot.phase, finished_at)

    def _complete(self, phase: PomodoroPhase, completed_at: Optional[int]) -> None:
        self._disarm()
        self._deadline_ms = None
        self._resume_phase = PomodoroPhase.IDLE
        snap = replace(
            self._snapshot,
            phase=PomodoroPhase.IDLE,
            remaining_millis=0,
            session_completed_at=completed_at,
        )
        if phase == PomodoroPhase.WORK:
            snap = replace(
                snap,
                completed_pomodoros=snap.completed_pomodoros + 1,
                current_pomodoro_in_cycle=snap.current_pomodoro_in_cycle + 1,
            )
        elif phase == PomodoroPhase.LONG_BREAK:
            snap = replace(snap, current_pomodoro_in_cycle=0)
        self._set(snap)
        if self._background is not None:
            self._background.stop(POMODORO)
        if self._chime is not None:
            self._chime.play_completion(is_break_ending=phase.is_break)
        self._persist()
        logger.info(
            "%s complete (cycle %d/%d, lifetime %d)",
            phase.value,
            snap.current_pomodoro_in_cycle,
            snap.settings.pomodoros_until_long_break,
            snap.completed_pomodoros,
        )
