"""
Todo Activation — the persistent todo pool, the bounded "selected for the
next focus session" subset, and the active set copied into a running session.

All operations are pure: they take a PomodoroSnapshot and return a new one
(the same object when the operation is rejected). The Pomodoro session
decides when to apply them and persists the result.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence

from ..clock import Clock, system_clock
from ..models import PomodoroPhase, PomodoroSnapshot, PomodoroTodo

DEFAULT_POOL_CAPACITY = 50
DEFAULT_SELECTION_CAPACITY = 5
DEFAULT_TEXT_MAX_LENGTH = 72


def _new_id() -> str:
    return str(uuid.uuid4())


class TodoActivation:

    def __init__(
        self,
        clock: Clock = system_clock,
        pool_capacity: int = DEFAULT_POOL_CAPACITY,
        selection_capacity: int = DEFAULT_SELECTION_CAPACITY,
        text_max_length: int = DEFAULT_TEXT_MAX_LENGTH,
        id_factory: Callable[[], str] = _new_id,
    ):
        self._clock = clock
        self.pool_capacity = pool_capacity
        self.selection_capacity = selection_capacity
        self.text_max_length = text_max_length
        self._new_id = id_factory

    def _clean(self, text: str) -> Optional[str]:
        text = (text or "").strip()
        if not text:
            return None
        return text[: self.text_max_length]

    # ------------------------------------------------------------------
    # Pool management
    # ------------------------------------------------------------------

    def add_to_pool(self, state: PomodoroSnapshot, text: str) -> PomodoroSnapshot:
        cleaned = self._clean(text)
        if cleaned is None or len(state.todo_pool) >= self.pool_capacity:
            return state
        todo = PomodoroTodo(id=self._new_id(), text=cleaned)
        return replace(state, todo_pool=state.todo_pool + (todo,))

    def remove_from_pool(self, state: PomodoroSnapshot, todo_id: str) -> PomodoroSnapshot:
        return replace(
            state,
            todo_pool=tuple(t for t in state.todo_pool if t.id != todo_id),
            selected_todo_ids=state.selected_todo_ids - {todo_id},
            todos=tuple(t for t in state.todos if t.id != todo_id),
        )

    def update_text(self, state: PomodoroSnapshot, todo_id: str, new_text: str) -> PomodoroSnapshot:
        cleaned = self._clean(new_text)
        if cleaned is None:
            return state

        def _edit(todos: Sequence[PomodoroTodo]):
            return tuple(replace(t, text=cleaned) if t.id == todo_id else t for t in todos)

        return replace(state, todo_pool=_edit(state.todo_pool), todos=_edit(state.todos))

    # ------------------------------------------------------------------
    # Selection and completion
    # ------------------------------------------------------------------

    def toggle_selection(self, state: PomodoroSnapshot, todo_id: str) -> PomodoroSnapshot:
        todo = next((t for t in state.todo_pool if t.id == todo_id), None)
        if todo is None:
            return state
        selected = state.selected_todo_ids
        if todo_id in selected:
            return replace(state, selected_todo_ids=selected - {todo_id})
        # completed items may be deselected but never newly selected
        if todo.is_completed or len(selected) >= self.selection_capacity:
            return state
        return replace(state, selected_todo_ids=selected | {todo_id})

    def toggle_completion(
        self, state: PomodoroSnapshot, todo_id: str, active: bool = False
    ) -> PomodoroSnapshot:
        """
        Flip completion of *todo_id*, looked up in the active set when
        ``active`` is true and in the pool otherwise. The change is mirrored
        into the other list and completing drops the id from the selection.
        """
        source = state.todos if active else state.todo_pool
        todo = next((t for t in source if t.id == todo_id), None)
        if todo is None:
            return state
        now_completed = not todo.is_completed
        completed_at = self._clock() if now_completed else None

        def _flip(todos: Sequence[PomodoroTodo]):
            return tuple(
                replace(t, is_completed=now_completed, completed_at=completed_at)
                if t.id == todo_id else t
                for t in todos
            )

        selected = state.selected_todo_ids
        if now_completed:
            selected = selected - {todo_id}
        return replace(
            state,
            todo_pool=_flip(state.todo_pool),
            todos=_flip(state.todos),
            selected_todo_ids=selected,
        )

    # ------------------------------------------------------------------
    # Binding to a focus session
    # ------------------------------------------------------------------

    def activate_selected(self, state: PomodoroSnapshot) -> PomodoroSnapshot:
        """Copy the selected pool entries into the active set, completion reset."""
        active = tuple(
            replace(t, is_completed=False, completed_at=None)
            for t in state.todo_pool
            if t.id in state.selected_todo_ids
        )
        return replace(state, todos=active)

    def refresh_active_todos(self, state: PomodoroSnapshot) -> PomodoroSnapshot:
        """Re-derive the active set mid-session, keeping in-session progress."""
        if state.phase not in (PomodoroPhase.WORK, PomodoroPhase.PAUSED):
            return state
        existing = {t.id: t for t in state.todos}
        active = tuple(
            existing.get(t.id) or replace(t, is_completed=False, completed_at=None)
            for t in state.todo_pool
            if t.id in state.selected_todo_ids
        )
        return replace(state, todos=active)

    def clear_todos(self, state: PomodoroSnapshot) -> PomodoroSnapshot:
        """Drop the active set and selection; the pool is untouched."""
        return replace(state, todos=(), selected_todo_ids=frozenset())

    # ------------------------------------------------------------------
    # Bulk operations
    # ------------------------------------------------------------------

    def clear_all_todos(self, state: PomodoroSnapshot) -> PomodoroSnapshot:
        return replace(state, todo_pool=(), selected_todo_ids=frozenset(), todos=())

    def clear_completed_todos(self, state: PomodoroSnapshot) -> PomodoroSnapshot:
        completed = {t.id for t in state.todo_pool if t.is_completed}
        return replace(
            state,
            todo_pool=tuple(t for t in state.todo_pool if not t.is_completed),
            selected_todo_ids=state.selected_todo_ids - completed,
            todos=tuple(t for t in state.todos if not t.is_completed),
        )

    def restore_todos(
        self,
        state: PomodoroSnapshot,
        todos: Iterable[PomodoroTodo],
        selected_ids: Iterable[str],
    ) -> PomodoroSnapshot:
        """Undo for the bulk clears: put back a captured pool and selection verbatim."""
        return replace(state, todo_pool=tuple(todos), selected_todo_ids=frozenset(selected_ids))


def export_todos(todos: Sequence[PomodoroTodo]) -> str:
    """Render the pool as a checklist: open items first, then done items."""
    if not todos:
        return ""
    lines = ["# Task Pool", ""]
    open_items = [t for t in todos if not t.is_completed]
    done_items = [t for t in todos if t.is_completed]
    if open_items:
        lines.append("## To Do")
        lines.extend(f"- [ ] {t.text}" for t in open_items)
        lines.append("")
    if done_items:
        lines.append("## Done")
        lines.extend(f"- [x] {t.text}" for t in done_items)
    return "\n".join(lines).rstrip("\n") + "\n"
