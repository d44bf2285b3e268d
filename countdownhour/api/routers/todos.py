"""
/todos — the todo pool, selection for the next focus phase, and the active
set of the running one.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from ...api.schemas import ClearOut, TodoBackup, TodoIn, TodosOut, backup_of, todos_out
from ...sessions.todos import export_todos

router = APIRouter(prefix="/todos", tags=["todos"])


def _get_pomodoro(request: Request):
    return request.app.state.services["pomodoro"]


@router.get("", response_model=TodosOut)
def get_todos(pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.snapshot)


@router.post("", response_model=TodosOut, status_code=201)
def add_todo(req: TodoIn, pomodoro=Depends(_get_pomodoro)):
    """Blank text or a full pool leaves the pool unchanged."""
    return todos_out(pomodoro.add_to_pool(req.text))


@router.get("/export", response_class=PlainTextResponse)
def export(pomodoro=Depends(_get_pomodoro)):
    return export_todos(pomodoro.snapshot.todo_pool)


@router.post("/refresh", response_model=TodosOut)
def refresh_active(pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.refresh_active_todos())


@router.post("/clear", response_model=ClearOut)
def clear_all(pomodoro=Depends(_get_pomodoro)):
    undo = backup_of(pomodoro.snapshot)
    return ClearOut(state=todos_out(pomodoro.clear_all_todos()), undo=undo)


@router.post("/clear-completed", response_model=ClearOut)
def clear_completed(pomodoro=Depends(_get_pomodoro)):
    undo = backup_of(pomodoro.snapshot)
    return ClearOut(state=todos_out(pomodoro.clear_completed_todos()), undo=undo)


@router.post("/restore", response_model=TodosOut)
def restore(backup: TodoBackup, pomodoro=Depends(_get_pomodoro)):
    snap = pomodoro.restore_todos(
        [t.to_todo() for t in backup.todo_pool], backup.selected_todo_ids
    )
    return todos_out(snap)


@router.post("/active/clear", response_model=TodosOut)
def clear_active(pomodoro=Depends(_get_pomodoro)):
    """Unbind the running focus phase's todos and drop the selection; the pool stays."""
    return todos_out(pomodoro.clear_todos())


@router.post("/active/{todo_id}/toggle", response_model=TodosOut)
def toggle_active(todo_id: str, pomodoro=Depends(_get_pomodoro)):
    """Tick off an item of the running focus phase; mirrored into the pool."""
    return todos_out(pomodoro.toggle_completion(todo_id, active=True))


@router.patch("/{todo_id}", response_model=TodosOut)
def update_text(todo_id: str, req: TodoIn, pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.update_text(todo_id, req.text))


@router.delete("/{todo_id}", response_model=TodosOut)
def remove(todo_id: str, pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.remove_from_pool(todo_id))


@router.post("/{todo_id}/select", response_model=TodosOut)
def toggle_selection(todo_id: str, pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.toggle_selection(todo_id))


@router.post("/{todo_id}/toggle", response_model=TodosOut)
def toggle_pool(todo_id: str, pomodoro=Depends(_get_pomodoro)):
    return todos_out(pomodoro.toggle_completion(todo_id))
