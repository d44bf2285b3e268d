"""
/pomodoro — work / break phases, pause, skip, time adjustment, resync.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...api.schemas import AddTimeIn, BreakIn, PomodoroStateOut, WorkIn, pomodoro_out

router = APIRouter(prefix="/pomodoro", tags=["pomodoro"])


def _get_pomodoro(request: Request):
    return request.app.state.services["pomodoro"]


@router.get("", response_model=PomodoroStateOut)
def get_pomodoro(pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.snapshot, pomodoro.now())


@router.post("/work", response_model=PomodoroStateOut)
def start_work(req: Optional[WorkIn] = None, pomodoro=Depends(_get_pomodoro)):
    """Start a focus phase, binding the selected todos unless told not to."""
    req = req or WorkIn()
    snap = pomodoro.start_work(req.duration_minutes, req.skip_todo_activation)
    return pomodoro_out(snap, pomodoro.now())


@router.post("/break", response_model=PomodoroStateOut)
def start_break(req: Optional[BreakIn] = None, pomodoro=Depends(_get_pomodoro)):
    """Start whichever break is due (long once the cycle is full)."""
    req = req or BreakIn()
    return pomodoro_out(pomodoro.start_break(req.duration_minutes), pomodoro.now())


@router.post("/pause", response_model=PomodoroStateOut)
def pause(pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.pause(), pomodoro.now())


@router.post("/resume", response_model=PomodoroStateOut)
def resume(pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.resume(), pomodoro.now())


@router.post("/add-time", response_model=PomodoroStateOut)
def add_time(req: AddTimeIn, pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.add_time(req.minutes), pomodoro.now())


@router.post("/skip", response_model=PomodoroStateOut)
def skip(pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.skip_phase(), pomodoro.now())


@router.post("/reset", response_model=PomodoroStateOut)
def reset(pomodoro=Depends(_get_pomodoro)):
    return pomodoro_out(pomodoro.reset(), pomodoro.now())


@router.post("/sync", response_model=PomodoroStateOut)
def sync(pomodoro=Depends(_get_pomodoro)):
    """Call when the UI returns to the foreground."""
    return pomodoro_out(pomodoro.sync_from_background(), pomodoro.now())
