"""
/timer — countdown to a chosen clock time.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...api.schemas import TargetIn, TimerStateOut, timer_out

router = APIRouter(prefix="/timer", tags=["timer"])


def _get_timer(request: Request):
    return request.app.state.services["timer"]


@router.get("", response_model=TimerStateOut)
def get_timer(timer=Depends(_get_timer)):
    return timer_out(timer.snapshot, timer.now())


@router.post("/target", response_model=TimerStateOut)
def set_target(req: TargetIn, timer=Depends(_get_timer)):
    """Choose the clock time to count down to; starts nothing."""
    return timer_out(timer.set_target(req.hour, req.minute), timer.now())


@router.post("/start", response_model=TimerStateOut)
def start(timer=Depends(_get_timer)):
    return timer_out(timer.start(), timer.now())


@router.post("/pause", response_model=TimerStateOut)
def pause(timer=Depends(_get_timer)):
    return timer_out(timer.pause(), timer.now())


@router.post("/resume", response_model=TimerStateOut)
def resume(timer=Depends(_get_timer)):
    return timer_out(timer.resume(), timer.now())


@router.post("/reset", response_model=TimerStateOut)
def reset(timer=Depends(_get_timer)):
    """Re-arm to the same target time of day, counting from now."""
    return timer_out(timer.reset(), timer.now())


@router.post("/stop", response_model=TimerStateOut)
def stop(timer=Depends(_get_timer)):
    return timer_out(timer.stop(), timer.now())


@router.post("/sync", response_model=TimerStateOut)
def sync(timer=Depends(_get_timer)):
    """Call when the UI returns to the foreground."""
    return timer_out(timer.sync_from_background(), timer.now())
