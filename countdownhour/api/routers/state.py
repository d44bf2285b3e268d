"""
/state — combined snapshot of both sessions + WebSocket stream.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from ...api.schemas import pomodoro_out, timer_out

router = APIRouter(prefix="/state", tags=["state"])


def _get_services(request: Request):
    return request.app.state.services


def _ws_services(websocket: WebSocket):
    return websocket.app.state.services


def _payload(services) -> dict:
    timer = services["timer"]
    pomodoro = services["pomodoro"]
    status = services["background"].status
    return {
        "timer": timer_out(timer.snapshot, timer.now()).model_dump(),
        "pomodoro": pomodoro_out(pomodoro.snapshot, pomodoro.now()).model_dump(),
        "status": {"title": status.title, "text": status.text},
    }


@router.get("")
def get_state(services=Depends(_get_services)):
    return _payload(services)


@router.websocket("/ws")
async def state_websocket(websocket: WebSocket, services=Depends(_ws_services)):
    """
    WebSocket stream — pushes both snapshots once per tick interval.
    The UI subscribes to this instead of polling.
    """
    interval_s = websocket.app.state.tick_interval_ms / 1000.0
    await websocket.accept()
    try:
        while True:
            await websocket.send_json(_payload(services))
            await asyncio.sleep(interval_s)
    except WebSocketDisconnect:
        pass
