"""
/settings — read and replace the Pomodoro cycle settings.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ...api.schemas import SettingsIn
from ...models import PomodoroSettings

router = APIRouter(prefix="/settings", tags=["settings"])


def _get_pomodoro(request: Request):
    return request.app.state.services["pomodoro"]


@router.get("")
def read_settings(pomodoro=Depends(_get_pomodoro)):
    """Return current settings with their defaults for reference."""
    return {
        "settings": pomodoro.snapshot.settings.to_dict(),
        "defaults": PomodoroSettings().to_dict(),
    }


@router.put("")
def write_settings(req: SettingsIn, pomodoro=Depends(_get_pomodoro)):
    """Replace the settings wholesale; omitted fields take their defaults. Persisted."""
    snap = pomodoro.update_settings(req.to_settings())
    return {"settings": snap.settings.to_dict()}
