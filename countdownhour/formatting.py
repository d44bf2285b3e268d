"""
Human-readable renderings of millisecond durations and clock times.
"""

from __future__ import annotations

from datetime import datetime

from .clock import MS_PER_SECOND


def _split(millis: int):
    total_seconds = max(0, millis) // MS_PER_SECOND
    return total_seconds // 3600, (total_seconds % 3600) // 60, total_seconds % 60


def format_remaining(millis: int) -> str:
    """``HH:MM:SS`` when an hour or more is left, ``MM:SS`` otherwise."""
    hours, minutes, seconds = _split(millis)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_elapsed(millis: int) -> str:
    """Time since a session finished, shown as ``+H:MM:SS`` or ``+MM:SS``."""
    hours, minutes, seconds = _split(millis)
    if hours > 0:
        return f"+{hours}:{minutes:02d}:{seconds:02d}"
    return f"+{minutes:02d}:{seconds:02d}"


def format_end_time(now_ms: int, remaining_millis: int) -> str:
    """Local wall-clock ``HH:MM`` at which a running phase will end."""
    end = datetime.fromtimestamp((now_ms + remaining_millis) / MS_PER_SECOND)
    return end.strftime("%H:%M")
