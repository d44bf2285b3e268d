"""
Clock source — wall-clock time as integer milliseconds since the epoch.

Everything that measures time takes a ``Clock`` callable so tests can swap in
a controllable one.
"""

from __future__ import annotations

import time
from datetime import datetime, timedelta
from typing import Callable

Clock = Callable[[], int]

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE


def system_clock() -> int:
    return int(time.time() * MS_PER_SECOND)


def next_occurrence(hour: int, minute: int, now_ms: int) -> int:
    """
    Return the epoch millis of the next local ``hour:minute:00.000``.

    A time of day already behind ``now_ms`` resolves to the same time
    tomorrow; a time exactly equal to now stays today.
    """
    now = datetime.fromtimestamp(now_ms / MS_PER_SECOND)
    target = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if target < now:
        target += timedelta(days=1)
    return int(target.timestamp() * MS_PER_SECOND)
