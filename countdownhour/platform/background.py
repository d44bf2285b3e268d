"""
Background Ticker — the keep-alive countdowns that run independently of the
foreground sessions and maintain a persistent status line
(title + ``HH:MM:SS`` / ``MM:SS``).

The countdown timer and the Pomodoro session each get their own lane: a
copy of the session's absolute deadline plus a running flag, so neither can
drift from the session that armed it and stopping one leaves the other
alone. The status line belongs to whichever lane was armed last
(``owner``). On reaching zero a lane calls ``on_countdown_complete`` /
``on_pomodoro_complete``; the service wires those to the sessions'
``sync_from_background``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, Optional

from ..countdown import Countdown, CountdownEngine
from ..formatting import format_remaining
from ..models import PomodoroPhase

logger = logging.getLogger(__name__)

COUNTDOWN = "countdown"
POMODORO = "pomodoro"
MODES = (COUNTDOWN, POMODORO)

COUNTDOWN_TITLE = "Countdown"
POMODORO_TITLE = "Pomodoro"


@dataclass(frozen=True)
class StatusLine:
    title: str = ""
    text: str = ""


def _phase_title(phase: PomodoroPhase) -> str:
    return phase.label if phase.is_running else POMODORO_TITLE


class BackgroundTicker:
    """
    Accepts the same commands a foreground session issues:
    start_countdown, start_pomodoro, pause, resume, stop, add_time, and the
    sync_* calls that hand it an authoritative remaining time.

    pause / resume / stop take the caller's mode so a session only touches
    its own lane; without one they act on both.
    """

    def __init__(
        self,
        engine: CountdownEngine,
        on_status: Optional[Callable[[StatusLine], None]] = None,
    ):
        self._engine = engine
        self._on_status = on_status
        self._lock = threading.RLock()
        self._countdowns: Dict[str, Optional[Countdown]] = {mode: None for mode in MODES}

        self.owner: Optional[str] = None
        self.countdown_remaining_ms = 0
        self.countdown_running = False
        self.pomodoro_remaining_ms = 0
        self.pomodoro_running = False
        self.pomodoro_phase = PomodoroPhase.IDLE
        self.status = StatusLine()

        self.on_countdown_complete: Optional[Callable[[], None]] = None
        self.on_pomodoro_complete: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start_countdown(self, target_time_ms: int) -> None:
        with self._lock:
            remaining = target_time_ms - self._engine.now()
            if remaining <= 0:
                return
            self._set_lane(COUNTDOWN, remaining, True)
            self.owner = COUNTDOWN
            self._publish(COUNTDOWN_TITLE, format_remaining(remaining))
            self._arm(COUNTDOWN, target_time_ms)

    def start_pomodoro(self, duration_ms: int, phase) -> None:
        with self._lock:
            self.pomodoro_phase = PomodoroPhase.parse(phase)
            self._set_lane(POMODORO, duration_ms, True)
            self.owner = POMODORO
            self._publish(self._title(POMODORO), format_remaining(duration_ms))
            self._arm(POMODORO, self._engine.now() + duration_ms)

    def pause(self, mode: Optional[str] = None) -> None:
        with self._lock:
            modes = self._modes(mode)
            for m in modes:
                countdown = self._countdowns[m]
                remaining = self._remaining(m)
                if countdown is not None and self._running(m):
                    remaining = countdown.remaining_ms()
                self._disarm(m)
                self._set_lane(m, remaining, False)
            if self.owner in modes:
                self._publish("Timer", "Paused")

    def resume(self, mode: Optional[str] = None) -> None:
        with self._lock:
            now = self._engine.now()
            for m in self._modes(mode):
                remaining = self._remaining(m)
                if remaining > 0 and not self._running(m):
                    self._set_lane(m, remaining, True)
                    self.owner = m
                    self._arm(m, now + remaining)

    def stop(self, mode: Optional[str] = None) -> None:
        with self._lock:
            modes = self._modes(mode)
            for m in modes:
                self._disarm(m)
                self._set_lane(m, 0, False)
                if m == POMODORO:
                    self.pomodoro_phase = PomodoroPhase.IDLE
            if self.owner in modes:
                self._hand_over()

    def add_time(self, delta_ms: int) -> None:
        with self._lock:
            countdown = self._countdowns[POMODORO]
            if not self.pomodoro_running or self.pomodoro_remaining_ms <= 0 or countdown is None:
                return
            countdown.retarget(countdown.deadline_ms + delta_ms)
            self.pomodoro_remaining_ms += delta_ms
            if self.owner == POMODORO:
                self._publish(self._title(POMODORO), format_remaining(self.pomodoro_remaining_ms))

    def sync_countdown_state(self, remaining_ms: int, is_running: bool) -> None:
        with self._lock:
            if not is_running or remaining_ms <= 0:
                return
            self._sync(COUNTDOWN, remaining_ms)

    def sync_pomodoro_state(self, remaining_ms: int, is_running: bool, phase) -> None:
        with self._lock:
            if not is_running or remaining_ms <= 0:
                return
            self.pomodoro_phase = PomodoroPhase.parse(phase)
            self._sync(POMODORO, remaining_ms)

    @property
    def ticking(self) -> bool:
        return any(self.is_ticking(mode) for mode in MODES)

    def is_ticking(self, mode: str) -> bool:
        countdown = self._countdowns[mode]
        return countdown is not None and countdown.active

    def tick(self) -> None:
        """Drive the armed countdowns by hand (non-threaded engines)."""
        for mode in MODES:
            countdown = self._countdowns[mode]
            if countdown is not None:
                countdown.tick()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _modes(self, mode: Optional[str]):
        return MODES if mode is None else (mode,)

    def _remaining(self, mode: str) -> int:
        return getattr(self, f"{mode}_remaining_ms")

    def _running(self, mode: str) -> bool:
        return getattr(self, f"{mode}_running")

    def _set_lane(self, mode: str, remaining_ms: int, running: bool) -> None:
        setattr(self, f"{mode}_remaining_ms", remaining_ms)
        setattr(self, f"{mode}_running", running)

    def _title(self, mode: str) -> str:
        return COUNTDOWN_TITLE if mode == COUNTDOWN else _phase_title(self.pomodoro_phase)

    def _sync(self, mode: str, remaining_ms: int) -> None:
        self._set_lane(mode, remaining_ms, True)
        self.owner = mode
        deadline = self._engine.now() + remaining_ms
        # only (re)start ticking when not already ticking
        if self.is_ticking(mode):
            self._countdowns[mode].retarget(deadline)
        else:
            self._publish(self._title(mode), format_remaining(remaining_ms))
            self._arm(mode, deadline)

    def _hand_over(self) -> None:
        """Give the status line to the other lane if it is still running, else clear it."""
        running = [m for m in MODES if self._running(m)]
        if running:
            self.owner = running[0]
            self._publish(self._title(self.owner), format_remaining(self._remaining(self.owner)))
        else:
            self.owner = None
            self._publish("", "")

    def _arm(self, mode: str, deadline_ms: int) -> None:
        self._disarm(mode)
        self._countdowns[mode] = self._engine.start(
            deadline_ms,
            on_tick=partial(self._handle_tick, mode),
            on_complete=partial(self._handle_complete, mode),
        )

    def _disarm(self, mode: str) -> None:
        countdown = self._countdowns[mode]
        if countdown is not None:
            countdown.cancel()
        self._countdowns[mode] = None

    def _handle_tick(self, mode: str, countdown: Countdown, remaining: int) -> None:
        with self._lock:
            if countdown is not self._countdowns[mode] or remaining <= 0:
                return
            if not self._running(mode):
                return
            self._set_lane(mode, remaining, True)
            if self.owner == mode:
                self._publish(self._title(mode), format_remaining(remaining))

    def _handle_complete(self, mode: str, countdown: Countdown) -> None:
        with self._lock:
            if countdown is not self._countdowns[mode]:
                return
            self._countdowns[mode] = None
            if not self._running(mode):
                return
            title = self._title(mode)
            self._set_lane(mode, 0, False)
            if mode == POMODORO:
                self.pomodoro_phase = PomodoroPhase.IDLE
                callback = self.on_pomodoro_complete
            else:
                callback = self.on_countdown_complete
            if self.owner == mode:
                self._publish(title, "Finished!")
        # outside the lock: the callback re-enters a session, which calls back in here
        if callback is not None:
            callback()

    def _publish(self, title: str, text: str) -> None:
        self.status = StatusLine(title, text)
        logger.debug("status: %s %s", title, text)
        if self._on_status is not None:
            self._on_status(self.status)
