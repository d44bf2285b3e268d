"""
Countdown Timer Session — counts down to the next occurrence of a chosen
clock time (e.g. "until 17:30").
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from ..clock import next_occurrence
from ..countdown import CountdownEngine
from ..models import TimerSnapshot, TimerStatus
from ..platform.background import COUNTDOWN
from .base import Session

logger = logging.getLogger(__name__)


class CountdownTimerSession(Session):
    """
    State machine: IDLE → RUNNING → (PAUSED ⇄ RUNNING) → FINISHED,
    and back to IDLE from anywhere via ``stop()``.

    ``chime`` and ``background`` are optional collaborators (see
    ``countdownhour.platform``); they are told about every transition.
    """

    def __init__(self, engine: CountdownEngine, chime=None, background=None):
        super().__init__(engine, TimerSnapshot())
        self._chime = chime
        self._background = background

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def set_target(self, hour: int, minute: int) -> TimerSnapshot:
        with self._lock:
            if not (0 <= hour <= 23 and 0 <= minute <= 59):
                logger.warning("ignoring out-of-range target %r:%r", hour, minute)
                return self._snapshot
            self._set(replace(self._snapshot, target_hour=hour, target_minute=minute))
            return self._snapshot

    def start(self) -> TimerSnapshot:
        with self._lock:
            if not self._snapshot.has_target:
                return self._snapshot
            self._arm_to_target()
            return self._snapshot

    def reset(self) -> TimerSnapshot:
        """Re-arm to the same time of day from now; old remaining time is dropped."""
        return self.start()

    def pause(self) -> TimerSnapshot:
        with self._lock:
            if self._snapshot.status != TimerStatus.RUNNING:
                return self._snapshot
            remaining = self._live_remaining()
            if remaining <= 0:
                self._finish(self._deadline_ms)
                return self._snapshot
            self._disarm()
            self._set(replace(self._snapshot, remaining_millis=remaining, status=TimerStatus.PAUSED))
            if self._background is not None:
                self._background.pause(COUNTDOWN)
            logger.info("countdown paused with %d ms left", remaining)
            return self._snapshot

    def resume(self) -> TimerSnapshot:
        with self._lock:
            if self._snapshot.status != TimerStatus.PAUSED:
                return self._snapshot
            deadline = self.now() + self._snapshot.remaining_millis
            self._set(replace(self._snapshot, status=TimerStatus.RUNNING))
            if self._background is not None:
                self._background.resume(COUNTDOWN)
            self._arm(deadline)
            logger.info("countdown resumed")
            return self._snapshot

    def stop(self) -> TimerSnapshot:
        with self._lock:
            self._disarm()
            self._deadline_ms = None
            self._set(TimerSnapshot())
            if self._background is not None:
                self._background.stop(COUNTDOWN)
            logger.info("countdown stopped")
            return self._snapshot

    def sync_from_background(self) -> TimerSnapshot:
        """
        Reconcile with the wall clock after suspension. A deadline that
        passed while suspended finishes the timer *at the deadline*.
        """
        with self._lock:
            if self._snapshot.status != TimerStatus.RUNNING or self._deadline_ms is None:
                return self._snapshot
            remaining = self._deadline_ms - self.now()
            if remaining <= 0:
                self._finish(self._deadline_ms)
            else:
                self._set(replace(self._snapshot, remaining_millis=remaining))
                if self._background is not None:
                    self._background.sync_countdown_state(remaining, True)
            return self._snapshot

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _arm_to_target(self) -> None:
        now = self.now()
        snap = self._snapshot
        deadline = next_occurrence(snap.target_hour, snap.target_minute, now)
        total = deadline - now
        if total <= 0:
            return
        self._set(replace(
            snap,
            remaining_millis=total,
            total_millis=total,
            status=TimerStatus.RUNNING,
            finished_at=None,
        ))
        if self._background is not None:
            self._background.start_countdown(deadline)
        self._arm(deadline)
        logger.info("countdown armed to %02d:%02d (%d ms)", snap.target_hour, snap.target_minute, total)

    def _on_tick(self, remaining: int) -> None:
        if self._snapshot.status == TimerStatus.RUNNING:
            self._set(replace(self._snapshot, remaining_millis=remaining))

    def _on_complete(self, finished_at: int) -> None:
        if self._snapshot.status == TimerStatus.RUNNING:
            self._finish(finished_at)

    def _finish(self, finished_at: Optional[int]) -> None:
        self._disarm()
        self._deadline_ms = None
        self._set(replace(
            self._snapshot,
            remaining_millis=0,
            status=TimerStatus.FINISHED,
            finished_at=finished_at,
        ))
        if self._background is not None:
            self._background.stop(COUNTDOWN)
        if self._chime is not None:
            self._chime.play_completion(is_break_ending=False)
        logger.info("countdown finished")
