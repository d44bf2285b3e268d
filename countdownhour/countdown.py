"""
Countdown Engine — counts down to an absolute deadline.

Every tick recomputes ``deadline - now()`` from the live clock, so late or
missed ticks (suspension, CPU contention) never accumulate into drift.

Usage:
    engine = CountdownEngine()
    countdown = engine.start(deadline_ms, on_tick=..., on_complete=...)
    ...
    countdown.cancel()
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .clock import Clock, MS_PER_SECOND, system_clock

logger = logging.getLogger(__name__)

TickCallback = Callable[["Countdown", int], None]
CompleteCallback = Callable[["Countdown"], None]


class Countdown:
    """
    One armed countdown; also the cancel token handed back by the engine.

    Callbacks receive the countdown itself so an owner can ignore a late
    publish from a countdown it has already superseded.
    """

    def __init__(
        self,
        deadline_ms: int,
        clock: Clock,
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        interval_ms: int = 1000,
    ):
        self._deadline_ms = deadline_ms
        self._clock = clock
        self._on_tick = on_tick
        self._on_complete = on_complete
        self._interval_ms = interval_ms
        self._lock = threading.Lock()
        self._cancelled = threading.Event()
        self._completed = False
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def deadline_ms(self) -> int:
        return self._deadline_ms

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set() and not self._completed

    @property
    def ticking(self) -> bool:
        return self.active and self._thread is not None and self._thread.is_alive()

    def remaining_ms(self) -> int:
        return max(0, self._deadline_ms - self._clock())

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def retarget(self, deadline_ms: int) -> None:
        """Move the deadline of a still-active countdown."""
        with self._lock:
            if self.active:
                self._deadline_ms = deadline_ms

    def cancel(self) -> None:
        """Stop ticking without signalling completion."""
        self._cancelled.set()

    def tick(self) -> int:
        """
        Recompute remaining time, publish it, and fire completion once at zero.
        Returns the published value; a finished countdown publishes nothing.
        """
        with self._lock:
            if not self.active:
                return 0
            remaining = self.remaining_ms()
            if remaining <= 0:
                self._completed = True

        if self._on_tick is not None:
            self._on_tick(self, remaining)
        if remaining <= 0:
            logger.debug("countdown reached deadline %d", self._deadline_ms)
            if self._on_complete is not None:
                self._on_complete(self)
        return remaining

    # ------------------------------------------------------------------
    # Thread
    # ------------------------------------------------------------------

    def _start_thread(self) -> None:
        self._thread = threading.Thread(
            target=self._run, daemon=True, name="countdown-ticker"
        )
        self._thread.start()

    def _next_wait_s(self) -> float:
        # wake at the deadline itself when it is closer than one interval
        wait_ms = min(self._interval_ms, self.remaining_ms())
        return max(wait_ms, 1) / MS_PER_SECOND

    def _run(self) -> None:
        while not self._cancelled.wait(self._next_wait_s()):
            try:
                self.tick()
            except Exception:
                logger.exception("countdown listener failed")
            if self._completed:
                break


class CountdownEngine:
    """
    Factory for countdowns sharing one clock and tick interval.

    With ``threaded=False`` countdowns are armed but never tick on their own;
    the owner drives them with ``Countdown.tick()``.
    """

    def __init__(
        self,
        clock: Clock = system_clock,
        interval_ms: int = 1000,
        threaded: bool = True,
    ):
        self.clock = clock
        self.interval_ms = interval_ms
        self.threaded = threaded

    def now(self) -> int:
        return self.clock()

    def start(
        self,
        deadline_ms: int,
        on_tick: Optional[TickCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ) -> Countdown:
        countdown = Countdown(
            deadline_ms,
            self.clock,
            on_tick=on_tick,
            on_complete=on_complete,
            interval_ms=self.interval_ms,
        )
        if self.threaded:
            countdown._start_thread()
        return countdown
