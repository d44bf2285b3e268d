"""
Shared plumbing for timer sessions: snapshot ownership, listeners, and the
single in-flight countdown each session may hold.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

from ..countdown import Countdown, CountdownEngine

logger = logging.getLogger(__name__)


class Session:
    """
    Owns one snapshot value and at most one armed countdown.

    Every mutation happens under ``_lock`` and replaces the snapshot
    wholesale; listeners registered with ``subscribe`` get each new value.
    """

    def __init__(self, engine: CountdownEngine, initial: Any):
        self._engine = engine
        self._lock = threading.RLock()
        self._snapshot = initial
        self._countdown: Optional[Countdown] = None
        self._deadline_ms: Optional[int] = None
        self._listeners: List[Callable[[Any], None]] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    @property
    def snapshot(self):
        return self._snapshot

    @property
    def deadline_ms(self) -> Optional[int]:
        return self._deadline_ms

    def now(self) -> int:
        return self._engine.now()

    def subscribe(self, fn: Callable[[Any], None]) -> None:
        """Register a callback(snapshot) called after every change."""
        self._listeners.append(fn)

    def _set(self, snapshot) -> None:
        self._snapshot = snapshot
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("snapshot listener failed")

    # ------------------------------------------------------------------
    # Countdown ownership
    # ------------------------------------------------------------------

    def _arm(self, deadline_ms: int) -> None:
        self._disarm()
        self._deadline_ms = deadline_ms
        self._countdown = self._engine.start(
            deadline_ms, on_tick=self._handle_tick, on_complete=self._handle_complete
        )

    def _disarm(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
        self._countdown = None

    def _retarget(self, deadline_ms: int) -> None:
        self._deadline_ms = deadline_ms
        if self._countdown is not None:
            self._countdown.retarget(deadline_ms)

    def _live_remaining(self) -> int:
        if self._deadline_ms is None:
            return 0
        return max(0, self._deadline_ms - self.now())

    def _handle_tick(self, countdown: Countdown, remaining: int) -> None:
        with self._lock:
            if countdown is not self._countdown:
                return
            self._on_tick(remaining)

    def _handle_complete(self, countdown: Countdown) -> None:
        with self._lock:
            if countdown is not self._countdown:
                return
            self._countdown = None
            self._on_complete(self.now())

    def tick(self) -> None:
        """Drive the current countdown by hand (non-threaded engines)."""
        countdown = self._countdown
        if countdown is not None:
            countdown.tick()

    def close(self) -> None:
        """Stop ticking without touching the snapshot."""
        with self._lock:
            self._disarm()

    # Subclass hooks ------------------------------------------------------

    def _on_tick(self, remaining: int) -> None:
        raise NotImplementedError

    def _on_complete(self, finished_at: int) -> None:
        raise NotImplementedError
