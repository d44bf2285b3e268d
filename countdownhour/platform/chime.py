"""
Completion chime — platform-aware playback of a short notification sound.
A break ending (time to focus again) rings twice.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import threading
from typing import List, Optional

logger = logging.getLogger(__name__)

_MACOS_SOUND = "/System/Library/Sounds/Glass.aiff"
_LINUX_SOUND = "/usr/share/sounds/freedesktop/stereo/complete.oga"


class Chime:

    def __init__(self, enabled: bool = True, double_gap_ms: int = 350):
        self.enabled = enabled
        self.double_gap_ms = double_gap_ms
        self._pending: Optional[threading.Timer] = None

    def play_completion(self, is_break_ending: bool = False) -> bool:
        """Ring once; ring a second time ``double_gap_ms`` later when a break just ended."""
        if not self.enabled:
            return False
        played = self._ring()
        if is_break_ending:
            self._pending = threading.Timer(self.double_gap_ms / 1000.0, self._ring)
            self._pending.daemon = True
            self._pending.start()
        return played

    # ------------------------------------------------------------------
    # Platform implementations
    # ------------------------------------------------------------------

    def _ring(self) -> bool:
        return self._spawn(self._command())

    def _command(self) -> List[str]:
        if sys.platform == "win32":
            return ["powershell", "-Command", "[System.Media.SystemSounds]::Asterisk.Play()"]
        if sys.platform == "darwin":
            return ["afplay", _MACOS_SOUND]
        return ["paplay", _LINUX_SOUND]

    def _spawn(self, cmd: List[str]) -> bool:
        try:
            subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("could not play chime with %s: %s", cmd[0], e)
            return False
