"""
Press-back-twice-to-exit guard.
"""

import time
from typing import Callable, Optional

BACK_PRESS_WINDOW_MS = 2000


def _now_ms() -> float:
    return time.monotonic() * 1000


class BackPressGuard:
    """Decides whether a back press should close the screen.

    The first press only arms the guard; a second press within
    ``window_ms`` of the armed time confirms the exit. A late second press
    re-arms the guard instead.
    """

    def __init__(self, window_ms: int = BACK_PRESS_WINDOW_MS,
                 clock: Callable[[], float] = _now_ms):
        self.window_ms = window_ms
        self.clock = clock
        self.last_press_ms: Optional[float] = None

    def press(self) -> bool:
        """Register a back press; True means the screen should close."""
        now = self.clock()
        if self.last_press_ms is not None and now < self.last_press_ms + self.window_ms:
            return True
        self.last_press_ms = now
        return False
