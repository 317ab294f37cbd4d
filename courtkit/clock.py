"""A countdown clock that renders the remaining time as hh:mm:ss.zzz."""

from __future__ import annotations

import time
from typing import Callable

TICK_INTERVAL_MS = 1000 // 60
ZERO_TEXT = "00:00:00.000"
_DAY_MS = 1000 * 3600 * 24


def _monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def format_remaining(msecs: int) -> str:
    """Format a remaining duration, wrapping at one day; non-positive gives zero."""
    if msecs <= 0:
        return ZERO_TEXT
    msecs %= _DAY_MS
    hours, rest = divmod(msecs, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


class CountdownClock:
    """Counts down towards a target time; ``tick`` refreshes ``text``."""

    def __init__(self, now: Callable[[], int] = _monotonic_ms) -> None:
        self._now = now
        self._target = now()
        self._running = False
        self.text = ""

    def start(self, msecs: int | None = None) -> None:
        """Start ticking, optionally setting the remaining time first."""
        if msecs is not None:
            self.set(msecs)
        self._running = True

    def set(self, msecs: int, update_text: bool = False) -> None:
        self._target = self._now() + msecs
        if update_text:
            self.text = format_remaining(self.remaining())

    def remaining(self) -> int:
        return self._target - self._now()

    def pause(self) -> None:
        self._running = False

    def stop(self) -> None:
        self.text = ZERO_TEXT
        self._running = False

    def skip(self, msecs: int) -> None:
        """Move the target closer by ``msecs`` and refresh the text."""
        self.set(self.remaining() - msecs, True)

    def active(self) -> bool:
        return self._running

    def tick(self) -> str:
        """Refresh the text; stop once the target time is reached."""
        if self._running:
            if self._now() >= self._target:
                self.stop()
            else:
                self.text = format_remaining(self.remaining())
        return self.text