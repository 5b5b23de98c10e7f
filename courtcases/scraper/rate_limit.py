from __future__ import annotations

import time
from threading import Lock
from typing import Callable


class IntervalThrottle:
    """Allow at most one request per ``interval_s`` seconds.

    One instance is shared by every request a process makes. Clock and sleep
    are injectable for unit tests.
    """

    def __init__(
        self,
        interval_s: float,
        now: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval_s < 0:
            raise ValueError("interval_s must be >= 0")
        self.interval_s = float(interval_s)
        self._now = now
        self._sleep = sleep
        self._lock = Lock()
        self._last: float | None = None

    def acquire(self) -> float:
        """Block until the next request may go out; return seconds waited."""

        with self._lock:
            waited = 0.0
            if self._last is not None and self.interval_s > 0:
                elapsed = max(0.0, self._now() - self._last)
                if elapsed < self.interval_s:
                    waited = self.interval_s - elapsed
                    self._sleep(waited)
            self._last = self._now()
            return waited


__all__ = ["IntervalThrottle"]
