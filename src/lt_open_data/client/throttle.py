"""Minimum-spacing request throttle for namespace discovery."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass
class RequestThrottle:
    """
    Spaces request starts at least `min_interval_ms` apart.

    Not a token bucket: there is no burst allowance. Each caller reserves the
    next free start slot under the lock and sleeps until it arrives, so
    concurrent workers line up behind each other.

    Thread-safe.
    """
    min_interval_ms: float = 50.0

    clock: Callable[[], float] = field(default=time.monotonic)
    sleep: Callable[[float], None] = field(default=time.sleep)

    _last_start: float | None = field(default=None, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False)

    # Stats
    _total_requests: int = field(default=0, init=False)
    _total_delayed: int = field(default=0, init=False)

    def wait(self) -> None:
        """Block until this caller may start its request."""
        interval = self.min_interval_ms / 1000
        with self._lock:
            now = self.clock()
            start = now
            if self._last_start is not None:
                start = max(now, self._last_start + interval)
            self._last_start = start
            self._total_requests += 1
            if start > now:
                self._total_delayed += 1

        delay = start - now
        if delay > 0:
            self.sleep(delay)

    @property
    def stats(self) -> dict:
        """Throttle statistics."""
        with self._lock:
            return {
                "min_interval_ms": self.min_interval_ms,
                "total_requests": self._total_requests,
                "total_delayed": self._total_delayed,
            }
