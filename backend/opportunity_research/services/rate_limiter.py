from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Tuple


class FixedWindowRateLimiter:
    """
    Per-key fixed-window request counter, local to one process.

    A key's window opens on its first request and admits `max_requests`
    requests until `window_seconds` have passed. Not shared across
    instances, so the effective limit scales with the number of workers.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window_start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_purge = clock()

    def _purge_expired(self, now: float) -> None:
        # At most once per window length
        if now - self._last_purge < self.window_seconds:
            return
        self._windows = {
            key: entry
            for key, entry in self._windows.items()
            if now - entry[0] < self.window_seconds
        }
        self._last_purge = now

    def check(self, key: str) -> bool:
        """Count one request for `key`; False once its window is full."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)

            start, count = self._windows.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0

            if count >= self.max_requests:
                return False

            self._windows[key] = (start, count + 1)
            return True

    def retry_after(self, key: str) -> float:
        """Seconds until `key`'s current window resets (0 if it has none)."""
        with self._lock:
            entry = self._windows.get(key)
            if entry is None:
                return 0.0
            return max(0.0, self.window_seconds - (self._clock() - entry[0]))

    def __len__(self) -> int:
        return len(self._windows)
