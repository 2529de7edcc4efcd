import threading
import time
from typing import Callable, Dict, Tuple


class RateLimiter:
    """
    Fixed-window request counter keyed by client.

    Counters live in ``(key, window)`` buckets behind a single lock. Buckets from
    earlier windows are pruned whenever the window advances, so the table only
    ever holds the current window's clients.
    """

    def __init__(self, limit: int, window_seconds: int = 60, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._lock = threading.Lock()
        self._counters: Dict[Tuple[str, int], int] = {}
        self._current_window = -1

    def _window(self) -> int:
        return int(self.clock() // self.window_seconds)

    def hit(self, key: str) -> bool:
        """Record one request for ``key``; return False once the limit for this window is exceeded."""
        window = self._window()
        with self._lock:
            if window != self._current_window:
                self._counters = {
                    bucket: count for bucket, count in self._counters.items() if bucket[1] >= window
                }
                self._current_window = window
            bucket = (key, window)
            count = self._counters.get(bucket, 0) + 1
            self._counters[bucket] = count
            return count <= self.limit

    def remaining(self, key: str) -> int:
        window = self._window()
        with self._lock:
            return max(0, self.limit - self._counters.get((key, window), 0))

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)
