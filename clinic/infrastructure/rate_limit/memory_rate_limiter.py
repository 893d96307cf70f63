import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window limiter kept per process; keys are usually client IPs.

    Keys whose window has emptied are dropped, so the map only holds clients
    seen within the last window.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._last_sweep = clock()

    def _sweep(self, window_start: float) -> None:
        stale = [key for key, hits in self._store.items() if not hits or hits[-1] <= window_start]
        for key in stale:
            del self._store[key]

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        now = self._clock()
        window_start = now - window_seconds
        with self._lock:
            if now - self._last_sweep >= window_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            hits = self._store.setdefault(key, deque())
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= max_requests:
                return False
            hits.append(now)
            return True

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._store)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()
