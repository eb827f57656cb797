"""
In-memory sliding-window rate limiter.

Keeps a list of request timestamps per client key. State lives in the
process, so each worker enforces its own limit.
"""

import asyncio
import time
from typing import Callable, Dict, List


class RateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max(1, int(max_requests))
        self.window_seconds = float(window_seconds)
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._last_sweep = clock()
        self._lock = asyncio.Lock()

    async def hit(self, key: str) -> float:
        """
        Record a request for ``key``.

        Returns:
            0 if the request is allowed, otherwise the number of seconds
            until the oldest request in the window expires
        """
        now = self._clock()
        window_start = now - self.window_seconds
        async with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            entries = self._requests.setdefault(key, [])
            # Timestamps are appended in order, so expired ones form a prefix
            expired = 0
            for ts in entries:
                if ts > window_start:
                    break
                expired += 1
            if expired:
                del entries[:expired]

            if len(entries) >= self.max_requests:
                return max(entries[0] + self.window_seconds - now, 0.0) or 1.0

            entries.append(now)
            return 0.0

    def _sweep(self, window_start: float) -> None:
        """Drop keys whose newest request has left the window."""
        stale = [key for key, entries in self._requests.items() if not entries or entries[-1] <= window_start]
        for key in stale:
            del self._requests[key]

    def tracked_keys(self) -> int:
        """Number of clients with requests still held in memory."""
        return len(self._requests)

    def reset(self) -> None:
        """Forget all recorded requests."""
        self._requests.clear()
