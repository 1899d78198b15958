"""Fixed-window request rate limiter."""
import asyncio
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: int  # seconds until the window resets


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimiter:
    """Counts requests per key in fixed windows.

    One instance is created per application and kept on ``app.state``.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = asyncio.Lock()

    async def check(self, key: str) -> RateLimitResult:
        """Count one request for ``key`` and report whether it is allowed."""
        async with self._lock:
            now = self.clock()
            self._evict(now)
            window = self._windows.get(key)
            if window is None or now > window.reset_at:
                window = _Window(count=0, reset_at=now + self.window_seconds)
                self._windows[key] = window
            window.count += 1
            return RateLimitResult(
                allowed=window.count <= self.max_requests,
                remaining=max(0, self.max_requests - window.count),
                reset_in=math.ceil(window.reset_at - now),
            )

    def _evict(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now > w.reset_at]
        for k in expired:
            del self._windows[k]
