"""
In-memory sliding-window rate limiter.
One shared window per process; not persisted and not shared across workers.
"""
import math
import time
import logging
import threading
from collections import deque
from typing import Callable, Deque, Optional

from learnlab.errors import RateLimitExceeded
from learnlab.models import RateLimitInfo

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class RateLimiter:
    """Timestamp-log limiter: at most `max_requests` admissions per `window_ms`."""

    def __init__(
        self,
        max_requests: int = 60,
        window_ms: int = 60000,
        clock: Optional[Callable[[], float]] = None,
    ):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_ms <= 0:
            raise ValueError("window_ms must be positive")

        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock or _now_ms
        self._timestamps: Deque[float] = deque()
        self._lock = threading.Lock()
        self.admitted_total = 0
        self.rejected_total = 0

    def _evict(self, now: float) -> None:
        # Oldest first, so eviction only ever pops from the left
        while self._timestamps and self._timestamps[0] <= now - self.window_ms:
            self._timestamps.popleft()

    def _state(self, now: float) -> RateLimitInfo:
        current = len(self._timestamps)
        reset_in = 0
        if self._timestamps:
            reset_in = max(0, math.ceil((self._timestamps[0] + self.window_ms - now) / 1000))
        return RateLimitInfo(
            current=current,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - current),
            reset_in=reset_in,
        )

    def acquire(self) -> RateLimitInfo:
        """
        Admit the current request or raise.

        Returns:
            Window state after admission

        Raises:
            RateLimitExceeded: If the window is full
        """
        with self._lock:
            now = self._clock()
            self._evict(now)

            if len(self._timestamps) >= self.max_requests:
                self.rejected_total += 1
                state = self._state(now)
                retry_after = max(1, state.reset_in)
                logger.warning(
                    f"Rate limit exceeded: {len(self._timestamps)}/{self.max_requests} "
                    f"in {self.window_ms}ms window, retry in {retry_after}s"
                )
                raise RateLimitExceeded(
                    f"Too many requests. Limit: {self.max_requests} requests per "
                    f"{self.window_ms // 1000} seconds. Please wait {retry_after} seconds and try again.",
                    retry_after=retry_after,
                    rate_state=state,
                )

            self._timestamps.append(now)
            self.admitted_total += 1
            return self._state(now)

    def admit(self) -> bool:
        """Return True if the request is admitted, False if rate limited."""
        try:
            self.acquire()
        except RateLimitExceeded:
            return False
        return True

    def snapshot(self) -> RateLimitInfo:
        """Current window state without admitting a request."""
        with self._lock:
            now = self._clock()
            self._evict(now)
            return self._state(now)

    def reset(self) -> None:
        with self._lock:
            self._timestamps.clear()
