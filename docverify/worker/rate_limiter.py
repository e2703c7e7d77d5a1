import time
from collections import deque
from collections.abc import Callable


class SlidingWindowRateLimiter:
    """Allows at most ``max_calls`` recorded calls in any rolling window.

    Used from the dispatcher thread only; it is not thread-safe.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize rate limiter.

        Args:
            max_calls: Maximum calls per window (must be positive)
            window_seconds: Rolling window size in seconds
            clock: Monotonic time source, injectable for tests
        """
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_calls = max_calls
        self._window_seconds = window_seconds
        self._clock = clock
        self._calls: deque[float] = deque()

    def retry_after(self) -> float | None:
        """Seconds until a call is allowed, or None if one is allowed now."""
        now = self._clock()
        self._evict(now)
        if len(self._calls) < self._max_calls:
            return None
        return max(0.0, self._calls[0] + self._window_seconds - now)

    def record(self) -> None:
        """Count one call against the current window."""
        now = self._clock()
        self._evict(now)
        self._calls.append(now)

    def _evict(self, now: float) -> None:
        while self._calls and self._calls[0] + self._window_seconds <= now:
            self._calls.popleft()
