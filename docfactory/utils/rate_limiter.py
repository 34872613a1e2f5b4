"""Rate Limiter - throttles provider calls to stay under API quotas."""

import time
from collections import defaultdict
from threading import Lock
from typing import Optional


class RateLimiter:
    """Thread-safe sliding-window rate limiter with an optional fixed courtesy delay."""

    def __init__(
        self,
        max_calls: int = 60,
        time_window: float = 60.0,
        min_interval: float = 0.0,
    ):
        """
        Initialize rate limiter.

        Args:
            max_calls: Maximum number of calls allowed in time_window
            time_window: Time window in seconds (default: 60 seconds)
            min_interval: Minimum spacing between consecutive calls in seconds
        """
        self.max_calls = max_calls
        self.time_window = time_window
        self.min_interval = min_interval

        # Track calls per endpoint
        self.calls = defaultdict(list)
        self.lock = Lock()

    def wait_if_needed(self, endpoint: str = "default") -> float:
        """
        Wait if the rate limit or the courtesy spacing would be exceeded.

        Args:
            endpoint: Endpoint identifier (for per-endpoint limiting)

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        with self.lock:
            now = time.time()
            calls = self.calls[endpoint]

            # Remove calls outside time window
            calls[:] = [call_time for call_time in calls if now - call_time < self.time_window]

            if len(calls) >= self.max_calls:
                wait_time = (calls[0] + self.time_window) - now
                if wait_time > 0:
                    time.sleep(wait_time)
                    waited += wait_time
                    now = time.time()
                    calls[:] = [call_time for call_time in calls if now - call_time < self.time_window]

            if self.min_interval > 0 and calls:
                gap = self.min_interval - (now - calls[-1])
                if gap > 0:
                    time.sleep(gap)
                    waited += gap
                    now = time.time()

            # Record this call
            calls.append(now)
        return waited


# Process-wide limiters, shared by concurrent jobs hitting the same provider
_pexels_limiter: Optional[RateLimiter] = None
_elevenlabs_limiter: Optional[RateLimiter] = None
_limiter_lock = Lock()


def get_pexels_limiter(max_calls: int = 180, time_window: float = 60.0, min_interval: float = 0.08) -> RateLimiter:
    """Get or create the Pexels rate limiter."""
    global _pexels_limiter
    with _limiter_lock:
        if _pexels_limiter is None:
            _pexels_limiter = RateLimiter(max_calls=max_calls, time_window=time_window, min_interval=min_interval)
        return _pexels_limiter


def get_elevenlabs_limiter(max_calls: int = 100, time_window: float = 60.0) -> RateLimiter:
    """Get or create ElevenLabs rate limiter."""
    global _elevenlabs_limiter
    with _limiter_lock:
        if _elevenlabs_limiter is None:
            _elevenlabs_limiter = RateLimiter(max_calls=max_calls, time_window=time_window)
        return _elevenlabs_limiter
