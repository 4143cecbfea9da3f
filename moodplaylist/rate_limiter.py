"""
Rate Limiter - Spaces out calls to external APIs
"""
import logging
import time

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Enforces a minimum interval between consecutive calls

    Usage:
        limiter = RateLimiter(calls_per_second=10)

        for batch in batches:
            limiter.wait()
            client.tracks(batch)
    """

    def __init__(self, calls_per_second: float = 10.0, clock=time.monotonic, sleep=time.sleep):
        """
        Args:
            calls_per_second: Maximum sustained call rate
            clock: Monotonic time source (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        if calls_per_second <= 0:
            raise ValueError("calls_per_second must be positive")

        self.min_interval = 1.0 / calls_per_second
        self._clock = clock
        self._sleep = sleep
        self._last_call = None
        self.calls = 0
        self.total_waits = 0
        self.total_wait_time = 0.0

        logger.debug("Rate limiter: max %.1f calls/sec (%.3fs apart)", calls_per_second, self.min_interval)

    def wait(self) -> None:
        """Block until the next call is allowed."""
        now = self._clock()
        if self._last_call is not None:
            elapsed = now - self._last_call
            if elapsed < self.min_interval:
                pause = self.min_interval - elapsed
                self._sleep(pause)
                self.total_waits += 1
                self.total_wait_time += pause
                now = self._clock()
        self._last_call = now
        self.calls += 1

    def get_stats(self) -> dict:
        return {
            'calls': self.calls,
            'total_waits': self.total_waits,
            'total_wait_time': self.total_wait_time,
        }
