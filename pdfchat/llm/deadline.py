"""Request-scoped deadline shared by HTTP timeouts and backoff sleeps."""

import time


class Deadline:
    """Upper bound on wall-clock time for one request.

    A Deadline created with seconds=None never expires. Timeouts and
    sleeps taken through it are capped to the remaining time, so retry
    and poll loops cannot outlive the request that owns them.
    """

    def __init__(self, seconds: float | None = None):
        self._expires_at = None if seconds is None else time.monotonic() + seconds

    @property
    def remaining(self) -> float | None:
        """Seconds left, or None when unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining
        return remaining is not None and remaining <= 0.0

    def timeout(self, seconds: float) -> float:
        """Cap a per-call timeout to the remaining time."""
        remaining = self.remaining
        if remaining is None:
            return seconds
        return min(seconds, remaining)

    def sleep(self, seconds: float) -> None:
        """Sleep for the backoff, but never past the deadline."""
        delay = self.timeout(seconds)
        if delay > 0:
            time.sleep(delay)
