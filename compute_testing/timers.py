"""Timing utilities for startup."""

import time


class StartupTimer:
    """Monotonic timer bounding a start attempt."""

    def __init__(self, timeout_sec: float):
        self.timeout_sec = timeout_sec
        self._start: float | None = None

    def start(self):
        """Start the timer."""
        self._start = time.monotonic()

    def elapsed(self) -> float:
        """Get elapsed time in seconds."""
        if self._start is None:
            return 0.0
        return time.monotonic() - self._start

    def remaining(self) -> float:
        """Seconds left before the timeout; never negative."""
        return max(0.0, self.timeout_sec - self.elapsed())

    def expired(self) -> bool:
        return self._start is not None and self.remaining() <= 0
