"""
Ledger clocks.

The machine never reads wall time directly; it is handed a zero-argument
callable returning integer seconds. ``SystemClock`` follows the host clock,
``ManualClock`` is moved explicitly, the way a test chain's pending
timestamp is.
"""

import time

from .constants import DEFAULT_START_TIME, SECONDS_PER_DAY


class SystemClock:
    """Integer-second view of the host clock."""

    def now(self) -> int:
        return int(time.time())

    def __call__(self) -> int:
        return self.now()

    def __repr__(self) -> str:
        return "<SystemClock>"


class ManualClock:
    """
    Clock that only moves when told to.

    ``seconds_per_day`` sets what ``advance(days=...)`` means; keep it equal to
    the machine's day length so script days and voting days line up.
    """

    def __init__(self, start: int = DEFAULT_START_TIME, seconds_per_day: int = SECONDS_PER_DAY):
        if start < 0:
            raise ValueError(f"Clock cannot start before the epoch, got {start}")
        if seconds_per_day <= 0:
            raise ValueError(f"Day length must be positive, got {seconds_per_day}")
        self._now = int(start)
        self.seconds_per_day = int(seconds_per_day)

    def now(self) -> int:
        return self._now

    def __call__(self) -> int:
        return self._now

    def advance(self, seconds: int = 0, days: int = 0) -> int:
        """Move forward and return the new timestamp."""
        delta = int(seconds) + int(days) * self.seconds_per_day
        if delta < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += delta
        return self._now

    def set(self, timestamp: int) -> int:
        timestamp = int(timestamp)
        if timestamp < self._now:
            raise ValueError(
                f"Clock cannot move backwards ({timestamp} < {self._now})"
            )
        self._now = timestamp
        return self._now

    def __repr__(self) -> str:
        return f"<ManualClock now={self._now}>"
