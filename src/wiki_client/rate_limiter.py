"""Dual-ceiling rate limiter for Feishu Open API calls.

The Feishu Open API enforces two quotas at once: 5 calls per second and
100 calls per minute per app. RateLimiter guards every remote call made by
the mirror so that any number of concurrent tasks stays inside both quotas.

Each ceiling is a rolling window over the timestamps of granted units, so
the guarantee is exact: no one-second window ever sees more than the short
ceiling and no one-minute window more than the long ceiling.
"""

import collections
import logging
import threading
import time
from typing import Callable, Deque, Optional

from .errors import QuotaWaitCancelled

logger = logging.getLogger(__name__)

DEFAULT_PER_SECOND = 5
DEFAULT_PER_MINUTE = 100


class _Window:
    """A single rolling-window ceiling: at most `limit` units per `period`."""

    def __init__(self, limit: int, period: float):
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self.period = period
        self._grants: Deque[float] = collections.deque()

    def _expire(self, now: float) -> None:
        while self._grants and self._grants[0] <= now - self.period:
            self._grants.popleft()

    def delay(self, now: float, n: int) -> float:
        """Seconds until `n` more units fit in the window (0 if they fit now)."""
        self._expire(now)
        overflow = len(self._grants) + n - self.limit
        if overflow <= 0:
            return 0.0
        # The overflow-th oldest grant must leave the window first
        return self._grants[overflow - 1] + self.period - now

    def consume(self, now: float, n: int) -> None:
        self._grants.extend([now] * n)


class RateLimiter:
    """Blocks callers until both the per-second and per-minute ceilings allow.

    Units are consumed from both windows under one lock, so a caller never
    proceeds having spent only one of the two budgets. Waiting honours an
    optional cancellation event: when it is set the wait aborts promptly
    with QuotaWaitCancelled and nothing is consumed.

    Example:
        >>> limiter = RateLimiter(per_second=5, per_minute=100)
        >>> limiter.wait()
        >>> limiter.try_acquire()
        True
    """

    def __init__(
        self,
        per_second: int = DEFAULT_PER_SECOND,
        per_minute: int = DEFAULT_PER_MINUTE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the limiter.

        Args:
            per_second: Short-window ceiling (units per rolling second)
            per_minute: Long-window ceiling (units per rolling minute)
            clock: Monotonic clock, injectable for tests
            sleep: Sleep used when no cancel event is given, injectable for tests
        """
        self._windows = (_Window(per_second, 1.0), _Window(per_minute, 60.0))
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    @property
    def per_second(self) -> int:
        return self._windows[0].limit

    @property
    def per_minute(self) -> int:
        return self._windows[1].limit

    def _check_units(self, n: int) -> None:
        if n < 1:
            raise ValueError(f"n must be >= 1, got {n}")
        for window in self._windows:
            if n > window.limit:
                raise ValueError(
                    f"Cannot acquire {n} units at once: ceiling is "
                    f"{window.limit} per {window.period:g}s"
                )

    def _reserve(self, n: int) -> float:
        """Consume `n` units if both windows allow, else return the delay."""
        with self._lock:
            now = self._clock()
            delay = max(window.delay(now, n) for window in self._windows)
            if delay <= 0:
                for window in self._windows:
                    window.consume(now, n)
            return delay

    def wait(self, n: int = 1, cancel_event: Optional[threading.Event] = None) -> None:
        """Block until `n` units are available in both windows, then take them.

        Args:
            n: Number of units to acquire (batch operations use n > 1)
            cancel_event: Optional cancellation context

        Raises:
            QuotaWaitCancelled: If cancel_event is set before units are granted
            ValueError: If n is not positive or exceeds either ceiling
        """
        self._check_units(n)
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise QuotaWaitCancelled(n)
            delay = self._reserve(n)
            if delay <= 0:
                return
            logger.debug(f"Rate limit reached, waiting {delay:.3f}s for {n} unit(s)")
            if cancel_event is not None:
                if cancel_event.wait(delay):
                    raise QuotaWaitCancelled(n)
            else:
                self._sleep(delay)

    def try_acquire(self, n: int = 1) -> bool:
        """Take `n` units only if both windows allow it right now.

        Returns:
            True if the units were consumed, False otherwise (nothing consumed)
        """
        self._check_units(n)
        return self._reserve(n) <= 0
