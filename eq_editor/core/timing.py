"""
Rate Limiting and Debouncing

Deferred execution without background threads or timers. Work that is not
due yet is stored and executed by poll(), which the host calls from its
render tick. Time comes from an injectable clock.
"""

from typing import Callable, Optional, Protocol
import time


class Clock(Protocol):
    def now(self) -> float:
        """Current time in seconds (monotonic)."""
        ...


class SystemClock:
    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when told to. Used in tests."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Clock cannot go backwards")
        self._now += seconds
        return self._now


class RateLimiter:
    """
    Leading and trailing edge rate limiter.

    The first call runs immediately. Calls within interval of the last run
    replace each other; the latest one runs on the first poll() after the
    interval has passed.
    """

    def __init__(self, interval: float, clock: Clock):
        self.interval = interval
        self.clock = clock
        self._last_run: Optional[float] = None
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def call(self, func: Callable[[], None]) -> bool:
        """
        Submit work.

        Returns:
            True if func ran immediately, False if it was deferred
        """
        now = self.clock.now()
        if self._last_run is None or now - self._last_run >= self.interval:
            self._pending = None
            self._last_run = now
            func()
            return True
        self._pending = func
        return False

    def poll(self) -> bool:
        """Run the deferred call if it is due. Returns True if it ran."""
        if self._pending is None:
            return False
        now = self.clock.now()
        if self._last_run is not None and now - self._last_run < self.interval:
            return False
        func, self._pending = self._pending, None
        self._last_run = now
        func()
        return True

    def flush(self) -> bool:
        """Run the deferred call now, regardless of the interval."""
        if self._pending is None:
            return False
        func, self._pending = self._pending, None
        self._last_run = self.clock.now()
        func()
        return True

    def cancel(self) -> None:
        self._pending = None

    def reset(self) -> None:
        """Forget the pending call and the last run time."""
        self._pending = None
        self._last_run = None


class Debouncer:
    """
    Runs the latest submitted call once no new call arrived for delay seconds.
    """

    def __init__(self, delay: float, clock: Clock):
        self.delay = delay
        self.clock = clock
        self._due: Optional[float] = None
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def call(self, func: Callable[[], None]) -> None:
        self._pending = func
        self._due = self.clock.now() + self.delay

    def poll(self) -> bool:
        if self._pending is None or self.clock.now() < self._due:
            return False
        return self.flush()

    def flush(self) -> bool:
        if self._pending is None:
            return False
        func, self._pending = self._pending, None
        self._due = None
        func()
        return True

    def cancel(self) -> None:
        self._pending = None
        self._due = None
