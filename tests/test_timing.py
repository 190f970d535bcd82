"""
Tests for the rate limiter and debouncer.
"""

import pytest

from eq_editor.core.timing import Debouncer, ManualClock, RateLimiter


class TestManualClock:
    def test_advance(self):
        clock = ManualClock()
        clock.advance(0.5)

        assert clock.now() == 0.5

    def test_no_time_travel(self):
        with pytest.raises(ValueError):
            ManualClock().advance(-1.0)


class TestRateLimiter:
    """Tests for the leading + trailing rate limiter."""

    def test_leading_call_runs_immediately(self):
        calls = []
        limiter = RateLimiter(0.1, ManualClock())

        assert limiter.call(lambda: calls.append(1))
        assert calls == [1]

    def test_trailing_call_runs_on_poll(self):
        """Calls inside the interval collapse into the latest one."""
        calls = []
        clock = ManualClock()
        limiter = RateLimiter(0.1, clock)

        limiter.call(lambda: calls.append(1))
        limiter.call(lambda: calls.append(2))
        limiter.call(lambda: calls.append(3))
        assert not limiter.poll()

        clock.advance(0.1)
        assert limiter.poll()
        assert calls == [1, 3]
        assert not limiter.pending

    def test_cancel_drops_trailing_call(self):
        calls = []
        clock = ManualClock()
        limiter = RateLimiter(0.1, clock)

        limiter.call(lambda: calls.append(1))
        limiter.call(lambda: calls.append(2))
        limiter.cancel()
        clock.advance(1.0)
        limiter.poll()

        assert calls == [1]

    def test_flush(self):
        calls = []
        limiter = RateLimiter(0.1, ManualClock())
        limiter.call(lambda: calls.append(1))
        limiter.call(lambda: calls.append(2))

        assert limiter.flush()
        assert calls == [1, 2]

    def test_zero_interval_never_defers(self):
        calls = []
        limiter = RateLimiter(0.0, ManualClock())
        for i in range(3):
            limiter.call(lambda i=i: calls.append(i))

        assert calls == [0, 1, 2]


class TestDebouncer:
    """Tests for the debouncer."""

    def test_runs_after_quiet_period(self):
        calls = []
        clock = ManualClock()
        debouncer = Debouncer(0.05, clock)

        debouncer.call(lambda: calls.append(1))
        clock.advance(0.03)
        debouncer.call(lambda: calls.append(2))
        clock.advance(0.03)
        assert not debouncer.poll()

        clock.advance(0.03)
        assert debouncer.poll()
        assert calls == [2]

    def test_flush_runs_now(self):
        calls = []
        debouncer = Debouncer(10.0, ManualClock())
        debouncer.call(lambda: calls.append(1))

        assert debouncer.flush()
        assert calls == [1]
        assert not debouncer.flush()

    def test_cancel(self):
        calls = []
        clock = ManualClock()
        debouncer = Debouncer(0.05, clock)
        debouncer.call(lambda: calls.append(1))
        debouncer.cancel()
        clock.advance(1.0)

        assert not debouncer.poll()
        assert calls == []
