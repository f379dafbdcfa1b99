"""
Tests for timer schedulers.

The manual scheduler is exercised exhaustively since every session test
depends on it; the threading scheduler gets short real-time checks.
"""

import threading
import time

import pytest

from pyramid_app.errors import TimerError
from pyramid_app.timers.scheduler import ManualScheduler, ThreadingScheduler


class TestManualScheduler:
    """Test the virtual-clock scheduler."""

    def test_clock_only_moves_on_advance(self):
        scheduler = ManualScheduler(start_ms=1000)
        assert scheduler.now_ms() == 1000

        scheduler.advance(250)
        assert scheduler.now_ms() == 1250

    def test_call_later_fires_once_when_due(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_later(500, lambda: calls.append(scheduler.now_ms()))

        assert scheduler.advance(499) == 0
        assert scheduler.advance(1) == 1
        assert calls == [500]

        scheduler.advance(10_000)
        assert calls == [500]
        assert scheduler.pending == 0

    def test_call_every_repeats(self):
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.call_every(1000, lambda: calls.append(scheduler.now_ms()))

        scheduler.advance(3500)
        assert calls == [1000, 2000, 3000]
        assert handle.active

    def test_callbacks_fire_in_time_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_later(300, lambda: order.append("c"))
        scheduler.call_later(100, lambda: order.append("a"))
        scheduler.call_later(200, lambda: order.append("b"))

        scheduler.advance(1000)
        assert order == ["a", "b", "c"]

    def test_same_due_time_keeps_insertion_order(self):
        scheduler = ManualScheduler()
        order = []
        scheduler.call_later(100, lambda: order.append(1))
        scheduler.call_later(100, lambda: order.append(2))

        scheduler.advance(100)
        assert order == [1, 2]

    def test_cancelled_handle_never_fires(self):
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.call_every(100, lambda: calls.append(1))
        scheduler.advance(100)

        handle.cancel()
        scheduler.advance(1000)

        assert calls == [1]
        assert scheduler.pending == 0

    def test_ticker_cancelled_from_its_own_callback(self):
        scheduler = ManualScheduler()
        calls = []
        holder = {}

        def tick():
            calls.append(scheduler.now_ms())
            if len(calls) == 2:
                holder["handle"].cancel()

        holder["handle"] = scheduler.call_every(100, tick)
        scheduler.advance(1000)

        assert calls == [100, 200]

    def test_callback_scheduling_within_window_fires(self):
        """Test a callback scheduled by a callback fires in the same advance."""
        scheduler = ManualScheduler()
        calls = []

        def first():
            calls.append("first")
            scheduler.call_later(100, lambda: calls.append("second"))

        scheduler.call_later(100, first)
        scheduler.advance(200)

        assert calls == ["first", "second"]

    def test_next_due_and_run_until_idle(self):
        scheduler = ManualScheduler()
        scheduler.call_later(100, lambda: None)
        scheduler.call_later(700, lambda: None)

        assert scheduler.next_due_ms() == 100
        assert scheduler.run_until_idle() == 2
        assert scheduler.now_ms() == 700
        assert scheduler.next_due_ms() is None

    def test_run_until_idle_respects_limit(self):
        scheduler = ManualScheduler()
        calls = []
        scheduler.call_every(1000, lambda: calls.append(1))

        scheduler.run_until_idle(max_ms=5000)
        assert len(calls) == 5

    def test_negative_delay_rejected(self):
        with pytest.raises(TimerError):
            ManualScheduler().call_later(-1, lambda: None)

    def test_non_positive_interval_rejected(self):
        with pytest.raises(TimerError):
            ManualScheduler().call_every(0, lambda: None)

    def test_shutdown_cancels_all(self):
        scheduler = ManualScheduler()
        handles = [scheduler.call_later(100, lambda: None), scheduler.call_every(50, lambda: None)]

        scheduler.shutdown()

        assert scheduler.pending == 0
        assert not any(h.active for h in handles)


class TestThreadingScheduler:
    """Test the wall-clock scheduler with short real intervals."""

    def test_now_ms_uses_clock(self):
        scheduler = ThreadingScheduler(clock=lambda: 12.5)
        assert scheduler.now_ms() == 12500

    def test_call_later_fires(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        handle = scheduler.call_later(10, fired.set)

        assert fired.wait(2.0)
        assert not handle.active
        scheduler.shutdown()

    def test_cancelled_call_later_does_not_fire(self):
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        handle = scheduler.call_later(100, fired.set)
        handle.cancel()

        assert not fired.wait(0.3)

    def test_call_every_until_shutdown(self):
        scheduler = ThreadingScheduler()
        ticks = []
        enough = threading.Event()

        def tick():
            ticks.append(1)
            if len(ticks) >= 3:
                enough.set()

        scheduler.call_every(10, tick)
        assert enough.wait(2.0)

        scheduler.shutdown()
        time.sleep(0.05)
        count = len(ticks)
        time.sleep(0.1)
        assert len(ticks) == count

    def test_negative_delay_rejected(self):
        with pytest.raises(TimerError):
            ThreadingScheduler().call_later(-5, lambda: None)
