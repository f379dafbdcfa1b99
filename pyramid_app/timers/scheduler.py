"""
Timer schedulers used by the session runtime.

ThreadingScheduler runs on the wall clock. ManualScheduler keeps a virtual
clock that only moves when advance() is called, firing due callbacks in
time order on the caller's thread; it drives tests, demos and simulations.
"""

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..errors import TimerError
from .ticker import Ticker, TimerHandle


class TimerScheduler(ABC):
    """Creates cancellable one-shot and periodic callbacks."""

    @abstractmethod
    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        """Run `callback` once after `delay_ms`."""
        pass

    @abstractmethod
    def call_every(self, interval_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        """Run `callback` every `interval_ms` until the handle is cancelled."""
        pass

    def shutdown(self) -> None:
        """Release scheduler resources."""
        pass


class ThreadingScheduler(TimerScheduler):
    """Wall-clock scheduler backed by threading.Timer and Ticker threads."""

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._handles: list[TimerHandle] = []
        self._lock = threading.Lock()

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def call_later(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        if delay_ms < 0:
            raise TimerError("Delay must not be negative", delay_ms=delay_ms)
        handle = TimerHandle(label)

        def fire() -> None:
            if handle.active:
                handle.cancel()
                callback()

        timer = threading.Timer(delay_ms / 1000.0, fire)
        timer.daemon = True
        timer.start()
        self._track(handle)
        return handle

    def call_every(self, interval_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        ticker = Ticker(interval_ms, callback, label or "ticker").start()
        self._track(ticker)
        return ticker

    def shutdown(self) -> None:
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()

    def _track(self, handle: TimerHandle) -> None:
        with self._lock:
            self._handles = [h for h in self._handles if h.active]
            self._handles.append(handle)


class ManualScheduler(TimerScheduler):
    """Virtual-clock scheduler; nothing fires until advance() is called."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms
        self._queue: list[tuple[float, int, TimerHandle, Callable[[], None], Optional[float]]] = []
        self._seq = itertools.count()

    def now_ms(self) -> int:
        return int(self._now)

    def call_later(self, delay_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        if delay_ms < 0:
            raise TimerError("Delay must not be negative", delay_ms=delay_ms)
        handle = TimerHandle(label)
        heapq.heappush(self._queue, (self._now + delay_ms, next(self._seq), handle, callback, None))
        return handle

    def call_every(self, interval_ms: float, callback: Callable[[], None], label: str = "") -> TimerHandle:
        if interval_ms <= 0:
            raise TimerError("Ticker interval must be positive", delay_ms=interval_ms)
        handle = TimerHandle(label)
        heapq.heappush(self._queue, (self._now + interval_ms, next(self._seq), handle, callback, interval_ms))
        return handle

    @property
    def pending(self) -> int:
        """Number of live scheduled callbacks."""
        return sum(1 for entry in self._queue if entry[2].active)

    def next_due_ms(self) -> Optional[float]:
        self._drop_cancelled()
        return self._queue[0][0] if self._queue else None

    def advance(self, ms: float) -> int:
        """Move the clock forward by `ms`, firing everything due. Returns callbacks fired."""
        target = self._now + ms
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0][0] > target:
                break
            due, _, handle, callback, interval = heapq.heappop(self._queue)
            self._now = due
            if interval is not None:
                heapq.heappush(self._queue, (due + interval, next(self._seq), handle, callback, interval))
            else:
                handle.cancel()
            callback()
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, max_ms: float = 3_600_000) -> int:
        """Advance to each next due callback until nothing is scheduled or `max_ms` passes."""
        deadline = self._now + max_ms
        fired = 0
        while True:
            due = self.next_due_ms()
            if due is None or due > deadline:
                break
            fired += self.advance(due - self._now)
        return fired

    def shutdown(self) -> None:
        for entry in self._queue:
            entry[2].cancel()
        self._queue.clear()

    def _drop_cancelled(self) -> None:
        while self._queue and not self._queue[0][2].active:
            heapq.heappop(self._queue)
