"""
Periodic ticker actor.

A ticker calls `on_tick` once per interval on a background thread until it
is stopped. It carries no business logic: countdown and rest decisions are
made by the state machine when the tick event arrives.
"""

import threading
from typing import Callable, Optional

import structlog

from ..errors import TimerError

logger = structlog.get_logger(__name__)


class TimerHandle:
    """Cancellable handle for a scheduled callback. cancel() is idempotent."""

    def __init__(self, label: str = ""):
        self.label = label
        self._cancelled = threading.Event()

    @property
    def active(self) -> bool:
        return not self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    def wait_cancelled(self, timeout: float) -> bool:
        """Block up to `timeout` seconds; True if cancelled meanwhile."""
        return self._cancelled.wait(timeout)


class Ticker(TimerHandle):
    """Thread-backed periodic callback."""

    def __init__(self, interval_ms: float, on_tick: Callable[[], None], label: str = "ticker"):
        if interval_ms <= 0:
            raise TimerError("Ticker interval must be positive", delay_ms=interval_ms)
        super().__init__(label)
        self.interval_ms = interval_ms
        self._on_tick = on_tick
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "Ticker":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(target=self._run, name=f"ticker-{self.label}", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        # No join: stop() may be called from a tick callback on this thread
        self.cancel()

    def _run(self) -> None:
        interval = self.interval_ms / 1000.0
        while not self.wait_cancelled(interval):
            # stop() may land between the wait timing out and the callback
            if not self.active:
                break
            try:
                self._on_tick()
            except Exception as e:
                logger.error("Ticker callback failed", ticker=self.label, error=str(e))


def start_ticker(interval_ms: float, on_tick: Callable[[], None], label: str = "ticker") -> Ticker:
    """Start a ticker and return its handle."""
    return Ticker(interval_ms, on_tick, label).start()


def stop_ticker(handle: TimerHandle) -> None:
    """Stop a ticker; safe to call more than once."""
    handle.cancel()
