"""
Timer primitives: cancellable handles, the periodic ticker actor and the
schedulers the session runtime uses for delayed transitions and ticks.
"""
from .scheduler import ManualScheduler, ThreadingScheduler, TimerScheduler
from .ticker import Ticker, TimerHandle, start_ticker, stop_ticker

__all__ = [
    "ManualScheduler",
    "ThreadingScheduler",
    "TimerScheduler",
    "Ticker",
    "TimerHandle",
    "start_ticker",
    "stop_ticker",
]
