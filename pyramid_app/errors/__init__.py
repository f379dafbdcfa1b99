"""
Error classification for the Pyramid Push session controller.

The state machine itself never raises for an event it cannot handle; these
exceptions cover event parsing, configuration, scheduler misuse and internal
invariant violations.
"""

from .event_errors import (
    EventError,
    UnknownEventError,
    MalformedEventError,
)
from .system_failures import (
    SystemFailureError,
    StateTransitionError,
    EffectDispatchError,
    TimerError,
    ConfigurationError,
)

__all__ = [
    # Event Errors
    "EventError",
    "UnknownEventError",
    "MalformedEventError",
    # System Failures
    "SystemFailureError",
    "StateTransitionError",
    "EffectDispatchError",
    "TimerError",
    "ConfigurationError",
]
