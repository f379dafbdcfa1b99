"""
System failure error classifications.

These exceptions represent broken invariants or collaborator failures.
EffectDispatchError is recorded and logged by the dispatcher but never
propagated into the state machine.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StateTransitionError(SystemFailureError):
    """Internal transition invariant violated (e.g. restoring an empty history)."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class EffectDispatchError(SystemFailureError):
    """Audio or wake-hold collaborator raised while handling a command."""

    def __init__(self, message: str, effect: Optional[str] = None,
                 collaborator: Optional[str] = None,
                 cause: Optional[Exception] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.effect = effect
        self.collaborator = collaborator
        self.cause = cause


class TimerError(SystemFailureError):
    """Scheduler misuse such as a negative delay or non-positive interval."""

    def __init__(self, message: str, delay_ms: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.delay_ms = delay_ms


class ConfigurationError(SystemFailureError):
    """Configuration file or values failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = errors or []
