"""
Event error classifications for inbound workout events.

These exceptions are raised only while turning external input into
WorkoutEvent records. Once an event reaches the machine, an event with no
matching transition is ignored rather than raised.
"""

from typing import Optional, Dict, Any


class EventError(Exception):
    """Base class for bad inbound events that the caller can correct."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class UnknownEventError(EventError):
    """Event type is not one the session controller understands."""

    def __init__(self, message: str, event_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.event_type = event_type


class MalformedEventError(EventError):
    """Event type is known but its payload is missing or of the wrong type."""

    def __init__(self, message: str, field: Optional[str] = None,
                 raw_value: Optional[Any] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.raw_value = raw_value
