"""Dispatch of machine effects to the audio and wake-hold collaborators."""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import EffectDispatchError
from ..logging.config import get_effect_logger, log_effect_failure
from ..state.models import AcquireWakeHold, Effect, PlayCue, ReleaseWakeHold, SetMuted
from .audio import AudioSink, LogAudioSink
from .wake_hold import LogWakeHold, WakeHold

logger = get_effect_logger(__name__)


class DispatchStatus(Enum):
    """Effect dispatch status."""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class DispatchResult:
    """Result of forwarding one effect."""
    status: DispatchStatus
    effect: str
    error: Optional[EffectDispatchError] = None


class EffectDispatcher:
    """
    Forwards audio and wake-hold effects, at most once each.

    Collaborator exceptions are caught here, logged and recorded; they never
    reach the state machine. Timer effects are not handled here.
    """

    def __init__(
        self,
        audio: Optional[AudioSink] = None,
        wake_hold: Optional[WakeHold] = None,
        failure_history: int = 50
    ):
        self.audio = audio or LogAudioSink()
        self.wake_hold = wake_hold or LogWakeHold()
        self.logger = logger
        self.failures: deque[EffectDispatchError] = deque(maxlen=failure_history)
        self._dispatch_count = 0
        self._error_count = 0

    def dispatch(self, effect: Effect) -> DispatchResult:
        name = type(effect).__name__

        if isinstance(effect, PlayCue):
            return self._call(name, "audio", lambda: self.audio.play(effect.cue))
        if isinstance(effect, SetMuted):
            return self._call(name, "audio", lambda: self.audio.set_muted(effect.muted))
        if isinstance(effect, AcquireWakeHold):
            return self._call(name, "wake_hold", self.wake_hold.acquire)
        if isinstance(effect, ReleaseWakeHold):
            return self._call(name, "wake_hold", self.wake_hold.release)

        return DispatchResult(status=DispatchStatus.SKIPPED, effect=name)

    def close(self) -> None:
        """Close the audio sink. The wake hold is released by exiting `active`."""
        self._call("CloseAudio", "audio", self.audio.close)

    def _call(self, effect: str, collaborator: str, fn) -> DispatchResult:
        try:
            fn()
        except Exception as e:
            self._error_count += 1
            error = EffectDispatchError(
                f"{collaborator} failed handling {effect}: {e}",
                effect=effect,
                collaborator=collaborator,
                cause=e
            )
            self.failures.append(error)
            log_effect_failure(self.logger, effect, collaborator, e)
            return DispatchResult(status=DispatchStatus.FAILED, effect=effect, error=error)

        self._dispatch_count += 1
        return DispatchResult(status=DispatchStatus.SUCCESS, effect=effect)

    def get_stats(self) -> dict:
        """Get dispatch statistics."""
        total = self._dispatch_count + self._error_count
        return {
            "dispatch_count": self._dispatch_count,
            "error_count": self._error_count,
            "success_rate": self._dispatch_count / total if total > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        self._dispatch_count = 0
        self._error_count = 0
        self.failures.clear()
