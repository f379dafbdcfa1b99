"""Audio subsystem endpoints that receive cue and mute commands."""

import queue
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..logging.config import get_effect_logger
from ..state.models import Cue


@dataclass(frozen=True)
class AudioCommand:
    """One-way message to the audio subsystem: a cue, or a mute change."""
    kind: str                                        # "play" or "set-muted"
    cue: Optional[Cue] = None
    muted: Optional[bool] = None


class AudioSink(ABC):
    """Base class for audio subsystems.

    The machine only writes to a sink; it never waits for playback or reads
    a result back. How a cue sounds is entirely the sink's business.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = get_effect_logger(f"audio.{name}")
        self.muted = False

    @abstractmethod
    def play(self, cue: Cue) -> None:
        """Start playing `cue` and return immediately."""
        pass

    def set_muted(self, muted: bool) -> None:
        self.muted = muted

    def close(self) -> None:
        """Release playback resources at the end of the session."""
        pass


class LogAudioSink(AudioSink):
    """Writes cues to the structured log instead of a speaker."""

    def __init__(self, name: str = "log"):
        super().__init__(name)

    def play(self, cue: Cue) -> None:
        if self.muted:
            self.logger.debug("Cue suppressed (muted)", cue=cue.value)
            return
        self.logger.info("Cue", cue=cue.value)

    def set_muted(self, muted: bool) -> None:
        super().set_muted(muted)
        self.logger.info("Audio mute changed", muted=muted)


class QueueAudioSink(AudioSink):
    """Posts AudioCommand messages to a queue consumed by a separate audio thread."""

    def __init__(self, name: str = "queue", channel: Optional[queue.Queue] = None):
        super().__init__(name)
        self.channel: queue.Queue = channel if channel is not None else queue.Queue()

    def play(self, cue: Cue) -> None:
        self.channel.put_nowait(AudioCommand(kind="play", cue=cue))

    def set_muted(self, muted: bool) -> None:
        super().set_muted(muted)
        self.channel.put_nowait(AudioCommand(kind="set-muted", muted=muted))

    def drain(self) -> list[AudioCommand]:
        """Take every pending command without blocking."""
        commands = []
        while True:
            try:
                commands.append(self.channel.get_nowait())
            except queue.Empty:
                return commands
