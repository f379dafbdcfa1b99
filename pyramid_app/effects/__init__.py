"""
Side-effect collaborators: the audio subsystem, the screen wake hold and the
dispatcher that forwards machine effects to them.
"""
from .audio import AudioCommand, AudioSink, LogAudioSink, QueueAudioSink
from .dispatcher import DispatchResult, DispatchStatus, EffectDispatcher
from .wake_hold import LogWakeHold, WakeHold

__all__ = [
    "AudioCommand",
    "AudioSink",
    "LogAudioSink",
    "QueueAudioSink",
    "DispatchResult",
    "DispatchStatus",
    "EffectDispatcher",
    "LogWakeHold",
    "WakeHold",
]
