"""Pytest configuration and shared fixtures."""

import pytest

from pyramid_app.config.defaults import get_default_config
from pyramid_app.effects.audio import QueueAudioSink
from pyramid_app.effects.dispatcher import EffectDispatcher
from pyramid_app.effects.wake_hold import LogWakeHold
from pyramid_app.state.models import WorkoutContext
from pyramid_app.state.runtime import WorkoutSession
from pyramid_app.timers.scheduler import ManualScheduler

START_MS = 1_700_000_000_000


@pytest.fixture
def cfg():
    """Default session and rest parameters."""
    return get_default_config()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Virtual clock that only moves when advanced."""
    return ManualScheduler(start_ms=START_MS)


@pytest.fixture
def audio() -> QueueAudioSink:
    """Audio sink that records commands instead of playing them."""
    return QueueAudioSink()


@pytest.fixture
def wake_hold() -> LogWakeHold:
    return LogWakeHold()


@pytest.fixture
def session(cfg, scheduler, audio, wake_hold) -> WorkoutSession:
    """Session on the virtual clock with recording collaborators."""
    dispatcher = EffectDispatcher(audio=audio, wake_hold=wake_hold)
    workout = WorkoutSession(cfg=cfg, scheduler=scheduler, dispatcher=dispatcher, session_id="test-session")
    yield workout
    workout.stop()


@pytest.fixture
def peak3_context() -> WorkoutContext:
    """Context for a peak-3 pyramid: sets 1, 2, 3, 2, 1."""
    return WorkoutContext.initial().with_peak(3)


