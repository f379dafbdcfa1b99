"""
Error handling tests for the workout session.

Covers the error hierarchy, tolerance of events in states that do not
handle them, and the one unreachable-state guard.
"""

import pytest

from pyramid_app.errors import (
    ConfigurationError,
    EffectDispatchError,
    EventError,
    MalformedEventError,
    StateTransitionError,
    SystemFailureError,
    TimerError,
    UnknownEventError,
)
from pyramid_app.state.machine import session_status, transition
from pyramid_app.state.models import (
    EventType,
    SettingsState,
    StateConfiguration,
    WorkoutContext,
    WorkoutEvent,
)
from pyramid_app.state.models import ExerciseState as S

EXTERNAL_EVENTS = [
    WorkoutEvent.start(),
    WorkoutEvent.pause(),
    WorkoutEvent.resume(),
    WorkoutEvent.reset(),
    WorkoutEvent.skip_rest(),
    WorkoutEvent.set_peak(5),
    WorkoutEvent.set_tempo(1500),
    WorkoutEvent.toggle_mute(),
    WorkoutEvent.open_settings(),
    WorkoutEvent.close_settings(),
]

REACHABLE = [
    StateConfiguration(),
    StateConfiguration(settings=SettingsState.OPEN),
    StateConfiguration(exercise=(S.ACTIVE, S.COUNTDOWN)),
    StateConfiguration(exercise=(S.ACTIVE, S.WORKING, S.START)),
    StateConfiguration(exercise=(S.ACTIVE, S.WORKING, S.DOWN)),
    StateConfiguration(exercise=(S.ACTIVE, S.WORKING, S.UP)),
    StateConfiguration(exercise=(S.ACTIVE, S.WORKING, S.LAST_DOWN)),
    StateConfiguration(exercise=(S.ACTIVE, S.WORKING, S.LAST_UP)),
    StateConfiguration(exercise=(S.ACTIVE, S.RESTING)),
    StateConfiguration(exercise=(S.PAUSED,), history=(S.ACTIVE, S.RESTING)),
    StateConfiguration(exercise=(S.FINISHED,)),
]


class TestErrorClassification:
    """Test error classification system."""

    def test_event_error_hierarchy(self):
        base_error = EventError("base error")
        assert base_error.recoverable is True
        assert base_error.context == {}

        unknown = UnknownEventError("no such event", event_type="JUMP")
        assert isinstance(unknown, EventError)
        assert unknown.event_type == "JUMP"

        malformed = MalformedEventError("bad payload", field="peak", raw_value="x")
        assert isinstance(malformed, EventError)
        assert malformed.field == "peak"
        assert malformed.raw_value == "x"

    def test_system_failure_hierarchy(self):
        base_error = SystemFailureError("base failure")
        assert base_error.recoverable is False

        transition_error = StateTransitionError("bad", current_state="paused", attempted_transition="active.hist")
        assert isinstance(transition_error, SystemFailureError)
        assert transition_error.current_state == "paused"
        assert transition_error.attempted_transition == "active.hist"

        cause = RuntimeError("speaker")
        dispatch_error = EffectDispatchError("audio failed", effect="PlayCue", collaborator="audio", cause=cause)
        assert dispatch_error.cause is cause

        assert TimerError("negative", delay_ms=-1).delay_ms == -1
        assert ConfigurationError("invalid", errors=["x"]).errors == ["x"]

    def test_errors_carry_context(self):
        error = MalformedEventError("bad payload", field="tempo_ms", context={"options": [1500]})
        assert error.context == {"options": [1500]}
        assert str(error) == "bad payload"


class TestEventTolerance:
    """Test that no external event raises in any reachable configuration."""

    @pytest.mark.parametrize("configuration", REACHABLE, ids=lambda c: f"{c.settings.value}|{c.path}")
    def test_external_events_never_raise(self, configuration, cfg):
        ctx = WorkoutContext.initial().with_peak(3).with_updates(rest_seconds_left=4)

        for event in EXTERNAL_EVENTS:
            result = transition(configuration, ctx, event, cfg)
            # Every resulting configuration still classifies cleanly
            session_status(result.configuration)

    @pytest.mark.parametrize("event_type", [EventType.COUNTDOWN_TICK, EventType.REST_TICK])
    def test_stray_ticks_ignored(self, event_type, cfg):
        ctx = WorkoutContext.initial()
        for configuration in (StateConfiguration(), StateConfiguration(exercise=(S.PAUSED,))):
            result = transition(configuration, ctx, WorkoutEvent(event_type), cfg)
            assert result.handled is False
            assert result.configuration == configuration
            assert result.effects == ()

    def test_resume_without_history_is_a_system_failure(self, cfg):
        """Test paused with no recorded history is reported, not guessed at."""
        with pytest.raises(StateTransitionError) as exc_info:
            transition(StateConfiguration(exercise=(S.PAUSED,)), WorkoutContext.initial(), WorkoutEvent.resume(), cfg)
        assert exc_info.value.recoverable is False
