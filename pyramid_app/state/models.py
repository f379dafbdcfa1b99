"""
State machine data models for the pyramid workout session.

This module defines immutable data structures for the session context, the
active state configuration (both parallel regions plus the deep-history
snapshot), inbound events and the outbound side-effect commands the machine
produces.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, Union

from ..config.defaults import SessionParams
from ..errors import MalformedEventError, UnknownEventError
from ..progress.pyramid import generate_pyramid


class Region(str, Enum):
    """Top-level parallel regions."""
    SETTINGS = "settings"
    EXERCISE = "exercise"


class SettingsState(str, Enum):
    """Settings panel visibility."""
    CLOSED = "closed"
    OPEN = "open"


class ExerciseState(str, Enum):
    """Every node of the exercise region, composite and leaf."""
    IDLE = "idle"
    ACTIVE = "active"
    COUNTDOWN = "countdown"
    WORKING = "working"
    START = "start"
    DOWN = "down"
    UP = "up"
    LAST_DOWN = "lastDown"
    LAST_UP = "lastUp"
    SET_COMPLETE = "setComplete"
    RESTING = "resting"
    PAUSED = "paused"
    FINISHED = "finished"


class SessionStatus(str, Enum):
    """Coarse classification of the exercise region for renderers."""
    IDLE = "idle"
    COUNTDOWN = "countdown"
    WORKING = "working"
    RESTING = "resting"
    PAUSED = "paused"
    FINISHED = "finished"


class EventType(str, Enum):
    """Inbound events; the last three are generated internally."""
    START = "START"
    PAUSE = "PAUSE"
    RESUME = "RESUME"
    RESET = "RESET"
    SKIP_REST = "SKIP_REST"
    SET_PEAK = "SET_PEAK"
    SET_TEMPO = "SET_TEMPO"
    TOGGLE_MUTE = "TOGGLE_MUTE"
    OPEN_SETTINGS = "OPEN_SETTINGS"
    CLOSE_SETTINGS = "CLOSE_SETTINGS"
    COUNTDOWN_TICK = "COUNTDOWN_TICK"
    REST_TICK = "REST_TICK"
    DELAY_ELAPSED = "DELAY_ELAPSED"


INTERNAL_EVENTS = frozenset({
    EventType.COUNTDOWN_TICK,
    EventType.REST_TICK,
    EventType.DELAY_ELAPSED,
})

StatePath = tuple[ExerciseState, ...]


class Cue(str, Enum):
    """Symbolic sound cues understood by the audio subsystem."""
    DOWN = "down"
    UP = "up"
    LAST_DOWN = "last-down"
    LAST_UP = "last-up"
    GO = "go"
    REST = "rest"
    FINISH = "finish"
    COUNTDOWN_BEEP = "countdown-beep"


@dataclass(frozen=True)
class WorkoutEvent:
    """A single event submitted to the machine."""

    type: EventType
    peak: Optional[int] = None                       # SET_PEAK payload
    tempo_ms: Optional[int] = None                   # SET_TEMPO payload
    source: Optional[StatePath] = None               # DELAY_ELAPSED: state that scheduled it
    seq: Optional[int] = None                        # DELAY_ELAPSED: entry number of that state

    @classmethod
    def start(cls) -> "WorkoutEvent":
        return cls(EventType.START)

    @classmethod
    def pause(cls) -> "WorkoutEvent":
        return cls(EventType.PAUSE)

    @classmethod
    def resume(cls) -> "WorkoutEvent":
        return cls(EventType.RESUME)

    @classmethod
    def reset(cls) -> "WorkoutEvent":
        return cls(EventType.RESET)

    @classmethod
    def skip_rest(cls) -> "WorkoutEvent":
        return cls(EventType.SKIP_REST)

    @classmethod
    def set_peak(cls, peak: int) -> "WorkoutEvent":
        return cls(EventType.SET_PEAK, peak=peak)

    @classmethod
    def set_tempo(cls, tempo_ms: int) -> "WorkoutEvent":
        return cls(EventType.SET_TEMPO, tempo_ms=tempo_ms)

    @classmethod
    def toggle_mute(cls) -> "WorkoutEvent":
        return cls(EventType.TOGGLE_MUTE)

    @classmethod
    def open_settings(cls) -> "WorkoutEvent":
        return cls(EventType.OPEN_SETTINGS)

    @classmethod
    def close_settings(cls) -> "WorkoutEvent":
        return cls(EventType.CLOSE_SETTINGS)

    @classmethod
    def countdown_tick(cls) -> "WorkoutEvent":
        return cls(EventType.COUNTDOWN_TICK)

    @classmethod
    def rest_tick(cls) -> "WorkoutEvent":
        return cls(EventType.REST_TICK)

    @classmethod
    def delay_elapsed(cls, source: StatePath, seq: int) -> "WorkoutEvent":
        return cls(EventType.DELAY_ELAPSED, source=tuple(source), seq=seq)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkoutEvent":
        """
        Parse an external event such as {"type": "SET_PEAK", "peak": 12}.

        Internal events cannot be submitted this way.

        Raises:
            UnknownEventError: type missing, unknown or internal-only
            MalformedEventError: required payload missing or not an integer
        """
        raw_type = data.get("type") if isinstance(data, dict) else None
        try:
            event_type = EventType(raw_type)
        except ValueError:
            raise UnknownEventError(
                f"Unknown event type: {raw_type!r}",
                event_type=raw_type,
                context={"event": data}
            ) from None

        if event_type in INTERNAL_EVENTS:
            raise UnknownEventError(
                f"{event_type.value} is generated internally and cannot be submitted",
                event_type=raw_type,
                context={"event": data}
            )

        if event_type == EventType.SET_PEAK:
            return cls.set_peak(_require_int(data, "peak"))
        if event_type == EventType.SET_TEMPO:
            return cls.set_tempo(_require_int(data, "tempoMs", "tempo_ms"))
        return cls(event_type)


def _require_int(data: dict[str, Any], *keys: str) -> int:
    for key in keys:
        if key in data:
            value = data[key]
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            raise MalformedEventError(
                f"{data.get('type')} field '{key}' must be an integer",
                field=key,
                raw_value=value,
                context={"event": data}
            )
    raise MalformedEventError(
        f"{data.get('type')} requires field '{keys[0]}'",
        field=keys[0],
        context={"event": data}
    )


@dataclass(frozen=True)
class WorkoutContext:
    """Session data owned by the machine; replaced, never mutated in place."""

    # Pyramid
    peak_reps: int = 10
    pyramid_sets: tuple[int, ...] = field(default_factory=lambda: tuple(generate_pyramid(10)))

    # Progress
    current_set_index: int = 0
    completed_reps_in_set: int = 0

    # Settings carried in context
    tempo_ms: int = 2000
    is_muted: bool = False

    # Timer state (whole seconds, decremented by ticks)
    countdown_seconds_left: int = 3
    rest_seconds_left: int = 0

    # Wall-clock anchor of the running countdown/rest, for smooth observer progress
    timer_started_at: int = 0                        # epoch ms
    timer_duration: int = 0                          # ms

    @classmethod
    def initial(cls, params: Optional[SessionParams] = None) -> "WorkoutContext":
        """Default context for a new session."""
        params = params or SessionParams()
        return cls(
            peak_reps=params.default_peak,
            pyramid_sets=tuple(generate_pyramid(params.default_peak)),
            tempo_ms=params.default_tempo_ms,
            countdown_seconds_left=params.countdown_seconds,
        )

    def with_peak(self, peak: int) -> "WorkoutContext":
        """Regenerate the pyramid for a new peak and restart progress."""
        return replace(
            self,
            peak_reps=peak,
            pyramid_sets=tuple(generate_pyramid(peak)),
            current_set_index=0,
            completed_reps_in_set=0,
        )

    def with_updates(self, **changes: Any) -> "WorkoutContext":
        return replace(self, **changes)

    @property
    def target_reps(self) -> int:
        """Reps in the current set, 0 if the index is out of range."""
        if 0 <= self.current_set_index < len(self.pyramid_sets):
            return self.pyramid_sets[self.current_set_index]
        return 0

    @property
    def final_set_index(self) -> int:
        return len(self.pyramid_sets) - 1


@dataclass(frozen=True)
class StateConfiguration:
    """Active states of both regions plus the deep-history snapshot of `active`."""

    settings: SettingsState = SettingsState.CLOSED
    exercise: StatePath = (ExerciseState.IDLE,)
    history: Optional[StatePath] = None              # last leaf path inside `active`
    delay_seq: int = 0                               # bumped on every timed phase entry

    @property
    def leaf(self) -> ExerciseState:
        return self.exercise[-1]

    @property
    def path(self) -> str:
        """Dotted exercise path, e.g. 'active.working.lastUp'."""
        return ".".join(s.value for s in self.exercise)

    @property
    def value(self) -> dict[str, Any]:
        """Nested state value, e.g. {'settings': 'closed', 'exercise': {'active': 'resting'}}."""
        nested: Any = self.exercise[-1].value
        for state in reversed(self.exercise[:-1]):
            nested = {state.value: nested}
        return {Region.SETTINGS.value: self.settings.value, Region.EXERCISE.value: nested}

    def matches(self, state: Union[ExerciseState, SettingsState, str]) -> bool:
        """True if `state` is active in either region (any depth)."""
        if isinstance(state, SettingsState):
            return self.settings == state
        if isinstance(state, ExerciseState):
            return state in self.exercise
        return state in (s.value for s in self.exercise) or state == self.path

    def with_exercise(self, path: StatePath) -> "StateConfiguration":
        return replace(self, exercise=tuple(path))

    def with_settings(self, settings: SettingsState) -> "StateConfiguration":
        return replace(self, settings=settings)

    def with_history(self, history: Optional[StatePath]) -> "StateConfiguration":
        return replace(self, history=history)

    def with_delay_seq(self, delay_seq: int) -> "StateConfiguration":
        return replace(self, delay_seq=delay_seq)


# --- Outbound side-effect commands ---

@dataclass(frozen=True)
class PlayCue:
    """Fire-and-forget sound cue for the audio subsystem."""
    cue: Cue


@dataclass(frozen=True)
class SetMuted:
    """Re-sync the audio subsystem's own mute flag."""
    muted: bool


@dataclass(frozen=True)
class StartTicker:
    """Start a 1 Hz ticker owned by the state at `owner`."""
    owner: StatePath
    event_type: EventType
    interval_ms: int


@dataclass(frozen=True)
class StopTicker:
    owner: StatePath


@dataclass(frozen=True)
class ScheduleDelay:
    """Schedule a one-shot DELAY_ELAPSED for the state at `owner`."""
    owner: StatePath
    delay_ms: float
    seq: int


@dataclass(frozen=True)
class CancelDelay:
    owner: StatePath


@dataclass(frozen=True)
class AcquireWakeHold:
    pass


@dataclass(frozen=True)
class ReleaseWakeHold:
    pass


Effect = Union[
    PlayCue, SetMuted, StartTicker, StopTicker,
    ScheduleDelay, CancelDelay, AcquireWakeHold, ReleaseWakeHold,
]


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of processing one event: new configuration, context and effects."""

    configuration: StateConfiguration
    context: WorkoutContext
    effects: tuple[Effect, ...] = ()
    handled: bool = False                            # False: no transition matched, event ignored
    trigger: Optional[EventType] = None
