"""
Core pyramid workout state machine.

`transition()` is a pure function from (configuration, context, event) to a
TransitionResult carrying the next configuration, the next context and the
ordered side-effect commands to dispatch. It never touches timers, audio or
the wake hold itself; the session runtime applies the effects.

Exercise region topology:

    idle
    active                      (wake hold held while active)
        countdown               (ticker: COUNTDOWN_TICK)
        working
            start -> down <-> up -> lastDown -> lastUp
        setComplete             (transient)
        resting                 (ticker: REST_TICK)
    paused                      (RESUME restores active's deep history)
    finished
"""

from typing import Callable, Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..errors import StateTransitionError
from ..logging.config import get_state_logger
from ..progress.pyramid import rest_seconds
from .models import (
    AcquireWakeHold,
    CancelDelay,
    Cue,
    Effect,
    EventType,
    ExerciseState,
    PlayCue,
    ReleaseWakeHold,
    ScheduleDelay,
    SessionStatus,
    SetMuted,
    SettingsState,
    StartTicker,
    StateConfiguration,
    StatePath,
    StopTicker,
    TransitionResult,
    WorkoutContext,
    WorkoutEvent,
)

state_logger = get_state_logger(__name__)

S = ExerciseState

PARENT: dict[ExerciseState, Optional[ExerciseState]] = {
    S.IDLE: None,
    S.ACTIVE: None,
    S.PAUSED: None,
    S.FINISHED: None,
    S.COUNTDOWN: S.ACTIVE,
    S.WORKING: S.ACTIVE,
    S.SET_COMPLETE: S.ACTIVE,
    S.RESTING: S.ACTIVE,
    S.START: S.WORKING,
    S.DOWN: S.WORKING,
    S.UP: S.WORKING,
    S.LAST_DOWN: S.WORKING,
    S.LAST_UP: S.WORKING,
}

INITIAL_CHILD: dict[ExerciseState, ExerciseState] = {
    S.ACTIVE: S.COUNTDOWN,
    S.WORKING: S.START,
}

PHASE_STATES = (S.START, S.DOWN, S.UP, S.LAST_DOWN, S.LAST_UP)
TICKER_STATES = {S.COUNTDOWN: EventType.COUNTDOWN_TICK, S.RESTING: EventType.REST_TICK}
TRANSIENT_STATES = frozenset({S.SET_COMPLETE})

PHASE_CUES = {
    S.DOWN: Cue.DOWN,
    S.UP: Cue.UP,
    S.LAST_DOWN: Cue.LAST_DOWN,
    S.LAST_UP: Cue.LAST_UP,
}

STATE_TAGS: dict[ExerciseState, frozenset[str]] = {
    S.IDLE: frozenset({"idle", "configurable"}),
    S.ACTIVE: frozenset({"active"}),
    S.COUNTDOWN: frozenset({"countdown", "pauseable", "timer"}),
    S.WORKING: frozenset({"working", "pauseable"}),
    S.START: frozenset({"phase-start"}),
    S.DOWN: frozenset({"phase-down"}),
    S.UP: frozenset({"phase-up"}),
    S.LAST_DOWN: frozenset({"phase-lastDown"}),
    S.LAST_UP: frozenset({"phase-lastUp"}),
    S.SET_COMPLETE: frozenset(),
    S.RESTING: frozenset({"resting", "skippable", "timer"}),
    S.PAUSED: frozenset({"paused", "configurable"}),
    S.FINISHED: frozenset({"finished", "configurable"}),
}


def path_to(state: ExerciseState) -> StatePath:
    """Path from the region root down to `state`."""
    path = [state]
    parent = PARENT[state]
    while parent is not None:
        path.append(parent)
        parent = PARENT[parent]
    return tuple(reversed(path))


def initial_configuration() -> StateConfiguration:
    return StateConfiguration()


def initial_state(cfg: Optional[DefaultConfig] = None) -> tuple[StateConfiguration, WorkoutContext]:
    """Starting configuration and context for a new session."""
    cfg = cfg or get_default_config()
    return initial_configuration(), WorkoutContext.initial(cfg.session)


# --- Guards ---

def is_single_rep_set(ctx: WorkoutContext) -> bool:
    return ctx.target_reps == 1


def is_next_rep_last(ctx: WorkoutContext) -> bool:
    return ctx.completed_reps_in_set == ctx.target_reps - 1


def has_more_reps(ctx: WorkoutContext) -> bool:
    return ctx.completed_reps_in_set < ctx.target_reps


def is_workout_complete(ctx: WorkoutContext) -> bool:
    return ctx.current_set_index >= ctx.final_set_index


def countdown_complete(ctx: WorkoutContext) -> bool:
    return ctx.countdown_seconds_left <= 0


def rest_complete(ctx: WorkoutContext) -> bool:
    return ctx.rest_seconds_left <= 0


# --- Read-only classification ---

def state_tags(configuration: StateConfiguration) -> frozenset[str]:
    """Union of the tags of every active exercise state."""
    tags: set[str] = set()
    for state in configuration.exercise:
        tags |= STATE_TAGS[state]
    return frozenset(tags)


def has_tag(configuration: StateConfiguration, tag: str) -> bool:
    return tag in state_tags(configuration)


def session_status(configuration: StateConfiguration) -> SessionStatus:
    """Classify the exercise region as idle/countdown/working/resting/paused/finished."""
    tags = state_tags(configuration)
    for status in SessionStatus:
        if status.value in tags:
            return status
    raise StateTransitionError(
        "Exercise region is in a state with no status tag",
        current_state=configuration.path
    )


def current_phase(configuration: StateConfiguration) -> Optional[ExerciseState]:
    """Rep phase being performed, or None outside `working`."""
    if S.WORKING in configuration.exercise and configuration.leaf in PHASE_STATES:
        return configuration.leaf
    return None


# --- Transition engine ---

Action = Callable[["_Step"], None]


class _Step:
    """Accumulates one macrostep: configuration, context and emitted effects."""

    def __init__(self, configuration: StateConfiguration, context: WorkoutContext,
                 cfg: DefaultConfig, now_ms: int):
        self.configuration = configuration
        self.context = context
        self.cfg = cfg
        self.now_ms = now_ms
        self.effects: list[Effect] = []

    def emit(self, effect: Effect) -> None:
        self.effects.append(effect)

    def assign(self, **changes) -> None:
        self.context = self.context.with_updates(**changes)

    def result(self, trigger: EventType, handled: bool) -> TransitionResult:
        return TransitionResult(
            configuration=self.configuration,
            context=self.context,
            effects=tuple(self.effects),
            handled=handled,
            trigger=trigger,
        )


# Context assignments

def reset_workout(step: _Step) -> None:
    step.assign(
        current_set_index=0,
        completed_reps_in_set=0,
        countdown_seconds_left=step.cfg.session.countdown_seconds,
        rest_seconds_left=0,
    )


def reset_for_new_set(step: _Step) -> None:
    step.assign(completed_reps_in_set=0)


def increment_rep(step: _Step) -> None:
    step.assign(completed_reps_in_set=step.context.completed_reps_in_set + 1)


def advance_to_next_set(step: _Step) -> None:
    step.assign(
        current_set_index=step.context.current_set_index + 1,
        completed_reps_in_set=0,
    )


def decrement_countdown(step: _Step) -> None:
    step.assign(countdown_seconds_left=max(0, step.context.countdown_seconds_left - 1))


def decrement_rest(step: _Step) -> None:
    step.assign(rest_seconds_left=max(0, step.context.rest_seconds_left - 1))


def init_countdown(step: _Step) -> None:
    seconds = step.cfg.session.countdown_seconds
    step.assign(
        countdown_seconds_left=seconds,
        timer_started_at=step.now_ms,
        timer_duration=seconds * 1000,
    )


def init_rest(step: _Step) -> None:
    seconds = rest_seconds(step.context.target_reps, step.cfg.rest)
    step.assign(
        rest_seconds_left=seconds,
        timer_started_at=step.now_ms,
        timer_duration=seconds * 1000,
    )


def reanchor_timer(step: _Step, seconds_left: int) -> None:
    """Shift the anchor so the remaining fraction survives the time spent paused."""
    step.assign(timer_started_at=step.now_ms - (step.context.timer_duration - seconds_left * 1000))


def play(cue: Cue) -> Action:
    def action(step: _Step) -> None:
        step.emit(PlayCue(cue))
    action.__name__ = f"play_{cue.name.lower()}"
    return action


def _schedule_delay(step: _Step, path: StatePath, delay_ms: float) -> None:
    seq = step.configuration.delay_seq + 1
    step.configuration = step.configuration.with_delay_seq(seq)
    step.emit(ScheduleDelay(path, delay_ms, seq))


def _enter(step: _Step, state: ExerciseState, path: StatePath, restoring: bool) -> None:
    """Entry actions. History restoration skips context initialisation."""
    if state == S.ACTIVE:
        step.emit(AcquireWakeHold())
    elif state == S.COUNTDOWN:
        if restoring:
            reanchor_timer(step, step.context.countdown_seconds_left)
        else:
            init_countdown(step)
        step.emit(PlayCue(Cue.COUNTDOWN_BEEP))
        step.emit(StartTicker(path, EventType.COUNTDOWN_TICK, step.cfg.session.tick_interval_ms))
    elif state == S.RESTING:
        if restoring:
            reanchor_timer(step, step.context.rest_seconds_left)
        else:
            init_rest(step)
        step.emit(PlayCue(Cue.REST))
        step.emit(StartTicker(path, EventType.REST_TICK, step.cfg.session.tick_interval_ms))
    elif state == S.START:
        _schedule_delay(step, path, step.cfg.session.initial_delay_ms)
    elif state in PHASE_CUES:
        step.emit(PlayCue(PHASE_CUES[state]))
        # Read at entry so SET_TEMPO applies from the next phase on
        _schedule_delay(step, path, step.context.tempo_ms / 2)
    elif state == S.FINISHED:
        step.emit(PlayCue(Cue.FINISH))


def _exit(step: _Step, state: ExerciseState, path: StatePath) -> None:
    if state in TICKER_STATES:
        step.emit(StopTicker(path))
    elif state in PHASE_STATES:
        step.emit(CancelDelay(path))
    elif state == S.ACTIVE:
        step.emit(ReleaseWakeHold())


def _move(step: _Step, target: StatePath, actions: tuple[Action, ...] = (),
          restoring: bool = False) -> None:
    """Exit up to the common ancestor, run transition actions, enter down to `target`."""
    source = step.configuration.exercise

    common = 0
    while (common < len(source) and common < len(target)
           and source[common] == target[common] and common < len(target) - 1):
        common += 1

    for depth in range(len(source) - 1, common - 1, -1):
        state = source[depth]
        _exit(step, state, source[:depth + 1])
        if state == S.ACTIVE:
            step.configuration = step.configuration.with_history(source)

    for action in actions:
        action(step)

    path = list(target[:common])
    for state in target[common:]:
        path.append(state)
        _enter(step, state, tuple(path), restoring)

    while path[-1] in INITIAL_CHILD:
        path.append(INITIAL_CHILD[path[-1]])
        _enter(step, path[-1], tuple(path), restoring)

    step.configuration = step.configuration.with_exercise(tuple(path))

    if path[-1] in TRANSIENT_STATES:
        _resolve_set_complete(step)


def _resolve_set_complete(step: _Step) -> None:
    """Eventless exit from setComplete: finished on the last set, otherwise rest."""
    if is_workout_complete(step.context):
        _move(step, path_to(S.FINISHED))
    else:
        _move(step, path_to(S.RESTING))


def _handle_exercise(step: _Step, event: WorkoutEvent) -> bool:
    """Route `event` from the innermost active state outwards. Returns True if handled."""
    configuration = step.configuration
    ctx = step.context
    etype = event.type

    for depth in range(len(configuration.exercise) - 1, -1, -1):
        state = configuration.exercise[depth]
        own_path = configuration.exercise[:depth + 1]

        if state == S.IDLE:
            if etype == EventType.START:
                _move(step, path_to(S.ACTIVE), (reset_workout,))
                return True
            if etype == EventType.SET_PEAK:
                step.context = ctx.with_peak(event.peak)
                return True

        elif state == S.ACTIVE:
            if etype == EventType.PAUSE:
                _move(step, path_to(S.PAUSED))
                return True
            if etype == EventType.RESET:
                _move(step, path_to(S.IDLE), (reset_workout,))
                return True

        elif state == S.COUNTDOWN:
            if etype == EventType.COUNTDOWN_TICK:
                if countdown_complete(ctx):
                    _move(step, path_to(S.WORKING), (reset_for_new_set, play(Cue.GO)))
                else:
                    decrement_countdown(step)
                    step.emit(PlayCue(Cue.COUNTDOWN_BEEP))
                return True

        elif state == S.RESTING:
            if etype == EventType.REST_TICK:
                if rest_complete(ctx):
                    _move(step, path_to(S.COUNTDOWN), (advance_to_next_set,))
                else:
                    decrement_rest(step)
                return True
            if etype == EventType.SKIP_REST:
                _move(step, path_to(S.COUNTDOWN), (advance_to_next_set,))
                return True

        elif state in PHASE_STATES:
            # Stale delays carry the path or entry number of a state no longer active
            if (etype == EventType.DELAY_ELAPSED and event.source == own_path
                    and event.seq == configuration.delay_seq):
                _handle_phase_delay(step, state)
                return True

        elif state == S.PAUSED:
            if etype == EventType.RESUME:
                history = configuration.history
                if not history or history[0] != S.ACTIVE:
                    raise StateTransitionError(
                        "Cannot resume: no history recorded for active",
                        current_state=configuration.path,
                        attempted_transition="active.hist"
                    )
                _move(step, history, restoring=True)
                return True
            if etype == EventType.RESET:
                _move(step, path_to(S.IDLE), (reset_workout,))
                return True
            if etype == EventType.SET_PEAK:
                _move(step, path_to(S.IDLE), (_set_peak_action(event.peak),))
                return True

        elif state == S.FINISHED:
            if etype == EventType.RESET:
                _move(step, path_to(S.IDLE), (reset_workout,))
                return True
            if etype == EventType.SET_PEAK:
                _move(step, path_to(S.IDLE), (_set_peak_action(event.peak),))
                return True

    return False


def _handle_phase_delay(step: _Step, state: ExerciseState) -> None:
    ctx = step.context
    if state == S.START:
        _move(step, path_to(S.LAST_DOWN) if is_single_rep_set(ctx) else path_to(S.DOWN))
    elif state == S.DOWN:
        _move(step, path_to(S.UP), (increment_rep,))
    elif state == S.UP:
        # Order matters: a 2-rep set must route its final rep through lastDown
        if is_next_rep_last(ctx):
            _move(step, path_to(S.LAST_DOWN))
        elif has_more_reps(ctx):
            _move(step, path_to(S.DOWN))
        else:
            _move(step, path_to(S.SET_COMPLETE))
    elif state == S.LAST_DOWN:
        _move(step, path_to(S.LAST_UP), (increment_rep,))
    elif state == S.LAST_UP:
        _move(step, path_to(S.SET_COMPLETE))


def _set_peak_action(peak: int) -> Action:
    def set_peak(step: _Step) -> None:
        step.context = step.context.with_peak(peak)
    return set_peak


def _handle_settings(step: _Step, event: WorkoutEvent) -> bool:
    settings = step.configuration.settings
    if settings == SettingsState.CLOSED and event.type == EventType.OPEN_SETTINGS:
        step.configuration = step.configuration.with_settings(SettingsState.OPEN)
        return True
    if settings == SettingsState.OPEN and event.type == EventType.CLOSE_SETTINGS:
        step.configuration = step.configuration.with_settings(SettingsState.CLOSED)
        return True
    return False


def _handle_global(step: _Step, event: WorkoutEvent) -> bool:
    """Root-level handlers, available in every exercise state."""
    if event.type == EventType.TOGGLE_MUTE:
        muted = not step.context.is_muted
        step.assign(is_muted=muted)
        step.emit(SetMuted(muted))
        return True
    if event.type == EventType.SET_TEMPO:
        step.assign(tempo_ms=event.tempo_ms)
        return True
    return False


def transition(
    configuration: StateConfiguration,
    context: WorkoutContext,
    event: WorkoutEvent,
    cfg: Optional[DefaultConfig] = None,
    now_ms: int = 0
) -> TransitionResult:
    """
    Process one event to completion.

    Args:
        configuration: Active states of both regions and the history snapshot
        context: Current session context
        event: Event to process
        cfg: Session and rest parameters (defaults if omitted)
        now_ms: Wall-clock time used to anchor countdown/rest timers

    Returns:
        TransitionResult; `handled` is False and effects empty when no
        transition matched, which is not an error.
    """
    step = _Step(configuration, context, cfg or get_default_config(), now_ms)

    handled = _handle_settings(step, event)
    handled = _handle_exercise(step, event) or handled
    if not handled:
        handled = _handle_global(step, event)

    if not handled:
        state_logger.debug(
            "Event ignored in current state",
            trigger=event.type.value,
            state=configuration.path
        )

    return step.result(event.type, handled)
