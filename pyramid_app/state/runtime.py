"""
Runtime owner of a single workout session.

WorkoutSession holds the live configuration and context, feeds events
through the pure transition function one at a time, applies the resulting
effects (timers here, audio and wake hold through the dispatcher) and
notifies subscribers after every handled event.
"""

import threading
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional, Union

import structlog

from ..config.defaults import DefaultConfig, get_default_config
from ..effects.dispatcher import EffectDispatcher
from ..logging.config import get_state_logger, log_state_transition
from ..timers.scheduler import ThreadingScheduler, TimerScheduler
from ..timers.ticker import TimerHandle
from .machine import current_phase, has_tag, initial_state, session_status, state_tags, transition
from .models import (
    CancelDelay,
    Effect,
    ExerciseState,
    ReleaseWakeHold,
    ScheduleDelay,
    SessionStatus,
    SettingsState,
    StartTicker,
    StateConfiguration,
    StatePath,
    StopTicker,
    WorkoutContext,
    WorkoutEvent,
)

logger = structlog.get_logger(__name__)
state_logger = get_state_logger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view handed to subscribers."""
    configuration: StateConfiguration
    context: WorkoutContext
    status: SessionStatus
    phase: Optional[ExerciseState]
    tags: frozenset[str]


Listener = Callable[[SessionSnapshot], None]


class WorkoutSession:
    """Run-to-completion executor for the workout state machine."""

    def __init__(
        self,
        cfg: Optional[DefaultConfig] = None,
        scheduler: Optional[TimerScheduler] = None,
        dispatcher: Optional[EffectDispatcher] = None,
        session_id: Optional[str] = None
    ):
        self.cfg = cfg or get_default_config()
        self.scheduler = scheduler or ThreadingScheduler()
        self.dispatcher = dispatcher or EffectDispatcher()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.logger = logger

        self._configuration, self._context = initial_state(self.cfg)
        self._lock = threading.RLock()
        self._queue: deque[WorkoutEvent] = deque()
        self._processing = False
        self._stopped = False
        self._timers: dict[StatePath, TimerHandle] = {}
        self._listeners: list[Listener] = []

        self.logger.info(
            "Workout session created",
            session_id=self.session_id,
            peak=self._context.peak_reps,
            tempo_ms=self._context.tempo_ms
        )

    # --- Read-only surface ---

    @property
    def configuration(self) -> StateConfiguration:
        return self._configuration

    @property
    def context(self) -> WorkoutContext:
        return self._context

    @property
    def status(self) -> SessionStatus:
        return session_status(self._configuration)

    @property
    def phase(self) -> Optional[ExerciseState]:
        return current_phase(self._configuration)

    @property
    def active_timers(self) -> tuple[StatePath, ...]:
        """Owners of the tickers and delays currently scheduled."""
        with self._lock:
            return tuple(self._timers)

    def matches(self, state: Union[ExerciseState, SettingsState, str]) -> bool:
        return self._configuration.matches(state)

    def has_tag(self, tag: str) -> bool:
        return has_tag(self._configuration, tag)

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                configuration=self._configuration,
                context=self._context,
                status=session_status(self._configuration),
                phase=current_phase(self._configuration),
                tags=state_tags(self._configuration),
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every handled event; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    # --- Event processing ---

    def send(self, event: WorkoutEvent) -> None:
        """
        Submit an event. Events sent while another is being processed (from a
        listener, say) are queued and handled after it completes.
        """
        with self._lock:
            if self._stopped:
                self.logger.debug(
                    "Event dropped, session stopped",
                    session_id=self.session_id,
                    trigger=event.type.value
                )
                return

            self._queue.append(event)
            if self._processing:
                return

            self._processing = True
            try:
                while self._queue:
                    self._process(self._queue.popleft())
            finally:
                self._processing = False

    def stop(self) -> None:
        """Cancel every timer, release the wake hold if held and close the audio sink."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._queue.clear()
            for owner in list(self._timers):
                self._cancel_timer(owner)
            # The hold is only taken while active
            if self._configuration.matches(ExerciseState.ACTIVE):
                self.dispatcher.dispatch(ReleaseWakeHold())
            self.dispatcher.close()
            self.scheduler.shutdown()
            self._listeners.clear()

        self.logger.info("Workout session stopped", session_id=self.session_id)

    def _process(self, event: WorkoutEvent) -> None:
        before = self._configuration
        result = transition(before, self._context, event, self.cfg, self.scheduler.now_ms())

        if not result.handled:
            return

        self._configuration = result.configuration
        self._context = result.context

        for effect in result.effects:
            self._apply(effect)

        after = self._configuration
        if before.exercise != after.exercise or before.settings != after.settings:
            log_state_transition(
                state_logger,
                session_id=self.session_id,
                from_state=f"{before.settings.value}|{before.path}",
                to_state=f"{after.settings.value}|{after.path}",
                trigger=event.type.value,
                context={
                    "set_index": self._context.current_set_index,
                    "completed_reps": self._context.completed_reps_in_set,
                    "target_reps": self._context.target_reps,
                }
            )
        else:
            state_logger.debug(
                "Context updated",
                session_id=self.session_id,
                state=after.path,
                trigger=event.type.value
            )

        self._notify()

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, StartTicker):
            tick = WorkoutEvent(effect.event_type)
            self._start_timer(
                effect.owner, tick,
                lambda fire: self.scheduler.call_every(effect.interval_ms, fire, effect.event_type.value),
                one_shot=False
            )
        elif isinstance(effect, ScheduleDelay):
            elapsed = WorkoutEvent.delay_elapsed(effect.owner, effect.seq)
            self._start_timer(
                effect.owner, elapsed,
                lambda fire: self.scheduler.call_later(effect.delay_ms, fire, effect.owner[-1].value),
                one_shot=True
            )
        elif isinstance(effect, (StopTicker, CancelDelay)):
            self._cancel_timer(effect.owner)
        else:
            self.dispatcher.dispatch(effect)

    def _start_timer(
        self,
        owner: StatePath,
        event: WorkoutEvent,
        schedule: Callable[[Callable[[], None]], TimerHandle],
        one_shot: bool
    ) -> None:
        # Re-entry always starts a fresh timer rather than resuming a stale one
        self._cancel_timer(owner)
        slot: dict[str, TimerHandle] = {}

        def fire() -> None:
            self._on_timer(owner, slot, event, one_shot)

        slot["handle"] = schedule(fire)
        self._timers[owner] = slot["handle"]

    def _cancel_timer(self, owner: StatePath) -> None:
        handle = self._timers.pop(owner, None)
        if handle is not None:
            handle.cancel()

    def _on_timer(self, owner: StatePath, slot: dict, event: WorkoutEvent, one_shot: bool) -> None:
        with self._lock:
            handle = slot.get("handle")
            # A cancelled or replaced timer is no longer registered for its owner
            if handle is None or self._timers.get(owner) is not handle:
                return
            if one_shot:
                self._timers.pop(owner, None)
            self.send(event)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = SessionSnapshot(
            configuration=self._configuration,
            context=self._context,
            status=session_status(self._configuration),
            phase=current_phase(self._configuration),
            tags=state_tags(self._configuration),
        )
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self.logger.error(
                    "Session listener failed",
                    session_id=self.session_id,
                    error=str(e)
                )
