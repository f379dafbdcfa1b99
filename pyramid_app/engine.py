"""
Workout engine coordinator.

Wires configuration, scheduler, audio and wake-hold collaborators and a
WorkoutSession together, and offers the verbs a UI calls (start, pause,
set_peak, ...) plus a flat summary for renderers.
"""

from pathlib import Path
from typing import Any, Callable, Optional, Union

import structlog

from .config.loader import ConfigLoader
from .effects.audio import AudioSink
from .effects.dispatcher import EffectDispatcher
from .effects.wake_hold import WakeHold
from .errors import MalformedEventError
from .progress.pyramid import clamp_peak
from .progress.selectors import (
    select_completed_volume,
    select_countdown_seconds,
    select_current_target_reps,
    select_next_set_reps,
    select_progress_percent,
    select_rest_seconds,
    select_timer_progress,
    select_total_volume,
)
from .state.models import SettingsState, WorkoutEvent
from .state.runtime import SessionSnapshot, WorkoutSession
from .timers.scheduler import TimerScheduler

logger = structlog.get_logger(__name__)


class WorkoutEngine:
    """
    Main coordinator for a pyramid workout.

    Owns one WorkoutSession; callers never touch the context directly.
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        overrides: Optional[dict[str, Any]] = None,
        scheduler: Optional[TimerScheduler] = None,
        audio: Optional[AudioSink] = None,
        wake_hold: Optional[WakeHold] = None,
        session_id: Optional[str] = None
    ) -> None:
        self.logger = logger
        self.config_loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        self.cfg = self.config_loader.load(overrides)
        self.dispatcher = EffectDispatcher(audio=audio, wake_hold=wake_hold)
        self.session = WorkoutSession(
            cfg=self.cfg,
            scheduler=scheduler,
            dispatcher=self.dispatcher,
            session_id=session_id,
        )

        self.logger.info("Workout engine initialized", session_id=self.session.session_id)

    # --- UI verbs ---

    def start(self) -> None:
        self.session.send(WorkoutEvent.start())

    def pause(self) -> None:
        self.session.send(WorkoutEvent.pause())

    def resume(self) -> None:
        self.session.send(WorkoutEvent.resume())

    def reset(self) -> None:
        self.session.send(WorkoutEvent.reset())

    def skip_rest(self) -> None:
        self.session.send(WorkoutEvent.skip_rest())

    def toggle_mute(self) -> None:
        self.session.send(WorkoutEvent.toggle_mute())

    def open_settings(self) -> None:
        self.session.send(WorkoutEvent.open_settings())

    def close_settings(self) -> None:
        self.session.send(WorkoutEvent.close_settings())

    def set_peak(self, peak: int) -> int:
        """Clamp `peak` to the configured bounds, submit it and return the clamped value."""
        session_params = self.cfg.session
        clamped = clamp_peak(peak, session_params.min_peak, session_params.max_peak)
        if clamped != peak:
            self.logger.info("Peak clamped", requested=peak, peak=clamped)
        self.session.send(WorkoutEvent.set_peak(clamped))
        return clamped

    def set_tempo(self, tempo: Union[int, str]) -> int:
        """
        Submit a tempo by name ('fast', 'normal', 'slow') or milliseconds.

        Raises:
            MalformedEventError: tempo is not one of the configured options
        """
        options = self.cfg.session.tempo_options.as_dict()
        if isinstance(tempo, str):
            if tempo not in options:
                raise MalformedEventError(
                    f"Unknown tempo '{tempo}'",
                    field="tempo",
                    raw_value=tempo,
                    context={"options": options}
                )
            tempo_ms = options[tempo]
        else:
            if tempo not in options.values():
                raise MalformedEventError(
                    f"Tempo {tempo} ms is not one of {sorted(options.values())}",
                    field="tempo_ms",
                    raw_value=tempo,
                    context={"options": options}
                )
            tempo_ms = tempo
        self.session.send(WorkoutEvent.set_tempo(tempo_ms))
        return tempo_ms

    def submit(self, data: dict[str, Any]) -> None:
        """Parse an external event dict (e.g. from a UI bridge) and send it."""
        event = WorkoutEvent.from_dict(data)
        if event.peak is not None:
            self.set_peak(event.peak)
        elif event.tempo_ms is not None:
            self.set_tempo(event.tempo_ms)
        else:
            self.session.send(event)

    # --- Read-only surface ---

    def subscribe(self, listener: Callable[[SessionSnapshot], None]) -> Callable[[], None]:
        return self.session.subscribe(listener)

    def summary(self) -> dict[str, Any]:
        """Flat view of the session for renderers."""
        snapshot = self.session.snapshot()
        ctx = snapshot.context
        return {
            "status": snapshot.status.value,
            "phase": snapshot.phase.value if snapshot.phase else None,
            "state": snapshot.configuration.path,
            "settings_open": snapshot.configuration.settings == SettingsState.OPEN,
            "tags": sorted(snapshot.tags),
            "peak": ctx.peak_reps,
            "pyramid": list(ctx.pyramid_sets),
            "set_index": ctx.current_set_index,
            "set_count": len(ctx.pyramid_sets),
            "target_reps": select_current_target_reps(ctx),
            "completed_reps": ctx.completed_reps_in_set,
            "next_set_reps": select_next_set_reps(ctx),
            "total_volume": select_total_volume(ctx),
            "completed_volume": select_completed_volume(ctx),
            "progress_percent": select_progress_percent(ctx),
            "countdown_seconds": select_countdown_seconds(ctx),
            "rest_seconds": select_rest_seconds(ctx),
            "timer_progress": select_timer_progress(ctx, self.session.scheduler.now_ms()),
            "tempo_ms": ctx.tempo_ms,
            "muted": ctx.is_muted,
        }

    def close(self) -> None:
        self.session.stop()
