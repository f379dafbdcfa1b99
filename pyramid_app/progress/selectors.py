"""
Read-only selectors over the session context.

All selectors are total: an out-of-range set index yields 0 / None rather
than raising, so renderers can call them in any state.
"""

from typing import Optional

from ..state.models import WorkoutContext


def select_current_target_reps(context: WorkoutContext) -> int:
    return context.target_reps


def select_next_set_reps(context: WorkoutContext) -> Optional[int]:
    """Reps in the following set, or None at the final set."""
    next_index = context.current_set_index + 1
    if 0 <= next_index < len(context.pyramid_sets):
        return context.pyramid_sets[next_index]
    return None


def select_total_volume(context: WorkoutContext) -> int:
    return sum(context.pyramid_sets)


def select_completed_volume(context: WorkoutContext) -> int:
    """Reps in finished sets plus reps done in the current set."""
    finished = context.pyramid_sets[:max(0, context.current_set_index)]
    return sum(finished) + context.completed_reps_in_set


def select_progress_percent(context: WorkoutContext) -> float:
    if not context.pyramid_sets:
        return 0.0
    return context.current_set_index / len(context.pyramid_sets) * 100


def select_countdown_seconds(context: WorkoutContext) -> int:
    return context.countdown_seconds_left


def select_rest_seconds(context: WorkoutContext) -> int:
    return context.rest_seconds_left


def select_timer_progress(context: WorkoutContext, now_ms: int) -> float:
    """
    Fraction of the running countdown/rest interval still remaining.

    Interpolates between ticks using the wall-clock anchor: 1.0 right after
    the timer starts, 0.0 once its duration has elapsed, 1.0 if no timer
    has been anchored yet.
    """
    if context.timer_duration <= 0:
        return 1.0
    elapsed = now_ms - context.timer_started_at
    remaining = max(0, context.timer_duration - elapsed)
    return min(1.0, remaining / context.timer_duration)
