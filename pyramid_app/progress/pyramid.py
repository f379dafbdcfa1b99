"""
Pyramid shape and rest formula.

A pyramid for peak N is 1, 2, ..., N, ..., 2, 1 reps: 2N-1 sets, strictly
ascending to the peak and strictly descending after it.
"""

from typing import Optional

from ..config.defaults import RestParams

DEFAULT_REST = RestParams()


def generate_pyramid(peak: int) -> list[int]:
    """Return [1..peak] followed by [peak-1..1]."""
    return list(range(1, peak + 1)) + list(range(peak - 1, 0, -1))


def rest_seconds(reps: int, params: Optional[RestParams] = None) -> int:
    """Rest after a set of `reps`: min(60, 5 + 5 * reps) with default params."""
    params = params or DEFAULT_REST
    return min(params.max_seconds, params.base_seconds + reps * params.per_rep_seconds)


def rest_duration_ms(reps: int, params: Optional[RestParams] = None) -> int:
    return rest_seconds(reps, params) * 1000


def clamp_peak(peak: int, min_peak: int = 3, max_peak: int = 20) -> int:
    """Clamp a requested peak to the supported range.

    The state machine does not re-validate SET_PEAK payloads; callers clamp
    before submitting.
    """
    return max(min_peak, min(max_peak, peak))
