"""Default configuration parameters for the pyramid workout session."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TempoOptions:
    """Selectable cadence speeds, full down+up rep duration in milliseconds."""
    fast: int = 1500
    normal: int = 2000
    slow: int = 3000

    def as_dict(self) -> dict[str, int]:
        return {"fast": self.fast, "normal": self.normal, "slow": self.slow}


@dataclass(frozen=True)
class SessionParams:
    """Pyramid and cadence parameters used by the state machine."""
    # Pyramid shape
    default_peak: int = 10
    min_peak: int = 3
    max_peak: int = 20

    # Cadence
    default_tempo_ms: int = 2000
    tempo_options: TempoOptions = field(default_factory=TempoOptions)

    # Timed phases
    countdown_seconds: int = 3                       # Pre-set "get ready" countdown
    initial_delay_ms: int = 600                      # Pause on "GO" before first rep
    tick_interval_ms: int = 1000                     # Countdown/rest ticker period


@dataclass(frozen=True)
class RestParams:
    """Inter-set rest formula: min(cap, base + reps * per_rep)."""
    base_seconds: int = 5
    per_rep_seconds: int = 5
    max_seconds: int = 60


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    session: SessionParams
    rest: RestParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        session=SessionParams(),
        rest=RestParams(),
    )
