"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

SESSION_FIELDS = (
    "default_peak", "min_peak", "max_peak", "default_tempo_ms",
    "tempo_options", "countdown_seconds", "initial_delay_ms", "tick_interval_ms",
)
REST_FIELDS = ("base_seconds", "per_rep_seconds", "max_seconds")
TEMPO_NAMES = ("fast", "normal", "slow")

# Supported pyramid range; a peak below 3 has no distinct ascending/descending shape
PEAK_FLOOR = 3
PEAK_CEILING = 20


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_session_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate session (pyramid, tempo, timing) parameters."""
        errors = []

        for key in params:
            if key not in SESSION_FIELDS:
                errors.append(ValidationError(
                    field=f"session.{key}",
                    message="Unknown session parameter",
                    value=params[key]
                ))

        for key in ("default_peak", "min_peak", "max_peak"):
            if key in params:
                value = params[key]
                if not _is_int(value) or not PEAK_FLOOR <= value <= PEAK_CEILING:
                    errors.append(ValidationError(
                        field=key,
                        message=f"Must be an integer between {PEAK_FLOOR} and {PEAK_CEILING}",
                        value=value
                    ))

        peaks = [params.get(k) for k in ("min_peak", "default_peak", "max_peak")]
        if all(_is_int(p) for p in peaks) and not peaks[0] <= peaks[1] <= peaks[2]:
            errors.append(ValidationError(
                field="default_peak",
                message="Must lie between min_peak and max_peak",
                value=params.get("default_peak")
            ))

        tempo_values: list[int] = []
        if "tempo_options" in params:
            options = params["tempo_options"]
            if not isinstance(options, dict):
                errors.append(ValidationError(
                    field="tempo_options",
                    message="Must be a mapping of fast/normal/slow to milliseconds",
                    value=options
                ))
            else:
                for name, value in options.items():
                    if name not in TEMPO_NAMES:
                        errors.append(ValidationError(
                            field=f"tempo_options.{name}",
                            message="Unknown tempo name",
                            value=value
                        ))
                    elif not _is_int(value) or value <= 0:
                        errors.append(ValidationError(
                            field=f"tempo_options.{name}",
                            message="Must be a positive integer",
                            value=value
                        ))
                    else:
                        tempo_values.append(value)

        if "default_tempo_ms" in params:
            value = params["default_tempo_ms"]
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field="default_tempo_ms",
                    message="Must be a positive integer",
                    value=value
                ))
            elif tempo_values and value not in tempo_values:
                errors.append(ValidationError(
                    field="default_tempo_ms",
                    message="Must be one of the tempo options",
                    value=value
                ))

        if "countdown_seconds" in params:
            value = params["countdown_seconds"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="countdown_seconds",
                    message="Must be a non-negative integer",
                    value=value
                ))

        for key in ("initial_delay_ms", "tick_interval_ms"):
            if key in params:
                value = params[key]
                if not _is_int(value) or value <= 0:
                    errors.append(ValidationError(
                        field=key,
                        message="Must be a positive integer",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_rest_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate rest formula parameters."""
        errors = []

        for key, value in params.items():
            if key not in REST_FIELDS:
                errors.append(ValidationError(
                    field=f"rest.{key}",
                    message="Unknown rest parameter",
                    value=value
                ))
            elif not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field=key,
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        for key in config:
            if key not in ("session", "rest"):
                errors.append(ValidationError(
                    field=key,
                    message="Unknown configuration section",
                    value=config[key]
                ))

        for section, validate in (
            ("session", ConfigValidator.validate_session_params),
            ("rest", ConfigValidator.validate_rest_params),
        ):
            if section not in config:
                continue
            if not isinstance(config[section], dict):
                errors.append(ValidationError(
                    field=section,
                    message="Must be a mapping",
                    value=config[section]
                ))
                continue
            errors.extend(validate(config[section]))

        return errors
