"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from pyramid_app.config.defaults import TempoOptions, get_default_config
from pyramid_app.config.loader import ConfigLoader, load_config
from pyramid_app.config.validation import ConfigValidator
from pyramid_app.errors import ConfigurationError


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        config = get_default_config()
        assert config.session.default_peak == 10
        assert config.session.min_peak == 3
        assert config.session.max_peak == 20
        assert config.session.default_tempo_ms == 2000
        assert config.session.tempo_options == TempoOptions(fast=1500, normal=2000, slow=3000)
        assert config.rest.base_seconds == 5
        assert config.rest.per_rep_seconds == 5
        assert config.rest.max_seconds == 60


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_bundled_config_matches_defaults(self) -> None:
        """Test the shipped workout.yaml loads and agrees with the defaults."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)
        assert loader.load() == get_default_config()

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        loader = ConfigLoader.create(tmp_path)
        assert loader.load_file_config() == {}
        assert loader.load() == get_default_config()

    def test_file_overrides_defaults(self, tmp_path) -> None:
        (tmp_path / "workout.yaml").write_text(
            "session:\n"
            "  default_peak: 5\n"
            "  tempo_options:\n"
            "    slow: 4000\n"
            "rest:\n"
            "  max_seconds: 30\n"
        )

        config = ConfigLoader.create(tmp_path).load()

        assert config.session.default_peak == 5
        assert config.session.tempo_options.slow == 4000
        assert config.session.tempo_options.fast == 1500
        assert config.rest.max_seconds == 30
        assert config.rest.base_seconds == 5

    def test_overrides_win_over_file(self, tmp_path) -> None:
        (tmp_path / "workout.yaml").write_text("session:\n  default_peak: 5\n")

        config = load_config(tmp_path, {"session": {"default_peak": 7}})

        assert config.session.default_peak == 7

    def test_merge_config_keeps_other_defaults(self, tmp_path) -> None:
        config = ConfigLoader.create(tmp_path).merge_config({"session": {"countdown_seconds": 5}})

        assert config["session"]["countdown_seconds"] == 5
        assert config["session"]["initial_delay_ms"] == 600
        assert config["rest"]["per_rep_seconds"] == 5

    def test_empty_file(self, tmp_path) -> None:
        (tmp_path / "workout.yaml").write_text("")
        assert ConfigLoader.create(tmp_path).load_file_config() == {}

    def test_malformed_yaml(self, tmp_path) -> None:
        (tmp_path / "workout.yaml").write_text("session: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).load()

    def test_non_mapping_yaml(self, tmp_path) -> None:
        (tmp_path / "workout.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader.create(tmp_path).load()

    def test_invalid_values_rejected(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(tmp_path, {"session": {"default_peak": 50}, "rest": {"base_seconds": -1}})

        fields = {err.field for err in exc_info.value.errors}
        assert "default_peak" in fields
        assert "base_seconds" in fields
        assert exc_info.value.recoverable is False


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_session_params(self) -> None:
        params = {
            "default_peak": 10,
            "min_peak": 3,
            "max_peak": 20,
            "default_tempo_ms": 1500,
            "tempo_options": {"fast": 1500, "normal": 2000, "slow": 3000},
            "countdown_seconds": 0,
        }
        assert ConfigValidator.validate_session_params(params) == []

    @pytest.mark.parametrize("peak", [2, 21, "10", 10.0, True])
    def test_invalid_peak(self, peak) -> None:
        errors = ConfigValidator.validate_session_params({"default_peak": peak})
        assert [e.field for e in errors] == ["default_peak"]

    def test_default_peak_outside_bounds(self) -> None:
        errors = ConfigValidator.validate_session_params(
            {"min_peak": 5, "default_peak": 4, "max_peak": 10}
        )
        assert len(errors) == 1
        assert errors[0].message == "Must lie between min_peak and max_peak"

    def test_default_tempo_must_be_option(self) -> None:
        errors = ConfigValidator.validate_session_params({
            "default_tempo_ms": 2500,
            "tempo_options": {"fast": 1500, "normal": 2000, "slow": 3000},
        })
        assert [e.field for e in errors] == ["default_tempo_ms"]

    def test_unknown_tempo_name(self) -> None:
        errors = ConfigValidator.validate_session_params({"tempo_options": {"turbo": 500}})
        assert errors[0].field == "tempo_options.turbo"

    def test_unknown_session_key(self) -> None:
        errors = ConfigValidator.validate_session_params({"peak": 10})
        assert errors[0].field == "session.peak"

    @pytest.mark.parametrize("key", ["initial_delay_ms", "tick_interval_ms"])
    def test_positive_timings(self, key) -> None:
        errors = ConfigValidator.validate_session_params({key: 0})
        assert [e.field for e in errors] == [key]

    def test_rest_params(self) -> None:
        assert ConfigValidator.validate_rest_params({"base_seconds": 0, "max_seconds": 90}) == []
        errors = ConfigValidator.validate_rest_params({"per_rep_seconds": 2.5, "cap": 10})
        assert {e.field for e in errors} == {"per_rep_seconds", "rest.cap"}

    def test_unknown_section_and_bad_section_type(self) -> None:
        errors = ConfigValidator.validate_config({"audio": {}, "rest": [1, 2]})
        assert {e.field for e in errors} == {"audio", "rest"}
