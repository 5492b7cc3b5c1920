"""Tests for Typesto Configuration System."""

import pytest
import yaml
from pydantic import ValidationError

from typesto.config import (
    LeaderboardSettings,
    ThrottleSettings,
    TypestoSettings,
    WordSettings,
    load_settings,
)
from typesto.session import Difficulty


class TestSectionDefaults:
    """Test per-section defaults."""

    def test_word_defaults(self):
        """Test word count bounds and starting difficulty."""
        settings = WordSettings()

        assert settings.min_word_count == 25
        assert settings.max_word_count == 70
        assert settings.default_difficulty is Difficulty.MEDIUM
        assert settings.default_word_count is None

    def test_word_bounds_validated(self):
        """Test min above max is rejected."""
        with pytest.raises(ValidationError):
            WordSettings(min_word_count=80, max_word_count=70)

    def test_throttle_default(self):
        """Test generator interval default."""
        assert ThrottleSettings().min_interval_seconds == 10.0

    def test_negative_interval_rejected(self):
        """Test negative throttle interval is rejected."""
        with pytest.raises(ValidationError):
            ThrottleSettings(min_interval_seconds=-1)

    def test_leaderboard_backend_choices(self):
        """Test only known backends are accepted."""
        assert LeaderboardSettings().backend == "memory"
        with pytest.raises(ValidationError):
            LeaderboardSettings(backend="sqlite")


class TestTypestoSettings:
    """Test top-level settings."""

    def test_default_settings(self):
        """Test defaults across sections."""
        settings = TypestoSettings()

        assert settings.session.restart_delay_seconds == 1.0
        assert settings.leaderboard.size == 5
        assert settings.telemetry.enabled is False
        assert settings.logging.level == "INFO"
        assert settings.redis.url == "redis://localhost:6379"

    def test_nested_env_override(self, monkeypatch):
        """Test nested settings from environment variables."""
        monkeypatch.setenv("TYPESTO_THROTTLE__MIN_INTERVAL_SECONDS", "2.5")
        monkeypatch.setenv("TYPESTO_WORDS__DEFAULT_DIFFICULTY", "hard")

        settings = TypestoSettings()

        assert settings.throttle.min_interval_seconds == 2.5
        assert settings.words.default_difficulty is Difficulty.HARD

    def test_explicit_parameters(self):
        """Test direct instantiation."""
        settings = TypestoSettings(
            leaderboard=LeaderboardSettings(backend="redis", size=10),
        )

        assert settings.leaderboard.backend == "redis"
        assert settings.leaderboard.size == 10

    def test_telemetry_to_config(self):
        """Test telemetry settings map to runtime config."""
        settings = TypestoSettings(
            telemetry={"enabled": True, "otlp_endpoint": "http://otel:4318"}
        )
        config = settings.telemetry.to_config()

        assert config.enabled is True
        assert config.otlp_endpoint == "http://otel:4318"
        assert config.service_name == "typesto"

    def test_summary(self):
        """Test human-readable summary."""
        settings = TypestoSettings(leaderboard={"backend": "redis"})
        summary = settings.summary()

        assert "Difficulty: medium" in summary
        assert "Word Count Range: 25-70" in summary
        assert "Leaderboard: redis (top 5)" in summary
        assert "Redis: redis://localhost:6379" in summary


class TestYamlConfig:
    """Test YAML configuration loading."""

    YAML = """
words:
  default_difficulty: easy
  default_word_count: 30
throttle:
  min_interval_seconds: 4
leaderboard:
  backend: redis
  key_prefix: "scores:"
"""

    def test_load_from_yaml(self, tmp_path):
        """Test loading settings from YAML."""
        config_file = tmp_path / "typesto.yaml"
        config_file.write_text(self.YAML)

        settings = TypestoSettings.from_yaml(str(config_file))

        assert settings.words.default_difficulty is Difficulty.EASY
        assert settings.words.default_word_count == 30
        assert settings.throttle.min_interval_seconds == 4
        assert settings.leaderboard.key_prefix == "scores:"
        assert settings.config_file == str(config_file)

    def test_yaml_with_overrides(self, tmp_path):
        """Test explicit parameters win over the file."""
        config_file = tmp_path / "typesto.yaml"
        config_file.write_text(self.YAML)

        settings = load_settings(
            config_file=str(config_file),
            leaderboard={"backend": "memory"},
        )

        assert settings.leaderboard.backend == "memory"
        assert settings.throttle.min_interval_seconds == 4

    def test_yaml_beats_environment(self, tmp_path, monkeypatch):
        """Test the config file wins over environment variables."""
        config_file = tmp_path / "typesto.yaml"
        config_file.write_text(self.YAML)
        monkeypatch.setenv("TYPESTO_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("TYPESTO_THROTTLE__MIN_INTERVAL_SECONDS", "99")

        settings = TypestoSettings()

        assert settings.throttle.min_interval_seconds == 4

    def test_nonexistent_yaml_file(self):
        """Test a missing file raises."""
        with pytest.raises(FileNotFoundError):
            TypestoSettings.from_yaml("/nonexistent/typesto.yaml")

    def test_non_mapping_yaml_rejected(self, tmp_path):
        """Test a YAML list at the top level is rejected."""
        config_file = tmp_path / "typesto.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            TypestoSettings.from_yaml(str(config_file))

    def test_empty_yaml_uses_defaults(self, tmp_path):
        """Test an empty file leaves defaults in place."""
        config_file = tmp_path / "typesto.yaml"
        config_file.write_text("")

        settings = TypestoSettings.from_yaml(str(config_file))

        assert settings.throttle.min_interval_seconds == 10.0

    def test_export_to_yaml(self, tmp_path):
        """Test exporting settings and loading them back."""
        settings = TypestoSettings(throttle={"min_interval_seconds": 3})
        output_file = tmp_path / "out.yaml"

        settings.to_yaml(str(output_file))
        data = yaml.safe_load(output_file.read_text())

        assert "config_file" not in data
        assert data["throttle"]["min_interval_seconds"] == 3
        assert data["words"]["default_difficulty"] == "medium"

        reloaded = TypestoSettings.from_yaml(str(output_file))
        assert reloaded.throttle.min_interval_seconds == 3
