"""Typesto configuration."""

import os
from pathlib import Path
from typing import Any, Literal, Optional

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .session import Difficulty
from .telemetry import TelemetryConfig


class RedisSettings(BaseSettings):
    """Redis configuration settings."""

    url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL",
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    socket_timeout: Optional[float] = Field(
        default=None, description="Socket timeout in seconds"
    )

    model_config = SettingsConfigDict(env_prefix="TYPESTO_REDIS_")


class WordSettings(BaseSettings):
    """Word count bounds and the starting difficulty."""

    min_word_count: int = Field(default=25, ge=1, description="Smallest word count")
    max_word_count: int = Field(default=70, ge=1, description="Largest word count")
    default_difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM, description="Difficulty of the first round"
    )
    default_word_count: Optional[int] = Field(
        default=None,
        ge=1,
        description="Word count of the first round; None uses the difficulty's count",
    )
    max_generated_words: int = Field(
        default=200, ge=1, description="Largest word count the generator serves"
    )

    model_config = SettingsConfigDict(env_prefix="TYPESTO_WORDS_")

    @model_validator(mode="after")
    def _check_bounds(self) -> "WordSettings":
        if self.min_word_count > self.max_word_count:
            raise ValueError("min_word_count must not exceed max_word_count")
        return self


class ThrottleSettings(BaseSettings):
    """Adaptive generation throttle."""

    min_interval_seconds: float = Field(
        default=10.0, ge=0, description="Minimum seconds between generator calls"
    )

    model_config = SettingsConfigDict(env_prefix="TYPESTO_THROTTLE_")


class SessionSettings(BaseSettings):
    """Session lifecycle timing."""

    restart_delay_seconds: float = Field(
        default=1.0, ge=0, description="Delay between completion and the next round"
    )

    model_config = SettingsConfigDict(env_prefix="TYPESTO_SESSION_")


class LeaderboardSettings(BaseSettings):
    """Leaderboard storage."""

    backend: Literal["memory", "redis"] = Field(
        default="memory", description="Where buckets are stored"
    )
    size: int = Field(default=5, ge=1, description="Entries kept per difficulty")
    key_prefix: str = Field(default="leaderboard:", description="Redis key prefix")

    model_config = SettingsConfigDict(env_prefix="TYPESTO_LEADERBOARD_")


class TelemetrySettings(BaseSettings):
    """OpenTelemetry settings."""

    enabled: bool = Field(default=False, description="Enable OpenTelemetry")
    service_name: str = Field(default="typesto", description="Service name")
    environment: str = Field(default="dev", description="Deployment environment")
    otlp_endpoint: Optional[str] = Field(
        default=None, description="OTLP HTTP endpoint, e.g. http://localhost:4318"
    )
    sample_ratio: float = Field(default=1.0, ge=0.0, le=1.0)
    metrics_export_interval_ms: int = Field(default=60_000, ge=1000)
    headers: dict[str, str] = Field(default_factory=dict)

    model_config = SettingsConfigDict(env_prefix="TYPESTO_TELEMETRY_")

    def to_config(self) -> TelemetryConfig:
        return TelemetryConfig(
            enabled=self.enabled,
            service_name=self.service_name,
            environment=self.environment,
            otlp_endpoint=self.otlp_endpoint,
            sample_ratio=self.sample_ratio,
            metrics_export_interval_ms=self.metrics_export_interval_ms,
            headers=dict(self.headers),
        )


class LoggingSettings(BaseSettings):
    """Logging settings."""

    level: str = Field(default="INFO", description="Root log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log record format",
    )
    file: Optional[str] = Field(default=None, description="Also log to this file")

    model_config = SettingsConfigDict(env_prefix="TYPESTO_LOGGING_")


class TypestoSettings(BaseSettings):
    """
    Typesto configuration.

    Configuration can be loaded from:
    1. Environment variables (TYPESTO_*)
    2. .env file
    3. YAML config file (via config_file or TYPESTO_CONFIG_FILE)
    4. Direct instantiation with parameters

    Priority (highest to lowest):
    1. Explicitly passed parameters
    2. Config file
    3. Environment variables
    4. Defaults

    Example usage:

        settings = TypestoSettings()
        settings = TypestoSettings(config_file="typesto.yaml")
        settings = TypestoSettings(throttle=ThrottleSettings(min_interval_seconds=5))
    """

    config_file: Optional[str] = Field(
        default=None,
        description="Path to YAML config file",
    )

    redis: RedisSettings = Field(default_factory=RedisSettings)
    words: WordSettings = Field(default_factory=WordSettings)
    throttle: ThrottleSettings = Field(default_factory=ThrottleSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    leaderboard: LeaderboardSettings = Field(default_factory=LeaderboardSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="TYPESTO_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(self, **data: Any):
        """
        Initialize settings.

        If config_file is provided or TYPESTO_CONFIG_FILE env var is set,
        load configuration from YAML file and merge with other sources.
        """
        config_file = data.get("config_file") or os.getenv("TYPESTO_CONFIG_FILE")
        if config_file:
            data = self._merge_yaml(config_file, data)
        super().__init__(**data)

    @classmethod
    def _merge_yaml(cls, config_file: str, data: dict[str, Any]) -> dict[str, Any]:
        """Load YAML config and merge with explicit parameters."""
        yaml_data = cls._load_yaml(config_file)
        merged_data = {**yaml_data, **data}
        merged_data.setdefault("config_file", config_file)
        return merged_data

    @staticmethod
    def _load_yaml(file_path: str) -> dict[str, Any]:
        """
        Load configuration from YAML file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
            ValueError: If the top level is not a mapping
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")

        with path.open("r") as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {file_path}")
        return data

    @classmethod
    def from_yaml(cls, file_path: str) -> "TypestoSettings":
        """Create settings from YAML file."""
        return cls(config_file=file_path)

    def to_yaml(self, file_path: str) -> None:
        """Export settings to YAML file."""
        data = self.model_dump(mode="json", exclude_none=True, exclude={"config_file"})

        path = Path(file_path)
        with path.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def summary(self) -> str:
        """Get human-readable configuration summary."""
        lines = [
            "Typesto Configuration:",
            f"  Difficulty: {self.words.default_difficulty.value}",
            f"  Word Count Range: {self.words.min_word_count}-{self.words.max_word_count}",
            f"  Generator Interval: {self.throttle.min_interval_seconds}s",
            f"  Restart Delay: {self.session.restart_delay_seconds}s",
            f"  Leaderboard: {self.leaderboard.backend} (top {self.leaderboard.size})",
        ]
        if self.leaderboard.backend == "redis":
            lines.append(f"  Redis: {self.redis.url}")
        lines.append(f"  Telemetry: {'✓' if self.telemetry.enabled else '✗'}")
        return "\n".join(lines)


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> TypestoSettings:
    """
    Load settings with optional overrides.

    Example:
        settings = load_settings()
        settings = load_settings(config_file="typesto.yaml")
        settings = load_settings(leaderboard={"backend": "redis"})
    """
    if config_file:
        overrides["config_file"] = config_file

    return TypestoSettings(**overrides)
