"""
Settings Module for Trickle Monitor

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime overrides.
Each concern lives in its own settings class with its own env prefix;
``Settings`` nests them and ``get_settings()`` caches the result.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from config.constants import Defaults


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class ServerSettings(BaseSettingsConfig):
    """
    HTTP Front Door Settings

    Where the listener binds. Any failure to bind is fatal at startup.
    """

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        env_file=".env",
        extra="ignore"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Interface to bind (all interfaces by default)"
    )
    port: int = Field(
        default=Defaults.SERVICE_PORT,
        ge=1,
        le=65535,
        description="Service port for /trickle and /log"
    )


class TrickleSettings(BaseSettingsConfig):
    """
    Trickle Contract Settings

    Shared by the responder AND the checker. The responder emits
    ``byte_count`` bytes, one every ``byte_interval`` seconds; the checker
    classifies a probe as up only when it receives exactly ``byte_count``.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRICKLE_",
        env_file=".env",
        extra="ignore"
    )

    path: str = Field(
        default=Defaults.TRICKLE_PATH,
        description="Route serving the trickle stream"
    )
    byte_count: int = Field(
        default=Defaults.TRICKLE_BYTES,
        ge=1,
        description="Exact number of bytes in one trickle stream"
    )
    byte_interval: float = Field(
        default=Defaults.TRICKLE_BYTE_INTERVAL,
        gt=0,
        description="Seconds between consecutive trickle bytes"
    )
    payload_byte: str = Field(
        default=Defaults.TRICKLE_PAYLOAD,
        min_length=1,
        max_length=1,
        description="The single ASCII character streamed"
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Routes must be absolute."""
        if not v.startswith("/"):
            raise ValueError("Trickle path must start with '/'")
        return v

    @property
    def stream_duration(self) -> float:
        """Nominal wall-clock length of one trickle stream."""
        return self.byte_count * self.byte_interval


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Engine Configuration Settings

    Controls cadence, pipelining, the probe deadline, where the target
    lives and how its name is resolved.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    # Cadence & pipelining
    check_interval: float = Field(
        default=Defaults.CHECK_INTERVAL,
        gt=0,
        description="Seconds between probe launches"
    )
    pipeline_depth: int = Field(
        default=Defaults.PIPELINE_DEPTH,
        ge=1,
        le=16,
        description="Probes kept in flight at once"
    )
    probe_deadline: float = Field(
        default=Defaults.PROBE_DEADLINE,
        gt=0,
        description="Overall deadline for connect + full body read"
    )

    # Target
    target_port: int = Field(
        default=Defaults.SERVICE_PORT,
        ge=1,
        le=65535,
        description="Port the remote trickle responder listens on"
    )
    target_domain: Optional[str] = Field(
        default=None,
        description="Explicit target name; skips address discovery when set"
    )
    target_suffix: str = Field(
        default=Defaults.TARGET_SUFFIX,
        min_length=1,
        description="Domain appended to the expanded address"
    )

    # Self-address discovery
    discovery_url: str = Field(
        default=Defaults.DISCOVERY_URL,
        description="Endpoint returning this host's public IPv6 address"
    )
    discovery_timeout: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Timeout for the address discovery call"
    )

    # DNS
    dns_nameservers: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="Nameservers to query (system resolv.conf when empty)"
    )
    dns_port: int = Field(
        default=53,
        ge=1,
        le=65535,
        description="Port of the name-resolution service"
    )
    dns_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Lifetime of one A-record lookup"
    )

    # Status log
    log_path: str = Field(
        default=Defaults.LOG_PATH,
        description="Route serving the status-change log"
    )
    log_capacity: int = Field(
        default=Defaults.LOG_CAPACITY,
        ge=1,
        le=4096,
        description="Ring buffer capacity of the status log"
    )

    @field_validator("dns_nameservers", mode="before")
    @classmethod
    def parse_nameservers(cls, v: Any) -> List[str]:
        """Parse nameservers from a comma separated string or list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return [str(x) for x in v]

    @field_validator("log_path")
    @classmethod
    def validate_log_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("Log path must start with '/'")
        return v


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings

    Console and optional rotating file output through loguru.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Minimum logging level"
    )

    # Console logging
    to_console: bool = Field(
        default=True,
        description="Enable console logging"
    )
    colorize: bool = Field(
        default=True,
        description="Enable colored console output"
    )

    # File logging
    to_file: bool = Field(
        default=False,
        description="Enable file logging"
    )
    file_path: Path = Field(
        default=Path("logs/trickle_monitor.log"),
        description="Log file path"
    )
    file_rotation: str = Field(
        default="10 MB",
        description="Log rotation size (e.g., '10 MB', '1 day')"
    )
    file_retention: str = Field(
        default="7 days",
        description="Log retention period"
    )
    file_compression: str = Field(
        default="zip",
        description="Compression applied to rotated files"
    )
    serialize: bool = Field(
        default=False,
        description="Write the log file as JSON lines"
    )


class Settings(BaseSettingsConfig):
    """
    Main Application Settings

    Aggregates every settings section. Instantiate through
    ``get_settings()`` in application code; tests build their own.
    """

    app_name: str = Field(
        default="Trickle Monitor",
        description="Application display name"
    )
    version: str = Field(
        default="1.0.0",
        description="Application version string"
    )
    environment: Environment = Field(
        default=Environment.PRODUCTION,
        description="Application environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Nested settings
    server: ServerSettings = Field(
        default_factory=ServerSettings
    )
    trickle: TrickleSettings = Field(
        default_factory=TrickleSettings
    )
    monitoring: MonitoringSettings = Field(
        default_factory=MonitoringSettings
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @model_validator(mode="after")
    def validate_probe_budget(self) -> "Settings":
        """The probe deadline has to leave room for a full trickle stream."""
        if self.monitoring.probe_deadline <= self.trickle.stream_duration:
            raise ValueError(
                f"probe_deadline ({self.monitoring.probe_deadline}s) must exceed "
                f"the trickle stream duration ({self.trickle.stream_duration}s)"
            )
        return self

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_development and self.logging.level == LogLevel.INFO:
            self.logging.level = LogLevel.DEBUG
        if self.debug:
            self.logging.level = LogLevel.DEBUG
        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    This function is cached to ensure a single settings instance
    is used throughout the application lifecycle.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
